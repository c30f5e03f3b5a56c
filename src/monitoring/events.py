# path: src/monitoring/events.py
"""
Event and command schemas for agent monitoring.

This module defines:
- EventType enum
- MonitoringEvent (structured agent events)
- ControlCommandType enum
- ControlCommand for human/system-issued controls

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted throughout the agent."""

    # State controller
    STATE_CHANGED = auto()

    # Plan lifecycle (Executor)
    PLAN_CREATED = auto()
    PLAN_PROGRESS = auto()
    STEP_DROPPED = auto()
    PLAN_STUCK = auto()
    PLAN_COMPLETED = auto()

    # Goals / resolver
    GOAL_POSTED = auto()
    GOAL_COMPLETED = auto()
    GOAL_UNREACHABLE = auto()
    CRAFTED = auto()

    # Human-readable status lines (what the agent "says")
    STATUS = auto()

    # Control surface events
    CONTROL_COMMAND = auto()

    # Full state snapshot
    SNAPSHOT = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the controller, a state, the executor, or
    the control surface.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("agent.controller", "states.build", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (plan summary, goal, report)
    correlation_id: Optional[str] = None  # Groups events per plan/goal

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data


# ============================================================
# Control Commands
# ============================================================

class ControlCommandType(Enum):
    """
    Commands that humans or tools can send to steer the agent.
    """

    PAUSE = auto()          # Stop ticking the controller
    RESUME = auto()         # Resume ticking
    SINGLE_STEP = auto()    # Run exactly one controller tick
    RUN_COMMAND = auto()    # Textual command ("build house", "craft 3 stick")
    CHANGE_STATE = auto()   # Request a state switch by name
    STOP = auto()           # Drop all goals, go idle
    DUMP_STATE = auto()     # Emit a full snapshot event


@dataclass
class ControlCommand:
    """
    Represents an external command for the agent.

    Sent through EventBus.publish_command(), then interpreted by
    monitoring.controller.AgentController.
    """

    cmd: ControlCommandType             # The specific command
    args: Dict[str, Any]                # Additional arguments for command execution

    @staticmethod
    def pause() -> "ControlCommand":
        return ControlCommand(ControlCommandType.PAUSE, {})

    @staticmethod
    def resume() -> "ControlCommand":
        return ControlCommand(ControlCommandType.RESUME, {})

    @staticmethod
    def single_step() -> "ControlCommand":
        return ControlCommand(ControlCommandType.SINGLE_STEP, {})

    @staticmethod
    def run_command(text: str, sender: Optional[str] = None) -> "ControlCommand":
        return ControlCommand(ControlCommandType.RUN_COMMAND, {"text": text, "sender": sender})

    @staticmethod
    def change_state(state: str) -> "ControlCommand":
        return ControlCommand(ControlCommandType.CHANGE_STATE, {"state": state})

    @staticmethod
    def stop() -> "ControlCommand":
        return ControlCommand(ControlCommandType.STOP, {})

    @staticmethod
    def dump_state() -> "ControlCommand":
        return ControlCommand(ControlCommandType.DUMP_STATE, {})
