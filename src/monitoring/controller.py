# src/monitoring/controller.py
"""
External control surface for a running agent.

AgentController wraps an Agent and applies ControlCommand messages
published on the EventBus:

- PAUSE          -> freeze ticking
- RESUME         -> unfreeze ticking
- SINGLE_STEP    -> run exactly one agent tick, then pause again
- RUN_COMMAND    -> feed a textual command to the command router
- CHANGE_STATE   -> switch the state machine by name
- STOP           -> drop every goal and go idle
- DUMP_STATE     -> emit a debug snapshot as a SNAPSHOT event
"""

from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional, Protocol

from .bus import EventBus
from .events import (
    ControlCommand,
    ControlCommandType,
    EventType,
)
from .logger import log_event


log = logging.getLogger(__name__)

MODULE = "monitoring.controller"


# ============================================================
# Agent interface expected by the controller
# ============================================================

class AgentControl(Protocol):
    """What AgentController needs from agent.bootstrap.Agent."""

    def tick(self) -> Any:
        """Run one controller tick."""

    def handle_command(self, text: str, sender: Optional[str] = None) -> Any:
        """Route one textual command."""

    def change_state(self, name: str) -> bool:
        """Switch state immediately; False for unknown names."""

    def stop(self) -> None:
        """Drop all goals and return to idle."""

    def debug_state(self) -> Dict[str, Any]:
        """JSON-serializable snapshot: state, status, goals, position."""
        ...


# ============================================================
# Agent Controller
# ============================================================

class AgentController:
    """
    The simulation / bot loop should call `maybe_tick_agent()` instead of
    `agent.tick()` so pause and single-step flags are respected.
    """

    def __init__(self, agent: AgentControl, bus: EventBus) -> None:
        self._agent = agent
        self._bus = bus

        self._paused: bool = False
        self._single_step: bool = False

        self._bus.subscribe_commands(self._handle_command)

    def close(self) -> None:
        self._bus.unsubscribe_commands(self._handle_command)

    # --------------------------------------------------------
    # Command handling
    # --------------------------------------------------------

    def _handle_command(self, cmd: ControlCommand) -> None:
        if cmd.cmd == ControlCommandType.PAUSE:
            self._paused = True
            self._single_step = False
            self._log_control("PAUSE", {"paused": True})

        elif cmd.cmd == ControlCommandType.RESUME:
            self._paused = False
            self._single_step = False
            self._log_control("RESUME", {"paused": False})

        elif cmd.cmd == ControlCommandType.SINGLE_STEP:
            self._single_step = True
            self._paused = False
            self._log_control("SINGLE_STEP", {"single_step": True})

        elif cmd.cmd == ControlCommandType.RUN_COMMAND:
            text = cmd.args.get("text", "")
            result = self._agent.handle_command(text, cmd.args.get("sender"))
            ok = bool(getattr(result, "ok", True))
            self._log_control("RUN_COMMAND", {"text": text, "ok": ok})

        elif cmd.cmd == ControlCommandType.CHANGE_STATE:
            name = cmd.args.get("state", "")
            changed = self._agent.change_state(name)
            self._log_control("CHANGE_STATE", {"state": name, "changed": changed})

        elif cmd.cmd == ControlCommandType.STOP:
            self._agent.stop()
            self._log_control("STOP", {})

        elif cmd.cmd == ControlCommandType.DUMP_STATE:
            self._log_snapshot(self._safe_debug_state())

    # --------------------------------------------------------
    # Ticking API for the main loop
    # --------------------------------------------------------

    def maybe_tick_agent(self) -> bool:
        """Tick the agent unless paused. Returns whether a tick ran."""
        if self._paused:
            return False

        self._agent.tick()

        if self._single_step:
            self._paused = True
            self._single_step = False
            self._log_control("SINGLE_STEP_COMPLETED", {"paused": True})
        return True

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def single_step_pending(self) -> bool:
        return self._single_step

    # --------------------------------------------------------
    # Logging helpers
    # --------------------------------------------------------

    def _log_control(self, cmd_name: str, payload: Dict[str, Any]) -> None:
        log_event(
            bus=self._bus,
            module=MODULE,
            event_type=EventType.CONTROL_COMMAND,
            message=f"Control command: {cmd_name}",
            payload={"cmd": cmd_name, **payload},
        )

    def _log_snapshot(self, state: Dict[str, Any]) -> None:
        log_event(
            bus=self._bus,
            module=MODULE,
            event_type=EventType.SNAPSHOT,
            message="Agent state snapshot",
            payload={"state": state},
        )

    def _safe_debug_state(self) -> Dict[str, Any]:
        """debug_state() normalized to a plain dict; errors become an error entry."""
        try:
            state = self._agent.debug_state()
        except Exception as exc:  # pragma: no cover - snapshot must never kill the loop
            log.exception("debug_state failed")
            return {"error": "debug_state_failed", "details": repr(exc)}

        if is_dataclass(state):
            return asdict(state)
        return state
