#tests/test_monitoring_controller.py
"""
Tests for monitoring.controller.AgentController.

Covers:
- pause / resume / single-step ticking
- textual commands and state changes forwarded to the agent
- STOP
- DUMP_STATE snapshots
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from monitoring.bus import EventBus
from monitoring.controller import AgentController
from monitoring.events import ControlCommand, EventType, MonitoringEvent


@dataclass
class FakeResult:
    ok: bool


@dataclass
class FakeAgent:
    """Records every call AgentController makes."""

    ticks: int = 0
    stops: int = 0
    commands: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    states: List[str] = field(default_factory=list)

    def tick(self) -> None:
        self.ticks += 1

    def handle_command(self, text: str, sender: Optional[str] = None) -> FakeResult:
        self.commands.append((text, sender))
        return FakeResult(ok=not text.startswith("dance"))

    def change_state(self, name: str) -> bool:
        self.states.append(name)
        return name in ("idle", "build")

    def stop(self) -> None:
        self.stops += 1

    def debug_state(self) -> Dict[str, Any]:
        return {"state": "build", "tick": self.ticks, "goals": ["build wall"]}


def setup():
    bus = EventBus()
    agent = FakeAgent()
    controller = AgentController(agent, bus)
    received: List[MonitoringEvent] = []
    bus.subscribe(received.append)
    return bus, agent, controller, received


def control_payloads(events: List[MonitoringEvent]) -> List[Dict[str, Any]]:
    return [e.payload for e in events if e.event_type == EventType.CONTROL_COMMAND]


def test_pause_resume_and_single_step():
    bus, agent, controller, received = setup()
    assert controller.paused is False

    bus.publish_command(ControlCommand.pause())
    assert controller.maybe_tick_agent() is False
    assert agent.ticks == 0

    bus.publish_command(ControlCommand.resume())
    assert controller.maybe_tick_agent() is True
    assert agent.ticks == 1

    bus.publish_command(ControlCommand.single_step())
    assert controller.single_step_pending
    assert controller.maybe_tick_agent() is True
    assert controller.paused is True
    assert controller.maybe_tick_agent() is False
    assert agent.ticks == 2

    cmds = [p["cmd"] for p in control_payloads(received)]
    assert cmds == ["PAUSE", "RESUME", "SINGLE_STEP", "SINGLE_STEP_COMPLETED"]


def test_run_command_and_change_state_are_forwarded():
    bus, agent, _, received = setup()

    bus.publish_command(ControlCommand.run_command("build wall", sender="alex"))
    bus.publish_command(ControlCommand.run_command("dance"))
    bus.publish_command(ControlCommand.change_state("build"))
    bus.publish_command(ControlCommand.change_state("party"))

    assert agent.commands == [("build wall", "alex"), ("dance", None)]
    assert agent.states == ["build", "party"]
    payloads = control_payloads(received)
    assert [p.get("ok") for p in payloads[:2]] == [True, False]
    assert [p.get("changed") for p in payloads[2:]] == [True, False]


def test_stop_and_dump_state():
    bus, agent, controller, received = setup()
    controller.maybe_tick_agent()

    bus.publish_command(ControlCommand.stop())
    bus.publish_command(ControlCommand.dump_state())

    assert agent.stops == 1
    snapshots = [e for e in received if e.event_type == EventType.SNAPSHOT]
    assert len(snapshots) == 1
    assert snapshots[0].payload["state"] == {"state": "build", "tick": 1, "goals": ["build wall"]}


def test_close_detaches_from_bus():
    bus, agent, controller, _ = setup()

    controller.close()
    bus.publish_command(ControlCommand.pause())

    assert controller.paused is False
