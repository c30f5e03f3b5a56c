#tests/test_monitoring_console.py
"""
Tests for monitoring.console.ConsoleStatusView.

The view only folds events into its state dict; rendering is checked by
printing into a recording rich Console.
"""

from __future__ import annotations

from rich.console import Console

from monitoring.bus import EventBus
from monitoring.console import ConsoleStatusView
from monitoring.events import EventType
from monitoring.logger import log_event


def emit(bus: EventBus, event_type: EventType, message: str = "", **payload) -> None:
    log_event(bus=bus, module="test", event_type=event_type, message=message, payload=payload)


def make_view(history: int = 8):
    bus = EventBus()
    console = Console(record=True, width=100)
    return bus, ConsoleStatusView(bus, console=console, history=history), console


def test_state_and_plan_progress_are_tracked():
    bus, view, _ = make_view()

    emit(bus, EventType.STATE_CHANGED, "idle -> build", old="idle", new="build", reason="arbitration", tick=3)
    emit(bus, EventType.GOAL_POSTED, "Building a wall")
    emit(bus, EventType.PLAN_CREATED, "plan", plan={"name": "build-wall", "remaining": 15, "initial": 15})
    emit(bus, EventType.PLAN_PROGRESS, "build-wall: 33% complete (5/15)")

    state = view.state
    assert state["state"] == "build"
    assert state["tick"] == 3
    assert state["goal"] == "Building a wall"
    assert state["plan"] == "build-wall"
    assert state["plan_total"] == 15
    assert state["percent"] == 0

    emit(bus, EventType.PLAN_COMPLETED, "done", plan="build-wall", total=15, succeeded=14, dropped=1, stuck=False)
    emit(bus, EventType.GOAL_COMPLETED, "Built a wall")

    state = view.state
    assert state["percent"] == 100
    assert (state["succeeded"], state["dropped"]) == (14, 1)
    assert state["goal"] == ""


def test_failures_are_remembered_and_history_is_bounded():
    bus, view, _ = make_view(history=2)

    emit(bus, EventType.STATUS, "one")
    emit(bus, EventType.STEP_DROPPED, "Gave up on place cobblestone")
    emit(bus, EventType.LOG, "not shown")
    emit(bus, EventType.CRAFTED, "Crafted 4x stick", item="stick", count=4)

    assert view.lines == ["Gave up on place cobblestone", "Crafted 4x stick"]
    assert view.state["last_failure"] == "Gave up on place cobblestone"
    assert view.state["crafted"] == 4


def test_print_once_renders_panels():
    bus, view, console = make_view()
    emit(bus, EventType.STATE_CHANGED, "", new="craft", reason="request", tick=7)
    emit(bus, EventType.PLAN_STUCK, "build-wall is stuck", total=15, succeeded=2, dropped=0)

    view.print_once()
    text = console.export_text()

    assert "State: craft" in text
    assert "No plan yet" in text
    assert "build-wall is stuck" in text


def test_close_stops_updates():
    bus, view, _ = make_view()
    view.close()

    emit(bus, EventType.STATE_CHANGED, "", new="combat")

    assert view.state["state"] == "idle"
