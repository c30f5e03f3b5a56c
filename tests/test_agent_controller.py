# tests/test_agent_controller.py
"""
Tests for agent.controller.StateController with scripted states.
"""

from __future__ import annotations

from typing import List, Set, Tuple

import pytest

from agent.controller import StateController
from agent.goals import Goal, GoalBoard
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.status import StatusReporter
from states.base import StateKind

from fakes.sim_helpers import EventRecorder


class FakeState:
    """Accepts a fixed set of candidates; records its hook calls in a shared journal."""

    def __init__(
        self,
        kind: StateKind,
        journal: List[str],
        accepts: Set[StateKind] = frozenset(),
        exit_candidates: Tuple[StateKind, ...] = (),
    ) -> None:
        self.kind = kind
        self.journal = journal
        self.accepts = set(accepts)
        self.exit_candidates = exit_candidates
        self.asked: List[StateKind] = []
        self.updates = 0

    def on_enter(self) -> None:
        self.journal.append(f"enter {self.kind.value}")

    def on_exit(self) -> None:
        self.journal.append(f"exit {self.kind.value}")

    def update(self) -> None:
        self.updates += 1

    def should_transition(self, candidate: StateKind) -> bool:
        self.asked.append(candidate)
        return candidate in self.accepts

    def status(self) -> str:
        return f"{self.kind.value} ok"


def make_controller(*kinds: StateKind, goals: GoalBoard | None = None):
    journal: List[str] = []
    states = {kind: FakeState(kind, journal) for kind in (StateKind.IDLE,) + kinds}
    bus = EventBus()
    recorder = EventRecorder(bus)
    controller = StateController(
        states,
        goals if goals is not None else GoalBoard(),
        reporter=StatusReporter(bus, module="agent.controller"),
    )
    return controller, states, journal, recorder


def test_registry_must_contain_idle():
    with pytest.raises(ValueError):
        StateController({}, GoalBoard())


def test_starts_in_idle_and_enters_it():
    controller, states, journal, _ = make_controller(StateKind.BUILD)

    assert controller.active_kind is StateKind.IDLE
    assert journal == ["enter idle"]
    assert controller.ticks == 0


def test_candidates_follow_priority_order():
    goals = GoalBoard()
    goals.post(Goal(StateKind.FOLLOW, "alex"))
    controller, states, _, _ = make_controller(
        StateKind.COMBAT, StateKind.DEFENSE, StateKind.FOLLOW, StateKind.BUILD, StateKind.CRAFT, goals=goals
    )
    states[StateKind.IDLE].exit_candidates = (StateKind.CRAFT, StateKind.COMBAT, StateKind.BUILD)

    assert controller.candidates() == [
        StateKind.COMBAT,
        StateKind.DEFENSE,
        StateKind.FOLLOW,
        StateKind.CRAFT,
        StateKind.BUILD,
    ]


def test_follow_is_only_a_candidate_with_a_follow_goal():
    controller, _, _, _ = make_controller(StateKind.FOLLOW, StateKind.COMBAT)

    assert StateKind.FOLLOW not in controller.candidates()


def test_first_accepted_candidate_wins_in_same_tick():
    controller, states, journal, recorder = make_controller(StateKind.COMBAT, StateKind.BUILD)
    idle = states[StateKind.IDLE]
    idle.exit_candidates = (StateKind.BUILD,)
    idle.accepts = {StateKind.BUILD, StateKind.COMBAT}

    assert controller.tick() is StateKind.COMBAT

    assert idle.updates == 1
    assert idle.asked == [StateKind.COMBAT]
    assert journal == ["enter idle", "exit idle", "enter combat"]
    changed = recorder.of(EventType.STATE_CHANGED)
    assert len(changed) == 1
    assert changed[0].payload == {"old": "idle", "new": "combat", "reason": "arbitration", "tick": 1}


def test_request_applies_at_next_tick_boundary():
    controller, states, journal, _ = make_controller(StateKind.BUILD)

    assert controller.request_state("build") is True
    assert controller.active_kind is StateKind.IDLE
    assert controller.pending_request is StateKind.BUILD

    controller.tick()

    assert controller.active_kind is StateKind.BUILD
    assert controller.pending_request is None
    # The new state is updated in the tick it was entered.
    assert states[StateKind.BUILD].updates == 1
    assert states[StateKind.IDLE].updates == 0
    assert controller.history[-1].reason == "request"


def test_last_request_wins():
    controller, _, _, _ = make_controller(StateKind.BUILD, StateKind.CRAFT)

    controller.request_state(StateKind.BUILD)
    controller.request_state(StateKind.CRAFT)
    controller.tick()

    assert controller.active_kind is StateKind.CRAFT


def test_unknown_or_unregistered_states_change_nothing():
    controller, _, journal, recorder = make_controller(StateKind.BUILD)

    assert controller.request_state("party") is False
    assert controller.change_state("party") is False
    assert controller.change_state(StateKind.FISH) is False
    assert controller.change_state("idle") is True

    assert controller.active_kind is StateKind.IDLE
    assert journal == ["enter idle"]
    assert recorder.of(EventType.STATE_CHANGED) == []


def test_history_and_snapshot():
    controller, _, _, _ = make_controller(StateKind.BUILD, StateKind.CRAFT)

    controller.change_state("build")
    controller.tick()
    controller.change_state("craft", reason="test")

    assert [(t.old, t.new) for t in controller.history] == [
        (StateKind.IDLE, StateKind.BUILD),
        (StateKind.BUILD, StateKind.CRAFT),
    ]
    snap = controller.snapshot()
    assert snap["state"] == "craft"
    assert snap["status"] == "craft ok"
    assert snap["tick"] == 1
    assert snap["history"][-1] == {"tick": 1, "old": "build", "new": "craft", "reason": "test"}
