# tests/test_agent_commands.py

from __future__ import annotations

from typing import List

import pytest

from agent.commands import CommandRouter
from agent.goals import GoalBoard
from crafting.recipes import load_recipe_book
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.status import StatusReporter
from states.base import StateKind
from world.types import Position

from fakes.sim_helpers import EventRecorder


class RecordingController:
    def __init__(self) -> None:
        self.requests: List[StateKind] = []

    def request_state(self, kind: StateKind) -> bool:
        self.requests.append(kind)
        return True


@pytest.fixture
def setup():
    bus = EventBus()
    recorder = EventRecorder(bus)
    chat: List[str] = []
    controller = RecordingController()
    goals = GoalBoard()
    router = CommandRouter(
        controller,
        goals,
        load_recipe_book(),
        reporter=StatusReporter(bus, chat=chat.append, module="agent.commands"),
        prefix="!",
        owner="alex",
    )
    return router, controller, goals, recorder, chat


def test_build_posts_goal_and_requests_state(setup):
    router, controller, goals, recorder, chat = setup

    result = router.handle("!build Wall")

    assert result.ok
    assert result.goal is goals.peek(StateKind.BUILD)
    assert result.goal.target == "wall"
    assert controller.requests == [StateKind.BUILD]
    assert recorder.messages(EventType.GOAL_POSTED) == ["Building a wall"]
    assert chat == ["Building a wall"]


def test_repair_needs_anchor(setup):
    router, _, goals, _, _ = setup

    bad = router.handle("repair wall 1 2")
    good = router.handle("repair wall 1 64 -3")

    assert not bad.ok
    assert good.ok
    assert good.goal.params == {"repair": True, "anchor": Position(1, 64, -3)}
    assert len(goals) == 1


@pytest.mark.parametrize(
    "line, target, count",
    [
        ("craft table", "crafting_table", 1),
        ("craft 3 sticks", "stick", 3),
        ("craft stick 8", "stick", 8),
    ],
)
def test_craft_forms(setup, line, target, count):
    router, controller, goals, _, _ = setup

    result = router.handle(line)

    assert result.ok
    assert (result.goal.target, result.goal.count) == (target, count)
    assert controller.requests == [StateKind.CRAFT]


def test_craft_rejects_unknown_item_and_bad_counts(setup):
    router, controller, goals, recorder, chat = setup

    assert not router.handle("craft unobtainium").ok
    assert not router.handle("craft stick lots").ok
    assert not router.handle("craft 0 stick").ok
    assert len(goals) == 0
    assert controller.requests == []
    # One status line per command, failures included.
    assert len(chat) == 3


def test_follow_defaults_to_sender_then_owner(setup):
    router, _, goals, _, _ = setup

    router.handle("follow", sender="sam")
    assert goals.follow_target == "sam"

    router.handle("follow")
    assert goals.follow_target == "alex"
    assert len(goals) == 1


def test_task_commands_post_their_state_goals(setup):
    router, controller, goals, _, _ = setup

    for line in ("mine stone 4", "gather wood", "defend 6", "explore", "farm", "fish", "trade bread 2"):
        assert router.handle(line).ok, line

    assert goals.peek(StateKind.MINING).count == 4
    assert goals.peek(StateKind.GATHER).target == "oak_log"
    assert goals.peek(StateKind.DEFENSE).params == {"radius": 6}
    assert goals.peek(StateKind.FISH).count == 5
    assert goals.peek(StateKind.TRADE).target == "bread"
    assert controller.requests[-1] is StateKind.TRADE


def test_state_and_stop(setup):
    router, controller, goals, _, _ = setup
    router.handle("build wall")
    router.handle("craft stick")

    assert router.handle("state mine").ok
    assert not router.handle("state party").ok
    stop = router.handle("stop")

    assert stop.ok
    assert stop.message == "Stopped (2 goals dropped)"
    assert len(goals) == 0
    assert controller.requests[-2:] == [StateKind.MINING, StateKind.IDLE]


def test_unknown_and_empty_commands(setup):
    router, controller, _, recorder, _ = setup

    unknown = router.handle("dance")
    empty = router.handle("!")
    unbalanced = router.handle('build "wall')

    assert not unknown.ok and "Unknown command" in unknown.message
    assert not empty.ok
    assert not unbalanced.ok
    assert controller.requests == []
    assert len(recorder.of(EventType.STATUS)) == 3
