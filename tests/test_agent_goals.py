# tests/test_agent_goals.py

from __future__ import annotations

from agent.goals import Goal, GoalBoard
from states.base import StateKind


def test_request_posts_new_prerequisite_at_front():
    goals = GoalBoard()
    goals.post(Goal(StateKind.MINING, "iron_ore", 2))

    posted = goals.request(Goal(StateKind.MINING, "stone", 3, source="craft"))

    assert goals.peek(StateKind.MINING) is posted
    assert [g.target for g in goals.all()] == ["stone", "iron_ore"]


def test_request_reuses_pending_goal_for_same_target():
    goals = GoalBoard()
    stone = goals.post(Goal(StateKind.MINING, "stone", 3, source="craft"))
    goals.post(Goal(StateKind.MINING, "coal_ore", 1), front=True)

    reused = goals.request(Goal(StateKind.MINING, "stone", 5, source="build"))

    assert reused is stone
    assert goals.peek(StateKind.MINING) is stone
    assert stone.count == 5
    assert stone.source == "craft"
    assert len(goals) == 2

    goals.request(Goal(StateKind.MINING, "stone", 2))
    assert stone.count == 5
    assert len(goals) == 2
