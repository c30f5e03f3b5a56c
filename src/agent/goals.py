# src/agent/goals.py

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from states.base import StateKind


log = logging.getLogger(__name__)


@dataclass(eq=False)
class Goal:
    """
    Requested outcome for one state.

    - kind: the state that consumes the goal
    - target: item, block, structure or player name, depending on kind
    - source: who posted it ("command", "needs", or the posting state)
    - waiting_on: prerequisite goals posted on its behalf by a hand-over
    - outcome: "done" or "failed" once a state has concluded it
    """

    kind: StateKind
    target: str = ""
    count: int = 1
    params: Dict[str, Any] = field(default_factory=dict)
    source: str = "command"
    attempts: int = 0
    waiting_on: List["Goal"] = field(default_factory=list, repr=False)
    outcome: Optional[str] = None

    def describe(self) -> str:
        if not self.target:
            return self.kind.value
        if self.count > 1:
            return f"{self.kind.value} {self.count}x {self.target}"
        return f"{self.kind.value} {self.target}"


class GoalBoard:
    """Per-state mailbox of pending goals; oldest first."""

    def __init__(self) -> None:
        self._goals: Dict[StateKind, Deque[Goal]] = {kind: deque() for kind in StateKind}

    def post(self, goal: Goal, *, front: bool = False) -> Goal:
        queue = self._goals[goal.kind]
        if front:
            queue.appendleft(goal)
        else:
            queue.append(goal)
        log.debug("Goal posted: %s (%s)", goal.describe(), goal.source)
        return goal

    def request(self, goal: Goal) -> Goal:
        """
        Post a prerequisite goal at the front of its mailbox.

        A pending goal for the same target is reused instead: it moves to
        the front and keeps the larger of the two counts.
        """
        queue = self._goals[goal.kind]
        pending = next((g for g in queue if g.target == goal.target), None)
        if pending is None:
            return self.post(goal, front=True)
        queue.remove(pending)
        queue.appendleft(pending)
        pending.count = max(pending.count, goal.count)
        log.debug("Goal reused: %s (for %s)", pending.describe(), goal.source)
        return pending

    def peek(self, kind: StateKind) -> Optional[Goal]:
        queue = self._goals[kind]
        return queue[0] if queue else None

    def pending(self, kind: StateKind) -> bool:
        return bool(self._goals[kind])

    def complete(self, goal: Goal) -> None:
        """Remove `goal` (finished or abandoned) from its mailbox."""
        queue = self._goals[goal.kind]
        try:
            queue.remove(goal)
        except ValueError:
            log.debug("Goal %s was already removed", goal.describe())

    def clear(self, kind: StateKind) -> int:
        n = len(self._goals[kind])
        self._goals[kind].clear()
        return n

    def clear_all(self) -> int:
        return sum(self.clear(kind) for kind in StateKind)

    def all(self) -> List[Goal]:
        return [g for kind in StateKind for g in self._goals[kind]]

    def __len__(self) -> int:
        return sum(len(q) for q in self._goals.values())

    @property
    def follow_target(self) -> Optional[str]:
        goal = self.peek(StateKind.FOLLOW)
        return goal.target if goal is not None else None
