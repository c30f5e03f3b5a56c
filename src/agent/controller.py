# src/agent/controller.py
"""
StateController: single-slot state machine with priority arbitration.

Per tick:

  1. apply the state-change request queued since the previous tick
  2. call update() on the active state, once
  3. ask the active state about candidates in priority order

        COMBAT, DEFENSE, FOLLOW (only while a follow request is pending),
        then the active state's exit_candidates, then IDLE

     skipping the active state itself; the first candidate the active
     state accepts wins and the switch happens immediately

There is no state stack: switching always exits the old state before
entering the new one, and exactly one state is active at all times.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping, Optional, Union

from monitoring.events import EventType
from monitoring.status import StatusReporter
from states.base import State, StateKind

from .goals import GoalBoard


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    tick: int
    old: StateKind
    new: StateKind
    reason: str


class StateController:
    def __init__(
        self,
        states: Mapping[StateKind, State],
        goals: GoalBoard,
        *,
        initial: StateKind = StateKind.IDLE,
        reporter: Optional[StatusReporter] = None,
        history_size: int = 50,
    ) -> None:
        if StateKind.IDLE not in states:
            raise ValueError("state registry must contain IDLE")
        if initial not in states:
            raise ValueError(f"initial state {initial.value} is not registered")

        self._states: Dict[StateKind, State] = dict(states)
        self._goals = goals
        self._reporter = reporter if reporter is not None else StatusReporter(module="agent.controller")
        self._ticks = 0
        self._requested: Optional[StateKind] = None
        self._history: Deque[Transition] = deque(maxlen=history_size)

        self._active: State = self._states[initial]
        self._active.on_enter()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def active(self) -> State:
        return self._active

    @property
    def active_kind(self) -> StateKind:
        return self._active.kind

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def history(self) -> List[Transition]:
        return list(self._history)

    @property
    def pending_request(self) -> Optional[StateKind]:
        return self._requested

    def state(self, kind: StateKind) -> State:
        return self._states[kind]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def change_state(self, kind: Union[StateKind, str], *, reason: str = "command") -> bool:
        """
        Switch now. Unknown names log a warning and change nothing.
        Switching to the active state is a successful no-op.
        """
        try:
            kind = StateKind.parse(kind)
        except ValueError:
            log.warning("Ignoring change to unknown state '%s'", kind)
            return False
        target = self._states.get(kind)
        if target is None:
            log.warning("State %s is not registered", kind.value)
            return False
        if target is self._active:
            return True

        old = self._active
        old.on_exit()
        self._active = target
        self._history.append(Transition(self._ticks, old.kind, kind, reason))
        self._reporter.note(
            EventType.STATE_CHANGED,
            f"State {old.kind.value} -> {kind.value} ({reason})",
            old=old.kind.value,
            new=kind.value,
            reason=reason,
            tick=self._ticks,
        )
        target.on_enter()
        return True

    def request_state(self, kind: Union[StateKind, str]) -> bool:
        """Queue a switch for the next tick boundary; the last request wins."""
        try:
            kind = StateKind.parse(kind)
        except ValueError:
            log.warning("Ignoring request for unknown state '%s'", kind)
            return False
        if kind not in self._states:
            log.warning("State %s is not registered", kind.value)
            return False
        self._requested = kind
        return True

    def tick(self) -> StateKind:
        self._ticks += 1

        if self._requested is not None:
            requested, self._requested = self._requested, None
            self.change_state(requested, reason="request")

        self._active.update()

        for candidate in self.candidates():
            if self._active.should_transition(candidate):
                self.change_state(candidate, reason="arbitration")
                break
        return self._active.kind

    def candidates(self) -> List[StateKind]:
        """Candidates for the active state, in priority order, without duplicates."""
        order: List[StateKind] = [StateKind.COMBAT, StateKind.DEFENSE]
        if self._goals.follow_target is not None:
            order.append(StateKind.FOLLOW)
        order.extend(self._active.exit_candidates)
        order.append(StateKind.IDLE)

        seen = set()
        result: List[StateKind] = []
        for kind in order:
            if kind is self._active.kind or kind in seen or kind not in self._states:
                continue
            seen.add(kind)
            result.append(kind)
        return result

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tick": self._ticks,
            "state": self._active.kind.value,
            "status": self._active.status(),
            "requested": self._requested.value if self._requested is not None else None,
            "history": [
                {"tick": t.tick, "old": t.old.value, "new": t.new.value, "reason": t.reason}
                for t in list(self._history)[-5:]
            ],
        }
