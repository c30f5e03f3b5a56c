# src/states/base.py
"""
State base classes.

A State is a named operating mode with four hooks:

    on_enter()                       called by the controller on switch-in
    on_exit()                        called on switch-out, before the next on_enter
    update()                         called once per tick while active
    should_transition(candidate)     asked by the controller after update()

Survival candidates (COMBAT, DEFENSE, FOLLOW) are answered by the shared
predicates below and are not dwell-gated. Every other candidate goes
through `wants()` and only after `min_dwell_ticks` in the state.

TaskState adds the goal-driven lifecycle shared by the task states: take
the goal from the GoalBoard, plan, drive an Executor, then finish, fail
or hand over to a prerequisite state.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional, Tuple

from execution.errors import GoalUnreachable
from execution.executor import ExecutionReport, Executor, ExecutorStatus
from execution.plan import Plan
from monitoring.events import EventType

if TYPE_CHECKING:
    from agent.context import AgentContext
    from agent.goals import Goal


class StateKind(Enum):
    IDLE = "idle"
    MINING = "mining"
    COMBAT = "combat"
    GATHER = "gather"
    CRAFT = "craft"
    BUILD = "build"
    EXPLORE = "explore"
    FARM = "farm"
    FISH = "fish"
    TRADE = "trade"
    DEFENSE = "defense"
    FOLLOW = "follow"

    @classmethod
    def parse(cls, name: "StateKind | str") -> "StateKind":
        """Parse a user-supplied state name; raises ValueError when unknown."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        if key == "mine":
            key = "mining"
        for kind in cls:
            if kind.value == key:
                return kind
        raise ValueError(f"unknown state '{name}'")


SURVIVAL_KINDS = (StateKind.COMBAT, StateKind.DEFENSE, StateKind.FOLLOW)

# Goals are re-attempted at most this many times before being dropped.
MAX_GOAL_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class State:
    kind: ClassVar[StateKind]
    min_dwell_ticks: ClassVar[int] = 10
    exit_candidates: ClassVar[Tuple[StateKind, ...]] = ()

    def __init__(self, ctx: "AgentContext") -> None:
        self.ctx = ctx
        self.entered_at = 0
        self.log = logging.getLogger(f"states.{self.kind.value}")
        self.reporter = ctx.reporter.child(f"states.{self.kind.value}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.value}>"

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_enter(self) -> None:
        self.entered_at = self.ctx.clock()
        self.log.debug("Entering %s", self.kind.value)
        self.enter()

    def on_exit(self) -> None:
        self.log.debug("Leaving %s after %d ticks", self.kind.value, self.ticks_in_state)
        self.exit()

    def enter(self) -> None:
        pass

    def exit(self) -> None:
        pass

    def update(self) -> None:
        pass

    def should_transition(self, candidate: StateKind) -> bool:
        if candidate in SURVIVAL_KINDS:
            return self.survival(candidate)
        if not self.dwell_elapsed:
            return False
        return self.wants(candidate)

    def wants(self, candidate: StateKind) -> bool:
        """Task-level predicate, asked only after the dwell time."""
        return False

    def status(self) -> str:
        return ""

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    @property
    def ticks_in_state(self) -> int:
        return self.ctx.clock() - self.entered_at

    @property
    def dwell_elapsed(self) -> bool:
        return self.ticks_in_state >= self.min_dwell_ticks

    # ------------------------------------------------------------------
    # Survival predicates
    # ------------------------------------------------------------------

    def survival(self, candidate: StateKind) -> bool:
        if candidate is StateKind.COMBAT:
            return self.threatened()
        if candidate is StateKind.DEFENSE:
            return self.ctx.goals.pending(StateKind.DEFENSE)
        return self.owner_drifting()

    def threatened(self) -> bool:
        return self.ctx.combat.nearest_threat_within() is not None

    def owner_drifting(self) -> bool:
        """A follow request is outstanding and the followed player is too far away."""
        name = self.ctx.goals.follow_target
        if name is None:
            return False
        player = self.ctx.find_player(name)
        if player is None:
            return False
        return player.position.distance(self.ctx.world.position()) > self.ctx.settings.states.follow_distance


# ---------------------------------------------------------------------------
# TaskState
# ---------------------------------------------------------------------------


class TaskState(State):
    """
    Goal-driven state running one Plan at a time.

    Outcomes:
      finish()        goal completed and removed from the board
      fail()          goal dropped, one status message
      hand_over(k)    goal kept, prerequisite goal(s) posted for state k

    Prerequisites go through require(). Re-entry after a hand-over is not
    counted against MAX_GOAL_ATTEMPTS unless one of them failed.

    An interrupted state leaves its goal on the board; re-entry plans again.
    """

    exit_candidates = (StateKind.IDLE,)
    timeout_ticks: ClassVar[Optional[int]] = None
    # Standing orders (follow, defend) are not retried goals.
    limit_attempts: ClassVar[bool] = True

    def __init__(self, ctx: "AgentContext") -> None:
        super().__init__(ctx)
        self.goal: Optional["Goal"] = None
        self.executor: Executor = ctx.new_executor(self.reporter)
        self.outcome: Optional[str] = None
        self.next_state: Optional[StateKind] = None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def enter(self) -> None:
        self.outcome = None
        self.next_state = None
        self.executor.cancel()

        self.goal = self.ctx.goals.peek(self.kind)
        if self.goal is not None:
            # Coming back after a hand-over whose prerequisites all held up is
            # not a retry.
            waited, self.goal.waiting_on = self.goal.waiting_on, []
            if waited and not any(g.outcome == "failed" for g in waited):
                self.log.debug("Resuming %s", self.goal.describe())
            else:
                self.goal.attempts += 1
            if self.limit_attempts and self.goal.attempts > MAX_GOAL_ATTEMPTS:
                self.fail(f"Giving up on {self.goal.describe()} after {MAX_GOAL_ATTEMPTS} attempts")
                return
        elif self.requires_goal():
            self.log.info("Entered %s without a goal", self.kind.value)
            self.outcome = "idle"
            return

        try:
            plan = self.start()
        except GoalUnreachable as exc:
            self.unreachable(exc)
            return
        if plan is not None and self.outcome is None:
            self.executor.run(plan)

    def exit(self) -> None:
        # In-flight action is abandoned, not awaited.
        self.executor.cancel()

    def update(self) -> None:
        if self.outcome is not None:
            return
        limit = self.timeout()
        if limit is not None and self.ticks_in_state > limit:
            self.on_timeout()
            return
        try:
            self.step()
        except GoalUnreachable as exc:
            self.executor.cancel()
            self.unreachable(exc)

    def wants(self, candidate: StateKind) -> bool:
        if self.outcome is None:
            return False
        if self.next_state is not None:
            return candidate is self.next_state
        return candidate is StateKind.IDLE

    def status(self) -> str:
        if self.outcome is not None:
            return self.outcome
        plan = self.executor.plan
        if plan is not None and self.executor.status is ExecutorStatus.RUNNING:
            r = self.executor.report
            return f"{plan.name} {r.percent}%"
        return "working"

    # ------------------------------------------------------------------
    # Subclass API
    # ------------------------------------------------------------------

    def requires_goal(self) -> bool:
        return True

    def start(self) -> Optional[Plan]:
        """Plan for self.goal; return None if the state drives itself."""
        raise NotImplementedError

    def step(self) -> None:
        status = self.executor.tick()
        if status is ExecutorStatus.COMPLETE:
            self.plan_complete(self.executor.report)
        elif status is ExecutorStatus.STUCK:
            self.plan_stuck(self.executor.report)

    def plan_complete(self, report: ExecutionReport) -> None:
        if report.succeeded > 0 or report.total == 0:
            self.finish(f"{self.describe_goal()} done ({report.succeeded}/{report.total} steps)")
        else:
            self.fail(f"{self.describe_goal()} failed: no step succeeded")

    def plan_stuck(self, report: ExecutionReport) -> None:
        self.executor.cancel()
        if report.succeeded > 0:
            self.finish(f"{self.describe_goal()} partly done ({report.succeeded}/{report.total} steps)")
        else:
            self.fail(f"{self.describe_goal()} made no progress")

    def timeout(self) -> Optional[int]:
        return self.timeout_ticks

    def on_timeout(self) -> None:
        self.executor.cancel()
        self.fail(f"{self.describe_goal()} timed out after {self.ticks_in_state} ticks")

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def describe_goal(self) -> str:
        return self.goal.describe() if self.goal is not None else self.kind.value

    def finish(self, message: str) -> None:
        self.outcome = "done"
        if self.goal is not None:
            self.goal.outcome = "done"
            self.ctx.goals.complete(self.goal)
        self.reporter.say(EventType.GOAL_COMPLETED, message, state=self.kind.value)

    def fail(self, message: str) -> None:
        self.outcome = "failed"
        if self.goal is not None:
            self.goal.outcome = "failed"
            self.ctx.goals.complete(self.goal)
        self.reporter.failure(EventType.GOAL_UNREACHABLE, message, state=self.kind.value)

    def require(self, goal: "Goal") -> "Goal":
        """Post (or reuse) a prerequisite goal that the current goal waits on."""
        posted = self.ctx.goals.request(goal)
        if self.goal is not None and all(g is not posted for g in self.goal.waiting_on):
            self.goal.waiting_on.append(posted)
        return posted

    def hand_over(self, kind: StateKind, message: str) -> None:
        self.outcome = "waiting"
        self.next_state = kind
        self.reporter.note(EventType.STATUS, message, state=self.kind.value, next=kind.value)

    def unreachable(self, exc: GoalUnreachable) -> None:
        self.fail(f"{self.describe_goal()}: {exc.message}")
