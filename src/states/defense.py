# src/states/defense.py

from __future__ import annotations

from typing import Optional

from execution.executor import ExecutorStatus
from execution.plan import Plan, Step, StepKind
from monitoring.events import EventType
from world.types import Position

from .base import StateKind, TaskState


class DefenseState(TaskState):
    """
    Guard a spot for a while.

    The spot is the agent's position when the state is entered; the goal's
    count is unused and `params["radius"]` overrides the configured radius.
    Hostiles inside the radius are attacked (the state does its own
    fighting, so Combat does not preempt it); otherwise the agent walks
    back to the spot when it has drifted away.
    """

    kind = StateKind.DEFENSE
    min_dwell_ticks = 20
    limit_attempts = False

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.center: Optional[Position] = None
        self.radius = ctx.settings.states.defense_radius
        self.swings = 0

    def timeout(self) -> Optional[int]:
        return None

    def start(self) -> Optional[Plan]:
        assert self.goal is not None
        self.center = self.goal.params.get("center") or self.ctx.world.position()
        self.radius = float(self.goal.params.get("radius", self.ctx.settings.states.defense_radius))
        self.swings = 0
        self.reporter.say(
            EventType.STATUS,
            f"Defending {self.center} (radius {self.radius:g}) for {self.duration} ticks",
        )
        return None

    @property
    def duration(self) -> int:
        return self.ctx.settings.states.defense_duration_ticks

    def step(self) -> None:
        if self.executor.status is ExecutorStatus.RUNNING:
            self.executor.tick()
            return
        if self.ticks_in_state >= self.duration:
            self.finish(f"Defense of {self.center} over ({self.swings} attacks)")
            return

        threat = self.ctx.combat.pick_target(self.radius)
        if threat is not None:
            self.swings += 1
            self.executor.run(
                Plan.of("defend", [Step(kind=StepKind.ATTACK, label=f"attack {threat.kind}", params={"entity_id": threat.id})])
            )
            return

        assert self.center is not None
        if self.ctx.world.position().distance(self.center) > self.ctx.settings.states.follow_near:
            self.executor.run(Plan.of("patrol", [Step(kind=StepKind.MOVE, target=self.center, label="return to post")]))

    def survival(self, candidate: StateKind) -> bool:
        if candidate is StateKind.FOLLOW:
            return self.outcome is not None and self.owner_drifting()
        return False
