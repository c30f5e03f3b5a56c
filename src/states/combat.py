# src/states/combat.py

from __future__ import annotations

from typing import Optional

from execution.executor import ExecutorStatus
from execution.plan import Plan, Step, StepKind
from monitoring.events import EventType
from world.types import EntityInfo, Position

from .base import StateKind, TaskState


FLEE_DISTANCE = 12


class CombatState(TaskState):
    """
    Fight hostiles near the agent until none is left in the scan radius.

    One ATTACK plan per swing; the target is re-picked after each one so a
    closer or more dangerous mob takes over. At low health the agent runs
    directly away from the nearest threat instead.
    """

    kind = StateKind.COMBAT
    min_dwell_ticks = 20

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.target: Optional[EntityInfo] = None
        self.kills = 0
        self.fleeing = False

    def requires_goal(self) -> bool:
        return False

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.combat.max_ticks

    def start(self) -> Optional[Plan]:
        self.target = None
        self.kills = 0
        self.fleeing = False
        threat = self.ctx.combat.pick_target()
        if threat is not None:
            self.reporter.say(EventType.STATUS, f"Engaging {threat.kind} at {threat.position}", target=threat.id)
        return None

    def step(self) -> None:
        if self.executor.status is ExecutorStatus.RUNNING:
            self.executor.tick()
            return
        if self.fleeing:
            self.finish("Got away")
            return
        if self.target is not None and not self._alive(self.target):
            self.kills += 1
            self.target = None

        if self.ctx.combat.should_flee():
            threat = self.ctx.combat.nearest_threat_within(self.ctx.settings.combat.scan_radius)
            if threat is not None:
                self.flee_from(threat)
                return

        self.target = self.ctx.combat.pick_target()
        if self.target is None:
            self.finish(f"Area clear ({self.kills} defeated)")
            return
        self.executor.run(
            Plan.of(
                "combat",
                [Step(kind=StepKind.ATTACK, label=f"attack {self.target.kind}", params={"entity_id": self.target.id})],
            )
        )

    def flee_from(self, threat: EntityInfo) -> None:
        here = self.ctx.world.position()
        away = here - threat.position
        dx = FLEE_DISTANCE if away.x >= 0 else -FLEE_DISTANCE
        dz = FLEE_DISTANCE if away.z >= 0 else -FLEE_DISTANCE
        goal = Position(here.x + dx, here.y, here.z + dz)
        self.fleeing = True
        self.reporter.failure(EventType.STATUS, f"Health low, retreating from {threat.kind}", target=threat.id)
        self.executor.run(Plan.of("flee", [Step(kind=StepKind.MOVE, target=goal, label=f"flee to {goal}")]))

    def survival(self, candidate: StateKind) -> bool:
        # Already fighting; only yield once the dwell has passed.
        if not self.dwell_elapsed:
            return False
        if candidate is StateKind.DEFENSE:
            return self.outcome is not None and self.ctx.goals.pending(StateKind.DEFENSE)
        if candidate is StateKind.FOLLOW:
            return self.outcome is not None and self.owner_drifting()
        return False

    def status(self) -> str:
        if self.target is not None:
            return f"fighting {self.target.kind}"
        return super().status()

    def _alive(self, entity: EntityInfo) -> bool:
        return any(e.id == entity.id for e in self.ctx.world.nearby_entities(self.ctx.settings.combat.scan_radius))
