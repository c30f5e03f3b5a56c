# src/states/fish.py

from __future__ import annotations

from typing import Optional

from agent.goals import Goal
from execution.executor import ExecutionReport
from execution.plan import Plan, ResourceRequirement, Step, StepKind
from world.inventory import count_of

from .base import StateKind, TaskState


ROD = "fishing_rod"
CATCH = "cod"
WATER_SEARCH_RADIUS = 16.0


class FishState(TaskState):
    """Cast `goal.count` times (default `fish_casts`) into the nearest water."""

    kind = StateKind.FISH
    exit_candidates = (StateKind.CRAFT, StateKind.IDLE)

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.caught_before = 0

    def requires_goal(self) -> bool:
        return False

    def start(self) -> Optional[Plan]:
        casts = self.goal.count if self.goal is not None else self.ctx.settings.states.fish_casts
        inventory = self.ctx.world.query_inventory()
        if count_of(inventory, ROD) <= 0:
            if self.goal is not None and self.ctx.book.is_craftable(ROD):
                self.require(Goal(StateKind.CRAFT, ROD, 1, source="fish"))
                self.hand_over(StateKind.CRAFT, "Need a fishing rod first")
            else:
                self.fail("No fishing rod")
            return None

        water = self.ctx.world.find_nearest_of_kind("water", WATER_SEARCH_RADIUS, 1)
        if not water:
            self.fail(f"No water within {WATER_SEARCH_RADIUS:g} blocks")
            return None

        self.caught_before = count_of(inventory, CATCH)
        steps = [
            Step(kind=StepKind.USE, target=water[0], resource=ResourceRequirement(ROD, 1), label=f"cast {i + 1}/{casts}")
            for i in range(casts)
        ]
        return Plan.of("fish", steps)

    def plan_complete(self, report: ExecutionReport) -> None:
        caught = count_of(self.ctx.world.query_inventory(), CATCH) - self.caught_before
        if caught > 0:
            self.finish(f"Caught {caught} fish in {report.total} casts")
        else:
            self.fail(f"Caught nothing in {report.total} casts")
