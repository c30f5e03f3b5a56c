# src/states/farm.py

from __future__ import annotations

from typing import List, Optional

from agent.goals import Goal
from execution.executor import ExecutionReport
from execution.plan import Plan, ResourceRequirement, Step, StepKind
from world.inventory import inventory_counts

from .base import StateKind, TaskState


CROP = "wheat"
SEED = "wheat_seeds"
MAX_HARVEST = 16


class FarmState(TaskState):
    """
    Harvest grown wheat within `farm_radius` and replant each cell.

    Leftover wheat is turned into bread through a craft goal when the
    inventory already covers the recipe.
    """

    kind = StateKind.FARM
    exit_candidates = (StateKind.CRAFT, StateKind.IDLE)

    def requires_goal(self) -> bool:
        return False

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.states.gather_timeout_ticks

    def start(self) -> Optional[Plan]:
        radius = self.ctx.settings.states.farm_radius
        crops = self.ctx.world.find_nearest_of_kind(CROP, radius, MAX_HARVEST)
        if not crops:
            self.fail(f"No {CROP} to harvest within {radius:g} blocks")
            return None
        steps: List[Step] = []
        for pos in crops:
            steps.append(Step(kind=StepKind.COLLECT, target=pos, label=f"harvest {pos}", params={"sources": [CROP]}))
            steps.append(Step(kind=StepKind.PLANT, target=pos, resource=ResourceRequirement(SEED, 1), label=f"replant {pos}"))
        return Plan.of("farm", steps)

    def plan_complete(self, report: ExecutionReport) -> None:
        if report.succeeded == 0:
            self.fail("Farming failed")
            return
        self.finish(f"Farm round done ({report.succeeded}/{report.total} steps)")
        self.maybe_bake()

    def plan_stuck(self, report: ExecutionReport) -> None:
        super().plan_stuck(report)
        if self.outcome == "done":
            self.maybe_bake()

    def maybe_bake(self) -> None:
        counts = inventory_counts(self.ctx.world.query_inventory())
        recipe = self.ctx.resolver.select_recipe("bread", 1, counts)
        if recipe is None or not self.ctx.resolver.can_craft_now("bread", 1, counts):
            return
        batches = min(counts[kind] // qty for kind, qty in recipe.ingredients)
        self.ctx.goals.post(Goal(StateKind.CRAFT, "bread", batches * recipe.count, source="farm"))
        self.next_state = StateKind.CRAFT
