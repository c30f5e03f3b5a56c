# src/states/build.py

from __future__ import annotations

from typing import Optional

from agent.goals import Goal
from building.planner import BuildPlan
from building.templates import UnknownStructure
from crafting.recipes import RecipeBook
from execution.errors import ResourceShortage
from execution.executor import ExecutionReport
from execution.plan import Plan
from monitoring.events import EventType
from world.inventory import inventory_counts, total_building_blocks

from .base import StateKind, TaskState


class BuildState(TaskState):
    """
    Build (or repair) a structure.

    Goal: target = structure kind; params may carry `anchor` (a Position)
    and `repair=True`. A build counts as done when at least one step
    succeeded; the success ratio is reported either way. A plan that gets
    stuck on materials posts a gather goal for the primary material and
    hands over, keeping the build goal for another attempt.
    """

    kind = StateKind.BUILD
    exit_candidates = (StateKind.GATHER, StateKind.MINING, StateKind.CRAFT, StateKind.IDLE)

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.build: Optional[BuildPlan] = None

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.build.timeout_ticks

    def start(self) -> Optional[Plan]:
        assert self.goal is not None
        anchor = self.goal.params.get("anchor")
        try:
            if self.goal.params.get("repair"):
                if anchor is None:
                    self.fail(f"Repairing {self.goal.target} needs a position")
                    return None
                self.build = self.ctx.planner.plan_repair(self.goal.target, anchor)
                if self.build.plan.is_empty:
                    self.finish(f"The {self.goal.target} at {anchor} is in perfect condition")
                    return None
                self.reporter.say(
                    EventType.STATUS,
                    f"Repairing {len(self.build.missing)} blocks of the {self.goal.target} at {anchor}",
                )
            else:
                self.build = self.ctx.planner.plan_build(self.goal.target, anchor)
                # Later attempts resume on the same site.
                self.goal.params["anchor"] = self.build.anchor
                needed = self.build.placements
                held = total_building_blocks(inventory_counts(self.ctx.world.query_inventory()))
                where = "cleared site" if self.build.site is not None and self.build.site.cleared else "site"
                self.reporter.say(
                    EventType.STATUS,
                    f"Building a {self.goal.target} at {where} {self.build.anchor} "
                    f"({needed} blocks, {held} held)",
                )
        except UnknownStructure as exc:
            self.fail(str(exc))
            return None
        return self.build.plan

    def plan_complete(self, report: ExecutionReport) -> None:
        self._report_ratio(report)

    def plan_stuck(self, report: ExecutionReport) -> None:
        self.executor.cancel()
        last = report.last_error()
        if isinstance(last, ResourceShortage) and self.build is not None:
            remaining = report.total - report.consumed
            material = self.build.material
            goal = self.require(self._material_goal(material, remaining))
            self.hand_over(
                goal.kind,
                f"Out of building material with {remaining} blocks left; fetching {material}",
            )
            return
        self._report_ratio(report)

    def _material_goal(self, material: str, count: int) -> Goal:
        book: RecipeBook = self.ctx.book
        source = book.raw_source(material)
        if source is not None and source.method == "mine" and source.sources:
            return Goal(StateKind.MINING, source.sources[0], count, source="build")
        if book.is_craftable(material) and not book.is_raw(material):
            return Goal(StateKind.CRAFT, material, count, source="build")
        return Goal(StateKind.GATHER, material, count, source="build")

    def _report_ratio(self, report: ExecutionReport) -> None:
        assert self.goal is not None
        placed = f"{report.succeeded}/{report.total}"
        if report.succeeded > 0:
            self.finish(f"Finished the {self.goal.target}: {placed} steps ({report.ratio:.0%})")
        else:
            self.fail(f"Could not build the {self.goal.target}: 0/{report.total} steps")
