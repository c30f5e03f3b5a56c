# src/states/explore.py

from __future__ import annotations

from typing import List, Optional

from execution.executor import ExecutionReport
from execution.plan import Plan, Step, StepKind
from world.types import Position

from .base import StateKind, TaskState


# Blocks worth mentioning when exploration ends.
POINTS_OF_INTEREST = ("coal_ore", "iron_ore", "diamond_ore", "water", "crafting_table", "chest")


def spiral_waypoints(center: Position, radius: int, stride: int) -> List[Position]:
    """
    Square spiral around `center`: ring by ring, each ring walked
    counter-clockwise from its south-west corner. Deterministic.
    """
    stride = max(1, stride)
    points: List[Position] = []
    r = stride
    while r <= radius:
        corners = [(-r, -r), (r, -r), (r, r), (-r, r)]
        for dx, dz in corners:
            points.append(center.offset(dx=dx, dz=dz))
        r += stride
    return points


class ExploreState(TaskState):
    """Walk a square spiral around the starting point and report what was seen."""

    kind = StateKind.EXPLORE

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.origin: Optional[Position] = None
        self.radius = ctx.settings.states.explore_radius

    def requires_goal(self) -> bool:
        return False

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.states.explore_timeout_ticks

    def start(self) -> Optional[Plan]:
        cfg = self.ctx.settings.states
        self.radius = int(self.goal.params.get("radius", cfg.explore_radius)) if self.goal else cfg.explore_radius
        self.origin = self.ctx.world.position()
        steps = [
            Step(kind=StepKind.MOVE, target=p, label=f"explore {p}", params={"tolerance": 3.0})
            for p in spiral_waypoints(self.origin, self.radius, cfg.explore_stride)
        ]
        return Plan.of("explore", steps)

    def plan_complete(self, report: ExecutionReport) -> None:
        self.finish(f"Explored {report.succeeded}/{report.total} waypoints; {self.findings()}")

    def plan_stuck(self, report: ExecutionReport) -> None:
        self.executor.cancel()
        if report.succeeded:
            self.finish(f"Exploration cut short at {report.succeeded}/{report.total} waypoints; {self.findings()}")
        else:
            self.fail("Could not reach any exploration waypoint")

    def findings(self) -> str:
        seen = []
        for kind in POINTS_OF_INTEREST:
            found = self.ctx.world.find_nearest_of_kind(kind, float(self.radius), 1)
            if found:
                seen.append(f"{kind} at {found[0]}")
        return "found " + ", ".join(seen) if seen else "nothing of note"
