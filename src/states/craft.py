# src/states/craft.py
"""
Craft state.

With a goal: resolve it against the inventory, then run the resulting
CraftQueue through a CraftSession. Missing raw materials are turned into
gather / mining goals and the state hands over to the first of them; the
craft goal stays on the board and is planned again on re-entry.

Without a goal: craft the first affordable keep-stock item, if any.

Recipes that need a crafting table while none is placed, remembered or
held are resolved together with a table, so the planks for it are
reserved before the rest of the recipe tree takes them.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from agent.goals import Goal
from crafting.needs import assess_crafting_needs
from crafting.resolver import Resolution
from crafting.session import CraftSession, SessionStatus
from execution.errors import GoalUnreachable
from execution.plan import Plan
from world.inventory import inventory_counts

from .base import StateKind, TaskState


class CraftState(TaskState):
    kind = StateKind.CRAFT
    exit_candidates = (StateKind.GATHER, StateKind.MINING, StateKind.IDLE)

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        cfg = ctx.settings.crafting
        self.session = CraftSession(
            ctx.world,
            ctx.resolver,
            ctx.stations,
            timeout_ticks=ctx.settings.executor.step_timeout_ticks,
            max_retries=ctx.settings.executor.max_retries,
            reporter=self.reporter,
        )
        self.resolution: Optional[Resolution] = None
        self._timeout = cfg.timeout_ticks

    def requires_goal(self) -> bool:
        return False

    def timeout(self) -> Optional[int]:
        return self._timeout

    def exit(self) -> None:
        super().exit()
        self.session.cancel()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def start(self) -> Optional[Plan]:
        counts = inventory_counts(self.ctx.world.query_inventory())
        if self.goal is None:
            needs = assess_crafting_needs(self.ctx.resolver, counts, self.ctx.settings.crafting.keep_stock_of)
            if not needs:
                self.outcome = "idle"
                return None
            kind, count = needs[0]
            self.goal = self.ctx.goals.post(Goal(StateKind.CRAFT, kind, count, source="needs"))

        target = self.ctx.book.normalize(self.goal.target)
        goals: List[Tuple[str, int]] = [(target, self.goal.count)]
        resolution = self.ctx.resolver.resolve(target, self.goal.count, counts)
        if resolution.needs_table and not self.station_available(counts):
            goals.insert(0, (self.ctx.stations.kind, 1))
            resolution = self.ctx.resolver.resolve_all(goals, counts)

        if not resolution.complete:
            self.request_materials(resolution)
            return None

        self.resolution = resolution
        self.session.begin(resolution)
        return None

    def station_available(self, counts) -> bool:
        kind = self.ctx.stations.kind
        if counts[kind] > 0:
            return True
        if self.ctx.stations.known is not None:
            return True
        radius = self.ctx.settings.crafting.station_search_radius
        return bool(self.ctx.world.find_nearest_of_kind(kind, radius, 1))

    def request_materials(self, resolution: Resolution) -> None:
        """Post gather/mining goals for every missing raw material, or fail."""
        assert self.goal is not None
        unobtainable = [need.kind for need in resolution.raw if not need.obtainable]
        if unobtainable:
            self.fail(f"Cannot craft {self.describe_goal()}: no way to get {', '.join(unobtainable)}")
            return

        first: Optional[StateKind] = None
        for need in resolution.raw:
            assert need.source is not None
            if need.source.method == "mine":
                goal = self.require(Goal(StateKind.MINING, need.source.sources[0], need.count, source="craft"))
            else:
                goal = self.require(Goal(StateKind.GATHER, need.kind, need.count, source="craft"))
            first = first or goal.kind

        assert first is not None
        missing = ", ".join(f"{n.count} {n.kind}" for n in resolution.raw)
        self.hand_over(first, f"Need {missing} to craft {self.goal.target}")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step(self) -> None:
        try:
            status = self.session.tick()
        except GoalUnreachable as exc:
            if exc.subgoals and all(getattr(s, "item_kind", None) for s in exc.subgoals):
                self.retry_after_gathering(exc)
                return
            raise
        if status is SessionStatus.COMPLETE:
            assert self.goal is not None
            crafted = self.session.queue.crafted.get(self.ctx.book.normalize(self.goal.target), 0)
            self.finish(f"Crafted {crafted}x {self.goal.target}")

    def retry_after_gathering(self, exc: GoalUnreachable) -> None:
        """The station chain needs raw materials: fetch them, then plan again."""
        first: Optional[StateKind] = None
        for req in exc.subgoals:
            source = self.ctx.book.raw_source(req.item_kind)
            if source is None or not source.sources:
                self.fail(f"{self.describe_goal()}: {exc.message}")
                return
            if source.method == "mine":
                goal = self.require(Goal(StateKind.MINING, source.sources[0], req.count, source="craft"))
            else:
                goal = self.require(Goal(StateKind.GATHER, req.item_kind, req.count, source="craft"))
            first = first or goal.kind
        assert first is not None
        self.hand_over(first, exc.message)

    def status(self) -> str:
        if self.outcome is None and self.session.status is SessionStatus.RUNNING:
            queue = self.session.queue
            front = queue.front().kind if not queue.is_empty else "-"
            return f"crafting {front} ({len(queue)} left)"
        return super().status()
