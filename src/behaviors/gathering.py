# src/behaviors/gathering.py

from __future__ import annotations

import logging
from typing import List, Optional

from crafting.recipes import RecipeBook
from execution.plan import Plan, ResourceRequirement, Step, StepKind
from world.interface import WorldAgent
from world.inventory import count_of
from world.types import Position


log = logging.getLogger(__name__)


class GatherBehavior:
    """
    Gather target selection.

    Knows which blocks yield an item (from the recipe book's raw-material
    table) and turns "get N of X" into a Plan of COLLECT steps. Each step
    is satisfied once the inventory holds the running total, so digging a
    block that drops several items finishes the plan early.
    """

    def __init__(self, world: WorldAgent, book: RecipeBook, *, search_radius: float = 32.0) -> None:
        self._world = world
        self._book = book
        self._radius = search_radius

    def source_blocks(self, kind: str) -> List[str]:
        kind = self._book.normalize(kind)
        raw = self._book.raw_source(kind)
        if raw is not None and raw.sources:
            return list(raw.sources)
        return [kind]

    def method_for(self, kind: str) -> str:
        raw = self._book.raw_source(self._book.normalize(kind))
        return raw.method if raw is not None else "gather"

    def nearest_source(self, kind: str) -> Optional[Position]:
        origin = self._world.position()
        best: Optional[Position] = None
        for block in self.source_blocks(kind):
            found = self._world.find_nearest_of_kind(block, self._radius, 1)
            if found and (best is None or found[0].distance(origin) < best.distance(origin)):
                best = found[0]
        return best

    def plan_collection(self, kind: str, count: int, *, name: str | None = None) -> Plan:
        kind = self._book.normalize(kind)
        held = count_of(self._world.query_inventory(), kind)
        sources = self.source_blocks(kind)
        steps = [
            Step(
                kind=StepKind.COLLECT,
                resource=ResourceRequirement(kind, 1),
                label=f"collect {kind} ({i + 1}/{count})",
                params={"sources": sources, "until": held + i + 1},
            )
            for i in range(max(0, count))
        ]
        log.debug("Collection plan for %dx %s from %s", count, kind, sources)
        return Plan.of(name or f"gather-{kind}", steps)
