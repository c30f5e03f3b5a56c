# src/crafting/stations.py
"""
Crafting-station fallback chain.

ensure() is a cooperative task returning the position of a usable
station, trying in order:

  1. the remembered position, if the block there is still a station
  2. the nearest station within the search radius
  3. placing one from the inventory next to the agent
  4. crafting one (via the resolver, from what is held) and placing it

Any link that fails ends the whole chain with GoalUnreachable: the craft
goal that needed the station fails cleanly instead of half-running.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from execution.errors import GoalUnreachable
from execution.task import Task
from world.blocks import is_air_like, is_solid
from world.interface import WorldAgent
from world.inventory import inventory_counts
from world.types import UP, Position

from .resolver import CraftingResolver


log = logging.getLogger(__name__)

# Cells around the agent tried for placing a station, nearest first.
PLACEMENT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (1, 0), (-1, 0), (0, 1), (0, -1),
    (1, 1), (-1, -1), (1, -1), (-1, 1),
    (2, 0), (-2, 0), (0, 2), (0, -2),
)


class StationLocator:
    def __init__(
        self,
        world: WorldAgent,
        resolver: CraftingResolver,
        *,
        kind: str = "crafting_table",
        search_radius: float = 20.0,
    ) -> None:
        self._world = world
        self._resolver = resolver
        self._kind = kind
        self._radius = search_radius
        self._known: Optional[Position] = None

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def known(self) -> Optional[Position]:
        return self._known

    def remember(self, pos: Position) -> None:
        self._known = pos

    def forget(self) -> None:
        self._known = None

    # ------------------------------------------------------------------
    # Fallback chain
    # ------------------------------------------------------------------

    def ensure(self) -> Task:
        if self._known is not None:
            block = self._world.query_block(self._known)
            if block is not None and block.kind == self._kind:
                return self._known
            log.info("Remembered %s at %s is gone", self._kind, self._known)
            self._known = None

        found = self._world.find_nearest_of_kind(self._kind, self._radius, 1)
        if found:
            self._known = found[0]
            log.debug("Using %s found at %s", self._kind, self._known)
            return self._known

        if inventory_counts(self._world.query_inventory())[self._kind] <= 0:
            yield from self._craft_station()

        pos = yield from self._place_station()
        return pos

    def placement_cell(self) -> Optional[Position]:
        """First empty cell next to the agent that has solid ground below."""
        origin = self._world.position()
        for dx, dz in PLACEMENT_OFFSETS:
            cell = origin.offset(dx=dx, dz=dz)
            block = self._world.query_block(cell)
            if block is None or not is_air_like(block.kind):
                continue
            if is_solid(self._world.query_block(cell.offset(dy=-1))):
                return cell
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _craft_station(self) -> Task:
        counts = inventory_counts(self._world.query_inventory())
        resolution = self._resolver.resolve(self._kind, 1, counts)
        if not resolution.complete:
            missing = resolution.missing()
            raise GoalUnreachable(
                f"need a {self._kind} but cannot craft one (missing {_fmt(missing)})",
                details={"station": self._kind},
                missing={self._kind: missing},
                subgoals=[r.requirement() for r in resolution.raw],
            )
        if resolution.needs_table:
            raise GoalUnreachable(f"crafting a {self._kind} needs a {self._kind}")

        for entry in resolution.crafts:
            result = yield self._world.craft(entry.recipe.id, entry.batches, None)
            if not result.success:
                raise GoalUnreachable(
                    f"crafting {entry.kind} for a {self._kind} failed: {result.error}",
                    details=dict(result.details),
                )
        log.info("Crafted a %s", self._kind)
        return None

    def _place_station(self) -> Task:
        cell = self.placement_cell()
        if cell is None:
            raise GoalUnreachable(f"no room to place a {self._kind}")

        result = yield self._world.place_block(cell.offset(dy=-1), UP, self._kind)
        if not result.success:
            raise GoalUnreachable(f"placing a {self._kind} failed: {result.error}", details=dict(result.details))

        block = self._world.query_block(cell)
        if block is None or block.kind != self._kind:
            raise GoalUnreachable(f"placed {self._kind} at {cell} did not take")

        self._known = cell
        log.info("Placed %s at %s", self._kind, cell)
        return cell


def _fmt(missing: dict) -> str:
    parts: List[str] = [f"{n} {k}" for k, n in missing.items()]
    return ", ".join(parts) or "nothing"
