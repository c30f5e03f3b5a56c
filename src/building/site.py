# src/building/site.py
"""
Build-site selection.

Scans expanding Chebyshev rings around the agent for an anchor where:

  (a) a solid surface lies within `ground_probe_depth` blocks straight
      down from the agent's height, and
  (b) the layout's bounding box above that surface is loaded and empty,
      with solid ground under every bottom-layer column.

The first passing candidate wins. When the rings are exhausted the
finder falls back to the agent's own column and lists the cells that
must be dug out first; protected blocks (bedrock, barrier) are never
listed. The returned anchor is never None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from world.blocks import DEFAULT_PROTECTED_KINDS, is_air_like, is_protected, is_solid
from world.interface import WorldAgent
from world.types import Position

from .layouts import Footprint


log = logging.getLogger(__name__)


@dataclass
class SiteSelection:
    anchor: Position
    cleared: bool = False                 # True when the clearing fallback was used
    clear_cells: List[Position] = field(default_factory=list)
    candidates_checked: int = 0


def ring_offsets(r: int) -> List[Tuple[int, int]]:
    """(dx, dz) pairs at Chebyshev distance exactly r; x ascending, then z."""
    if r == 0:
        return [(0, 0)]
    return [
        (dx, dz)
        for dx in range(-r, r + 1)
        for dz in range(-r, r + 1)
        if max(abs(dx), abs(dz)) == r
    ]


class SiteFinder:
    def __init__(
        self,
        world: WorldAgent,
        *,
        search_radius: int = 10,
        ground_probe_depth: int = 3,
        protected: Iterable[str] = DEFAULT_PROTECTED_KINDS,
    ) -> None:
        self._world = world
        self._radius = search_radius
        self._probe = ground_probe_depth
        self._protected = frozenset(protected)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find(self, footprint: Footprint, origin: Optional[Position] = None) -> SiteSelection:
        origin = origin or self._world.position()
        checked = 0

        for r in range(self._radius + 1):
            for dx, dz in ring_offsets(r):
                checked += 1
                anchor = self.ground_anchor(origin.offset(dx=dx, dz=dz))
                if anchor is not None and self.is_suitable(anchor, footprint):
                    log.debug("SiteFinder picked %s at ring %d after %d candidates", anchor, r, checked)
                    return SiteSelection(anchor=anchor, candidates_checked=checked)

        anchor = self.ground_anchor(origin) or origin
        cells = self.clearing_cells(anchor, footprint)
        log.info(
            "No open site within %d blocks; clearing %d blocks at %s",
            self._radius,
            len(cells),
            anchor,
        )
        return SiteSelection(anchor=anchor, cleared=True, clear_cells=cells, candidates_checked=checked)

    def ground_anchor(self, column: Position) -> Optional[Position]:
        """First air cell above the highest solid block within the probe depth."""
        for d in range(self._probe + 1):
            pos = column.offset(dy=-d)
            block = self._world.query_block(pos)
            if block is None:
                return None
            if block.solid:
                return pos.offset(dy=1)
        return None

    def is_suitable(self, anchor: Position, footprint: Footprint) -> bool:
        for cx, cz in footprint.ground_columns:
            below = anchor.offset(dx=cx, dy=footprint.min_y - 1, dz=cz)
            if not is_solid(self._world.query_block(below)):
                return False

        for off in footprint.volume():
            block = self._world.query_block(anchor + off)
            if block is None or not is_air_like(block.kind):
                return False
        return True

    def clearing_cells(self, anchor: Position, footprint: Footprint) -> List[Position]:
        cells: List[Position] = []
        for off in footprint.volume():
            pos = anchor + off
            block = self._world.query_block(pos)
            if block is None:
                log.debug("SiteFinder cannot see %s while clearing; skipping", pos)
                continue
            if is_air_like(block.kind) or is_protected(block.kind, self._protected):
                continue
            cells.append(pos)
        return cells
