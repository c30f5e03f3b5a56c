# src/crafting/needs.py

from __future__ import annotations

import logging
from typing import List, Mapping, Tuple

from execution.errors import GoalUnreachable

from .resolver import CraftingResolver


log = logging.getLogger(__name__)


def assess_crafting_needs(
    resolver: CraftingResolver,
    inventory: Mapping[str, int],
    keep_stock_of: Mapping[str, int],
) -> List[Tuple[str, int]]:
    """
    Items to craft so the inventory meets the keep-stock targets.

    Only shortfalls the current inventory can actually cover (no raw
    material missing) are returned, in config order, so idle crafting
    never turns into a gathering trip.
    """
    needs: List[Tuple[str, int]] = []
    for kind, wanted in keep_stock_of.items():
        kind = resolver.book.normalize(kind)
        short = wanted - inventory.get(kind, 0)
        if short <= 0:
            continue
        try:
            resolution = resolver.resolve(kind, short, inventory)
        except GoalUnreachable as exc:
            log.debug("Skipping stock item %s: %s", kind, exc)
            continue
        if resolution.complete:
            needs.append((kind, short))
    return needs
