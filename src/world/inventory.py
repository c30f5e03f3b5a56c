# inventory helpers
# src/world/inventory.py

from collections import Counter
from typing import Iterable, List, Sequence

from .blocks import is_valid_building_block, normalize_kind
from .types import InventoryItem


def inventory_counts(items: Iterable[InventoryItem]) -> Counter:
    """
    Collapse inventory slots into a Counter keyed by item kind.

    Slots with a non-positive count are ignored.
    """
    counts: Counter = Counter()
    for item in items:
        if item.count <= 0:
            continue
        counts[normalize_kind(item.kind)] += item.count
    return counts


def count_of(items: Iterable[InventoryItem], kind: str) -> int:
    return inventory_counts(items)[normalize_kind(kind)]


def building_materials(counts: Counter, preferred: Sequence[str] = ()) -> List[str]:
    """
    Rank held building materials.

    Preferred kinds come first (in the given order) when held; then every
    other valid building block, most plentiful first, ties by name.
    """
    ranked: List[str] = []
    for kind in preferred:
        if counts.get(kind, 0) > 0 and kind not in ranked:
            ranked.append(kind)

    others = sorted(
        (k for k, n in counts.items() if n > 0 and k not in ranked and is_valid_building_block(k)),
        key=lambda k: (-counts[k], k),
    )
    ranked.extend(others)
    return ranked


def total_building_blocks(counts: Counter) -> int:
    return sum(n for k, n in counts.items() if is_valid_building_block(k))
