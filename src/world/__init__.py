"""World-facing types, the WorldAgent interface and a simulated world."""

from .types import (
    ActionResult,
    BlockInfo,
    EntityInfo,
    InventoryItem,
    Position,
    Vitals,
    NEIGHBOR_OFFSETS,
    UP,
)
from .interface import WorldAgent

__all__ = [
    "ActionResult",
    "BlockInfo",
    "EntityInfo",
    "InventoryItem",
    "Position",
    "Vitals",
    "NEIGHBOR_OFFSETS",
    "UP",
    "WorldAgent",
]
