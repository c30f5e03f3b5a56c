# core shared world types: Position, BlockInfo, InventoryItem, EntityInfo, ActionResult
# src/world/types.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class Position:
    """Integer block coordinate.

    Also used for offsets and face vectors, which are just small positions
    relative to a reference block.
    """

    x: int
    y: int
    z: int

    @classmethod
    def of(cls, x: float, y: float, z: float) -> "Position":
        """Floor arbitrary (possibly fractional) coordinates into a block position."""
        return cls(math.floor(x), math.floor(y), math.floor(z))

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "Position":
        return Position(self.x + dx, self.y + dy, self.z + dz)

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y, self.z - other.z)

    def chebyshev(self, other: "Position") -> int:
        return max(abs(self.x - other.x), abs(self.y - other.y), abs(self.z - other.z))

    def distance(self, other: "Position") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def neighbors(self) -> Tuple["Position", ...]:
        """6-connected neighbours in reference-search order."""
        return tuple(self + d for d in NEIGHBOR_OFFSETS)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


# below, above, then the four lateral faces
NEIGHBOR_OFFSETS: Tuple[Position, ...] = (
    Position(0, -1, 0),
    Position(0, 1, 0),
    Position(-1, 0, 0),
    Position(1, 0, 0),
    Position(0, 0, -1),
    Position(0, 0, 1),
)

UP = Position(0, 1, 0)


# ---------------------------------------------------------------------------
# Blocks, items, entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlockInfo:
    """Block descriptor as returned by WorldAgent.query_block()."""

    kind: str
    position: Position
    solid: bool


@dataclass(frozen=True)
class InventoryItem:
    """One inventory record: (item kind, count, slot)."""

    kind: str
    count: int
    slot: int


@dataclass
class EntityInfo:
    """
    Entity visible to the agent.

    - id: stable entity id used for attack/trade calls
    - kind: mob / player kind ("zombie", "player", "villager", ...)
    - name: player name for players, None otherwise
    """

    id: str
    kind: str
    position: Position
    name: Optional[str] = None
    health: float = 20.0


@dataclass(frozen=True)
class Vitals:
    health: float = 20.0
    food: float = 20.0


# ---------------------------------------------------------------------------
# Action results
# ---------------------------------------------------------------------------

@dataclass
class ActionResult:
    """Outcome of a single fallible world action."""

    success: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **details: Any) -> "ActionResult":
        return cls(success=True, error=None, details=dict(details))

    @classmethod
    def fail(cls, error: str, **details: Any) -> "ActionResult":
        return cls(success=False, error=error, details=dict(details))
