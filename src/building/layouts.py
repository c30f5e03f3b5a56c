# src/building/layouts.py
"""
Deterministic shape generation.

Each generator turns a StructureTemplate into an ordered list of block
offsets relative to the anchor (the first air cell above the ground, at
the structure's centre line). Order is bottom-up so every block after the
first layer has something underneath or beside it to be placed against.

Same template in, same ordered list out: no randomness, no world access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Tuple

from world.types import Position

from .templates import StructureKind, StructureTemplate


LayoutFn = Callable[[StructureTemplate], List[Position]]


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


def wall_layout(t: StructureTemplate) -> List[Position]:
    """Single-layer width x height grid, centred on x."""
    half = t.width // 2
    return [Position(x - half, y, 0) for y in range(t.height) for x in range(t.width)]


def tower_layout(t: StructureTemplate) -> List[Position]:
    """
    Round-ish tower: cells with x^2 + z^2 <= r^2 + 1 per layer, hollow
    except for the base and top layers.
    """
    r = t.width // 2
    cells: List[Position] = []
    for y in range(t.height):
        solid_layer = y == 0 or y == t.height - 1
        for x in range(-r, r + 1):
            for z in range(-r, r + 1):
                if x * x + z * z > r * r + 1:
                    continue
                if not solid_layer and abs(x) < r and abs(z) < r:
                    continue
                cells.append(Position(x, y, z))
    return cells


def house_layout(t: StructureTemplate) -> List[Position]:
    """
    Floor, perimeter walls with a two-high door gap in the middle of the
    front (-z) wall, and a roof overhanging the walls by one on every side.
    """
    hw, hl = t.width // 2, t.length // 2
    cells: List[Position] = []

    for x in range(-hw, hw + 1):
        for z in range(-hl, hl + 1):
            cells.append(Position(x, 0, z))

    for y in range(1, t.height):
        for x in range(-hw, hw + 1):
            for z in range(-hl, hl + 1):
                if abs(x) != hw and abs(z) != hl:
                    continue
                if x == 0 and z == -hl and y in (1, 2):
                    continue
                cells.append(Position(x, y, z))

    for x in range(-hw - 1, hw + 2):
        for z in range(-hl - 1, hl + 2):
            cells.append(Position(x, t.height, z))
    return cells


def bridge_layout(t: StructureTemplate) -> List[Position]:
    """One floor row per unit of length plus a railing block on each side."""
    hw = t.width // 2
    cells: List[Position] = []
    for z in range(t.length):
        for x in range(-hw, hw + 1):
            cells.append(Position(x, 0, z))
        cells.append(Position(-hw, 1, z))
        cells.append(Position(hw, 1, z))
    return cells


def staircase_layout(t: StructureTemplate) -> List[Position]:
    """Rising steps along +z with side rails and a support column under each step."""
    cells: List[Position] = []
    for s in range(t.steps):
        cells.append(Position(0, s, s))
        cells.append(Position(-1, s, s))
        cells.append(Position(1, s, s))
        for y in range(s):
            cells.append(Position(0, y, s))
    return cells


LAYOUTS: Dict[StructureKind, LayoutFn] = {
    StructureKind.WALL: wall_layout,
    StructureKind.TOWER: tower_layout,
    StructureKind.HOUSE: house_layout,
    StructureKind.BRIDGE: bridge_layout,
    StructureKind.STAIRCASE: staircase_layout,
}


def generate_layout(template: StructureTemplate) -> List[Position]:
    return LAYOUTS[template.kind](template)


# ---------------------------------------------------------------------------
# Footprint
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Footprint:
    """Bounding box of a layout plus the columns that need ground underneath."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int
    min_z: int
    max_z: int
    ground_columns: Tuple[Tuple[int, int], ...]

    @classmethod
    def of(cls, offsets: List[Position]) -> "Footprint":
        if not offsets:
            return cls(0, 0, 0, 0, 0, 0, ())
        min_y = min(p.y for p in offsets)
        columns = sorted({(p.x, p.z) for p in offsets if p.y == min_y})
        return cls(
            min_x=min(p.x for p in offsets),
            max_x=max(p.x for p in offsets),
            min_y=min_y,
            max_y=max(p.y for p in offsets),
            min_z=min(p.z for p in offsets),
            max_z=max(p.z for p in offsets),
            ground_columns=tuple(columns),
        )

    def volume(self) -> Iterator[Position]:
        """Every offset in the bounding box, bottom-up."""
        for y in range(self.min_y, self.max_y + 1):
            for x in range(self.min_x, self.max_x + 1):
                for z in range(self.min_z, self.max_z + 1):
                    yield Position(x, y, z)

    @property
    def size(self) -> Tuple[int, int, int]:
        return (
            self.max_x - self.min_x + 1,
            self.max_y - self.min_y + 1,
            self.max_z - self.min_z + 1,
        )
