#tests/test_building_layouts.py

from __future__ import annotations

import pytest

from building.layouts import Footprint, generate_layout
from building.templates import StructureKind, UnknownStructure, load_structure_templates
from world.types import Position


@pytest.fixture(scope="module")
def templates():
    return load_structure_templates()


@pytest.mark.parametrize(
    "kind, expected",
    [
        (StructureKind.WALL, 15),
        (StructureKind.TOWER, 42),
        (StructureKind.HOUSE, 120),
        (StructureKind.BRIDGE, 35),
        (StructureKind.STAIRCASE, 75),
    ],
)
def test_layout_cell_counts_match_templates(templates, kind, expected):
    cells = generate_layout(templates[kind])

    assert len(cells) == expected
    assert templates[kind].material_count == expected
    assert len(set(cells)) == len(cells), "layout must not repeat a cell"


def test_layouts_are_deterministic(templates):
    for template in templates.values():
        assert generate_layout(template) == generate_layout(template)


def test_wall_is_bottom_up_and_centred(templates):
    cells = generate_layout(templates[StructureKind.WALL])

    assert cells[0] == Position(-2, 0, 0)
    assert cells[4] == Position(2, 0, 0)
    assert cells[-1] == Position(2, 2, 0)
    assert [c.y for c in cells] == sorted(c.y for c in cells)


def test_house_leaves_two_high_door_gap(templates):
    cells = set(generate_layout(templates[StructureKind.HOUSE]))
    hl = templates[StructureKind.HOUSE].length // 2

    assert Position(0, 1, -hl) not in cells
    assert Position(0, 2, -hl) not in cells
    assert Position(0, 3, -hl) in cells
    # Roof overhangs the walls by one block.
    assert Position(-3, 4, -3) in cells


def test_staircase_has_support_columns(templates):
    cells = set(generate_layout(templates[StructureKind.STAIRCASE]))

    assert Position(0, 9, 9) in cells
    assert all(Position(0, y, 9) in cells for y in range(9))
    assert Position(1, 9, 9) in cells and Position(-1, 9, 9) in cells


def test_footprint_bounds_and_ground_columns(templates):
    fp = Footprint.of(generate_layout(templates[StructureKind.WALL]))

    assert fp.size == (5, 3, 1)
    assert fp.ground_columns == ((-2, 0), (-1, 0), (0, 0), (1, 0), (2, 0))
    assert len(list(fp.volume())) == 15


def test_unknown_structure_name_is_rejected():
    with pytest.raises(UnknownStructure):
        StructureKind.parse("castle")
    assert StructureKind.parse(" Wall ") is StructureKind.WALL
