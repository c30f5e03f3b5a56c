#tests/test_building_planner.py

from __future__ import annotations

import pytest

from building.planner import StructurePlanner
from building.templates import StructureKind, UnknownStructure, load_structure_templates
from execution.plan import StepKind
from settings.schema import BuildSettings
from world.sim import SimWorld
from world.types import Position

from fakes.sim_helpers import ORIGIN, flat_world


def make_planner(world) -> StructurePlanner:
    return StructurePlanner(world, load_structure_templates(), config=BuildSettings())


def test_wall_plan_has_one_place_step_per_cell():
    world = flat_world()
    world.give("cobblestone", 20)

    build = make_planner(world).plan_build("wall")

    assert len(build.plan) == 15
    assert build.plan.initial_count == 15
    assert build.anchor == ORIGIN
    assert build.material == "cobblestone"
    assert all(step.kind is StepKind.PLACE for step in build.plan)
    assert build.plan.front().target == ORIGIN.offset(dx=-2)
    assert build.plan.front().params["substitutes"][0] == "cobblestone"


def test_primary_material_prefers_template_order_then_plenty():
    world = flat_world()
    world.give("dirt", 50)
    world.give("stone", 3)
    planner = make_planner(world)

    assert planner.plan_build(StructureKind.WALL).material == "stone"

    world.take("stone", 3)
    assert planner.plan_build(StructureKind.WALL).material == "dirt"


def test_clearing_fallback_puts_digs_before_placements():
    world = SimWorld(position=ORIGIN)
    world.fill(Position(-14, 59, -14), Position(14, 67, 14), "stone")
    world.give("cobblestone", 15)

    build = make_planner(world).plan_build("wall")

    assert build.site is not None and build.site.cleared
    assert build.digs == 15
    kinds = [step.kind for step in build.plan]
    assert kinds == [StepKind.DIG] * 15 + [StepKind.PLACE] * 15


def test_explicit_anchor_skips_site_search():
    world = flat_world()
    anchor = Position(5, 64, 5)

    build = make_planner(world).plan_build("tower", anchor)

    assert build.anchor == anchor
    assert build.site is None
    assert len(build.plan) == 42


def test_repair_plans_only_missing_cells():
    world = flat_world()
    planner = make_planner(world)
    cells = planner.layout_cells("wall", ORIGIN)
    for cell in cells:
        world.set_block(cell, "cobblestone")
    world.set_block(cells[3], "air")
    world.set_block(cells[10], "air")

    build = planner.plan_repair("wall", ORIGIN)

    assert build.missing == [cells[3], cells[10]]
    assert [step.target for step in build.plan] == [cells[3], cells[10]]


def test_repair_of_intact_structure_is_empty():
    world = flat_world()
    planner = make_planner(world)
    for cell in planner.layout_cells("bridge", ORIGIN):
        world.set_block(cell, "oak_planks")

    build = planner.plan_repair("bridge", ORIGIN)

    assert build.plan.is_empty
    assert build.placements == 0


def test_unknown_structure_raises():
    with pytest.raises(UnknownStructure):
        make_planner(flat_world()).plan_build("castle")
