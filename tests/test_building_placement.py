#tests/test_building_placement.py
"""
Tests for building.placement.PlacementRunner against the simulated world.
"""

from __future__ import annotations

from building.placement import PlacementRunner
from execution.errors import PlacementFailure, ResourceShortage, WorldInconsistency
from execution.plan import ResourceRequirement, Step, StepKind, StepOutcome
from world.sim import SimWorld
from world.types import Position

from fakes.sim_helpers import GROUND_Y, ORIGIN, drive, flat_world


def place_step(target: Position, material: str = "cobblestone", **params) -> Step:
    return Step(kind=StepKind.PLACE, target=target, resource=ResourceRequirement(material, 1), params=params)


def test_places_block_on_ground_and_verifies_it():
    world = flat_world()
    world.give("cobblestone", 1)

    result = drive(PlacementRunner(world)(place_step(ORIGIN)), world)

    assert result.error is None
    assert result.value is StepOutcome.DONE
    assert world.block_kind(ORIGIN) == "cobblestone"
    assert world.held("cobblestone") == 0


def test_already_solid_target_is_done_without_acting():
    world = flat_world()

    result = drive(PlacementRunner(world)(place_step(Position(0, GROUND_Y, 0))), world)

    assert result.value is StepOutcome.DONE
    assert world.action_log == []


def test_substitutes_ranked_material_when_primary_missing():
    world = flat_world()
    world.give("dirt", 10)
    world.give("oak_planks", 1)

    step = place_step(ORIGIN, "cobblestone", substitutes=("stone", "oak_planks"))
    result = drive(PlacementRunner(world)(step), world)

    assert result.value is StepOutcome.DONE
    assert world.block_kind(ORIGIN) == "oak_planks"
    assert world.held("dirt") == 10


def test_empty_inventory_is_resource_shortage():
    world = flat_world()

    result = drive(PlacementRunner(world)(place_step(ORIGIN)), world)

    assert isinstance(result.error, ResourceShortage)
    assert result.error.kind == "cobblestone"
    assert world.action_log == []


def test_floating_target_gets_support_block_first():
    world = SimWorld(position=ORIGIN)
    target = Position(0, 70, 0)
    world.set_block(Position(1, 70, 1), "stone")
    world.give("cobblestone", 2)
    runner = PlacementRunner(world)

    first = drive(runner(place_step(target)), world)
    assert first.value is StepOutcome.PROGRESSED
    assert world.block_kind(Position(1, 70, 0)) == "cobblestone"
    assert world.block_kind(target) == "air"

    second = drive(runner(place_step(target)), world)
    assert second.value is StepOutcome.DONE
    assert world.block_kind(target) == "cobblestone"


def test_no_reference_and_no_support_is_placement_failure():
    world = SimWorld(position=ORIGIN)
    world.give("cobblestone", 1)

    result = drive(PlacementRunner(world)(place_step(Position(0, 80, 0))), world)

    assert isinstance(result.error, PlacementFailure)


def test_stale_success_is_not_trusted():
    world = flat_world()
    world.give("cobblestone", 1)
    world.ghost_places = 1

    result = drive(PlacementRunner(world)(place_step(ORIGIN)), world)

    assert isinstance(result.error, PlacementFailure)
    assert world.block_kind(ORIGIN) == "air"


def test_unloaded_target_is_world_inconsistency():
    world = flat_world()
    world.give("cobblestone", 1)
    world.unload([ORIGIN])

    result = drive(PlacementRunner(world)(place_step(ORIGIN)), world)

    assert isinstance(result.error, WorldInconsistency)
