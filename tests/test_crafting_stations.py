# tests/test_crafting_stations.py
"""
Station fallback chain: known -> nearby -> place held -> craft and place.
"""

from __future__ import annotations

import pytest

from crafting.recipes import load_recipe_book
from crafting.resolver import CraftingResolver
from crafting.stations import StationLocator
from execution.errors import GoalUnreachable
from world.sim import SimWorld
from world.types import Position

from fakes.sim_helpers import ORIGIN, drive, flat_world


def make_locator(world) -> StationLocator:
    return StationLocator(world, CraftingResolver(load_recipe_book()))


def action_names(world):
    return [name for name, _ in world.action_log]


def test_remembered_station_is_reused_without_actions():
    world = flat_world()
    table = Position(3, 64, 3)
    world.set_block(table, "crafting_table")
    locator = make_locator(world)
    locator.remember(table)

    result = drive(locator.ensure(), world)

    assert result.value == table
    assert world.action_log == []


def test_stale_memory_falls_back_to_nearest_station():
    world = flat_world()
    world.set_block(Position(3, 64, 0), "crafting_table")
    world.set_block(Position(8, 64, 0), "crafting_table")
    locator = make_locator(world)
    locator.remember(Position(5, 64, 5))

    result = drive(locator.ensure(), world)

    assert result.value == Position(3, 64, 0)
    assert locator.known == Position(3, 64, 0)


def test_held_station_is_placed_next_to_agent():
    world = flat_world()
    world.give("crafting_table", 1)
    locator = make_locator(world)

    result = drive(locator.ensure(), world)

    cell = ORIGIN.offset(dx=1)
    assert result.value == cell
    assert world.block_kind(cell) == "crafting_table"
    assert action_names(world) == ["place_block"]
    assert world.held("crafting_table") == 0


def test_station_is_crafted_then_placed():
    world = flat_world()
    world.give("oak_log", 1)
    locator = make_locator(world)

    result = drive(locator.ensure(), world)

    assert world.block_kind(result.value) == "crafting_table"
    assert action_names(world) == ["craft", "craft", "place_block"]
    assert world.held("oak_log") == 0


def test_nothing_to_craft_from_fails_goal():
    world = flat_world()
    locator = make_locator(world)

    with pytest.raises(GoalUnreachable) as info:
        drive(locator.ensure(), world)

    assert info.value.missing == {"crafting_table": {"oak_log": 1}}
    assert [r.item_kind for r in info.value.subgoals] == ["oak_log"]
    assert world.action_log == []


def test_no_room_to_place_fails_goal():
    # No ground anywhere around the agent.
    world = SimWorld(position=ORIGIN)
    world.give("crafting_table", 1)

    with pytest.raises(GoalUnreachable):
        drive(make_locator(world).ensure(), world)
