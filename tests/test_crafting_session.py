# tests/test_crafting_session.py

from __future__ import annotations

import pytest

from crafting.recipes import load_recipe_book
from crafting.resolver import CraftingResolver
from crafting.session import CraftSession, SessionStatus
from crafting.stations import StationLocator
from execution.errors import GoalUnreachable
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.status import StatusReporter
from world.inventory import inventory_counts
from world.types import Position

from fakes.sim_helpers import EventRecorder, flat_world


def make_session(world):
    book = load_recipe_book()
    resolver = CraftingResolver(book)
    bus = EventBus()
    recorder = EventRecorder(bus)
    session = CraftSession(
        world,
        resolver,
        StationLocator(world, resolver),
        reporter=StatusReporter(bus, module="crafting.session"),
    )
    return session, resolver, recorder


def run_session(session: CraftSession, world, max_ticks: int = 50) -> int:
    for n in range(1, max_ticks + 1):
        if session.tick() is SessionStatus.COMPLETE:
            return n
        world.tick()
    raise AssertionError("session did not complete")


def test_table_from_one_log():
    world = flat_world()
    world.give("oak_log", 1)
    session, resolver, recorder = make_session(world)

    session.begin(resolver.resolve("crafting_table", 1, inventory_counts(world.query_inventory())))
    run_session(session, world)

    assert world.held("crafting_table") == 1
    assert world.held("oak_log") == 0
    assert world.held("oak_planks") == 0
    assert recorder.messages(EventType.CRAFTED) == ["Crafted 4x oak_planks", "Crafted 1x crafting_table"]
    assert session.queue.crafted == {"oak_planks": 4, "crafting_table": 1}


def test_table_recipe_places_station_and_walks_to_it():
    world = flat_world()
    world.give("oak_log", 3)
    session, resolver, _ = make_session(world)

    counts = inventory_counts(world.query_inventory())
    session.begin(resolver.resolve_all([("crafting_table", 1), ("wooden_pickaxe", 1)], counts))
    run_session(session, world)

    assert world.held("wooden_pickaxe") == 1
    # The table was placed in the world to craft the pickaxe.
    assert world.held("crafting_table") == 0
    assert world.find_nearest_of_kind("crafting_table", 5.0)
    assert world.held("oak_log") == 0


def test_blocked_queue_fails_goal_after_full_pass():
    world = flat_world()
    session, resolver, _ = make_session(world)

    session.begin(resolver.resolve("crafting_table", 1, {}))
    assert session.tick() is SessionStatus.RUNNING

    with pytest.raises(GoalUnreachable) as info:
        session.tick()

    assert session.status is SessionStatus.FAILED
    assert info.value.missing["oak_planks"] == {"oak_log": 1}
    assert info.value.missing["crafting_table"] == {"oak_planks": 4}
    assert world.action_log == []


def test_nothing_to_craft_completes_immediately():
    world = flat_world()
    world.give("stick", 4)
    session, resolver, _ = make_session(world)
    resolution = resolver.resolve("wooden_pickaxe", 1, {"oak_planks": 3, "stick": 2})
    resolution.crafts.clear()

    session.begin(resolution)

    assert session.status is SessionStatus.COMPLETE
    assert session.tick() is SessionStatus.COMPLETE


def test_rejected_craft_call_is_retried_not_livelocked():
    world = flat_world()
    world.give("oak_log", 1)
    session, resolver, recorder = make_session(world)

    session.begin(resolver.resolve("oak_planks", 4, inventory_counts(world.query_inventory())))
    world.fail_next["craft"] = 1
    run_session(session, world)

    assert world.held("oak_planks") == 4
    assert recorder.messages(EventType.CRAFTED) == ["Crafted 4x oak_planks"]
    assert session.queue.missing_ingredients == {}
    assert [name for name, _ in world.action_log] == ["craft", "craft"]


def test_lost_path_to_station_is_retried():
    world = flat_world()
    world.set_block(Position(2, 64, 0), "crafting_table")
    world.give("oak_planks", 3)
    world.give("stick", 2)
    session, resolver, _ = make_session(world)

    session.begin(resolver.resolve("wooden_pickaxe", 1, inventory_counts(world.query_inventory())))
    world.fail_next["move_near"] = 1
    run_session(session, world)

    assert world.held("wooden_pickaxe") == 1
    assert [name for name, _ in world.action_log] == ["move_near", "move_near", "craft"]


def test_entry_dropped_after_max_retries_fails_goal():
    world = flat_world()
    world.give("oak_log", 1)
    session, resolver, _ = make_session(world)

    session.begin(resolver.resolve("oak_planks", 4, inventory_counts(world.query_inventory())))
    world.fail_next["craft"] = 3

    with pytest.raises(GoalUnreachable, match="gave up on oak_planks"):
        run_session(session, world)

    assert session.status is SessionStatus.FAILED
    assert session.queue.dropped == ["oak_planks"]
    assert world.held("oak_log") == 1
