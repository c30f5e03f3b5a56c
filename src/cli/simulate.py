# src/cli/simulate.py
"""
Run the agent against the in-memory world.

    python -m cli.simulate --scenario wall --ticks 400
    python -m cli.simulate --scenario table --log-level DEBUG
    python -m cli.simulate --scenario ambush --event-log logs/agent/sim.jsonl

Scenarios:

  wall     flat grass field, 20 cobblestone, "build wall"
  table    1 oak log, "craft crafting_table"
  ambush   "build house" with a zombie closing in
  crowded  stone everywhere, "build wall" has to clear its own site
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, Tuple

import yaml
from rich.console import Console

from agent.bootstrap import Agent, build_agent
from agent.logging_config import configure_logging
from crafting.recipes import RecipeBook, load_recipe_book
from monitoring.bus import EventBus
from monitoring.console import ConsoleStatusView
from monitoring.controller import AgentController
from monitoring.logger import JsonFileLogger
from settings.loader import load_settings, settings_from_dict
from settings.schema import AgentSettings
from world.types import EntityInfo, Position
from world.sim import SimWorld


log = logging.getLogger(__name__)

GROUND_Y = 63
ORIGIN = Position(0, GROUND_Y + 1, 0)


# ============================================================
# Scenarios
# ============================================================

def _wall(world: SimWorld) -> str:
    world.flat_ground(16, y=GROUND_Y)
    world.give("cobblestone", 20)
    return "build wall"


def _table(world: SimWorld) -> str:
    world.flat_ground(4, y=GROUND_Y)
    world.give("oak_log", 1)
    return "craft crafting_table"


def _ambush(world: SimWorld) -> str:
    world.flat_ground(16, y=GROUND_Y)
    world.give("oak_planks", 128)
    world.spawn(EntityInfo(id="zombie-1", kind="zombie", position=Position(4, GROUND_Y + 1, 0)))
    return "build house"


def _crowded(world: SimWorld) -> str:
    world.fill(Position(-14, GROUND_Y - 4, -14), Position(14, GROUND_Y + 4, 14), "stone")
    world.give("cobblestone", 20)
    return "build wall"


SCENARIOS: Dict[str, Callable[[SimWorld], str]] = {
    "wall": _wall,
    "table": _table,
    "ambush": _ambush,
    "crowded": _crowded,
}


def make_scenario(name: str, book: RecipeBook) -> Tuple[SimWorld, str]:
    """Fresh world for `name` plus the command that kicks it off."""
    try:
        setup = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"unknown scenario '{name}' (expected one of: {', '.join(SCENARIOS)})") from None
    world = SimWorld(position=ORIGIN, recipes=book)
    return world, setup(world)


# ============================================================
# Entry point
# ============================================================

def _load_settings(path: str | None) -> AgentSettings:
    if path is None:
        return load_settings()
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}")
    return settings_from_dict(data)


def run(agent: Agent, world: SimWorld, control: AgentController, ticks: int) -> int:
    """Advance world and agent together; stops early once idle with no goals."""
    for n in range(1, ticks + 1):
        world.tick()
        control.maybe_tick_agent()
        if n > 1 and agent.controller.active_kind.value == "idle" and not len(agent.context.goals):
            return n
    return ticks


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the agent in the simulated block world.")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), default="wall")
    parser.add_argument("--ticks", type=int, default=600, help="Maximum ticks to simulate")
    parser.add_argument("--config", default=None, help="Path to an agent.yaml (default: config/agent.yaml)")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--event-log", default=None, help="Write monitoring events as JSON lines")
    args = parser.parse_args()

    settings = _load_settings(args.config)
    configure_logging(args.log_level or settings.log_level)

    book = load_recipe_book()
    world, command = make_scenario(args.scenario, book)

    bus = EventBus()
    view = ConsoleStatusView(bus, console=Console())
    event_log = args.event_log or settings.event_log
    file_logger = JsonFileLogger(Path(event_log), bus) if event_log else None

    agent = build_agent(world, settings, bus=bus, book=book)
    control = AgentController(agent, bus)
    agent.handle_command(command, sender=settings.owner)

    try:
        used = run(agent, world, control, args.ticks)
    finally:
        control.close()
        if file_logger is not None:
            file_logger.close()

    log.info("Scenario %s ran for %d ticks", args.scenario, used)
    view.print_once()


if __name__ == "__main__":
    main()
