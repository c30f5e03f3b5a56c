# src/agent/bootstrap.py
"""
Agent wiring.

build_agent() is the single entrypoint that turns a WorldAgent plus
settings into a running Agent:

  - recipe book + structure templates (YAML under config/)
  - behaviours, planners, resolver and station locator
  - the step-runner table shared by every state's Executor
  - one instance of each state, the StateController and the CommandRouter

Nothing here is global; two agents can share a process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from behaviors.combat import CombatBehavior
from behaviors.gathering import GatherBehavior
from building.placement import PlacementRunner
from building.planner import StructurePlanner
from building.templates import StructureKind, StructureTemplate, load_structure_templates
from crafting.recipes import RecipeBook, load_recipe_book
from crafting.resolver import CraftingResolver
from crafting.stations import StationLocator
from execution.plan import StepKind
from execution.runners import default_runners
from monitoring.bus import EventBus
from monitoring.status import StatusReporter
from settings.schema import AgentSettings
from states.base import StateKind
from states.registry import build_states
from world.interface import WorldAgent

from .commands import CommandResult, CommandRouter
from .context import AgentContext
from .controller import StateController


log = logging.getLogger(__name__)


@dataclass
class Agent:
    """A wired agent. Call tick() once per world tick."""

    world: WorldAgent
    settings: AgentSettings
    context: AgentContext
    controller: StateController
    commands: CommandRouter
    bus: Optional[EventBus] = None

    def tick(self) -> StateKind:
        return self.controller.tick()

    def handle_command(self, text: str, sender: Optional[str] = None) -> CommandResult:
        return self.commands.handle(text, sender)

    def change_state(self, name: str) -> bool:
        return self.controller.change_state(name)

    def stop(self) -> None:
        self.commands.handle("stop")

    def debug_state(self) -> Dict[str, Any]:
        snapshot = self.controller.snapshot()
        snapshot["position"] = self.world.position().as_tuple()
        snapshot["goals"] = [g.describe() for g in self.context.goals.all()]
        snapshot["station"] = (
            self.context.stations.known.as_tuple() if self.context.stations.known is not None else None
        )
        return snapshot


def build_agent(
    world: WorldAgent,
    settings: Optional[AgentSettings] = None,
    *,
    bus: Optional[EventBus] = None,
    book: Optional[RecipeBook] = None,
    templates: Optional[Dict[StructureKind, StructureTemplate]] = None,
    chat: bool = True,
) -> Agent:
    settings = settings if settings is not None else AgentSettings()
    book = book if book is not None else load_recipe_book()
    templates = templates if templates is not None else load_structure_templates()

    reporter = StatusReporter(bus, chat=world.chat if chat else None, module="agent")

    resolver = CraftingResolver(book, max_depth=settings.crafting.max_resolution_depth)
    runners = dict(
        default_runners(
            world,
            reach=settings.build.reach,
            attack_range=settings.combat.attack_range,
            search_radius=settings.states.search_radius,
            protected=settings.build.protected_blocks,
        )
    )
    runners[StepKind.PLACE] = PlacementRunner(world, reach=settings.build.reach)

    ctx = AgentContext(
        world=world,
        settings=settings,
        reporter=reporter,
        combat=CombatBehavior(world, settings.combat),
        gathering=GatherBehavior(world, book, search_radius=settings.states.search_radius),
        planner=StructurePlanner(world, templates, config=settings.build),
        book=book,
        resolver=resolver,
        stations=StationLocator(
            world,
            resolver,
            kind=settings.crafting.station_kind,
            search_radius=settings.crafting.station_search_radius,
        ),
        runners=runners,
        bus=bus,
    )

    states = build_states(ctx)
    controller = StateController(states, ctx.goals, reporter=reporter.child("agent.controller"))
    ctx.request_state = controller.request_state
    ctx.clock = lambda: controller.ticks

    commands = CommandRouter(
        controller,
        ctx.goals,
        book,
        reporter=reporter.child("agent.commands"),
        prefix=settings.command_prefix,
        owner=settings.owner,
    )
    log.info("Agent %s ready with %d states", settings.name, len(states))
    return Agent(world=world, settings=settings, context=ctx, controller=controller, commands=commands, bus=bus)
