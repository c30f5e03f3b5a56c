# src/agent/context.py
"""
AgentContext: everything a State or behaviour needs, passed in explicitly.

There is no global manager object; the bootstrap builds one context and
hands it to every state constructor. `request_state` and `clock` are
bound to the controller once it exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from behaviors.combat import CombatBehavior
from behaviors.gathering import GatherBehavior
from building.planner import StructurePlanner
from crafting.recipes import RecipeBook
from crafting.resolver import CraftingResolver
from crafting.stations import StationLocator
from execution.executor import Executor, StepRunner
from execution.plan import StepKind
from monitoring.bus import EventBus
from monitoring.status import StatusReporter
from settings.schema import AgentSettings
from states.base import StateKind
from world.interface import WorldAgent
from world.types import EntityInfo

from .goals import GoalBoard


log = logging.getLogger(__name__)


def _no_request(kind: StateKind) -> None:
    log.warning("State change to %s requested before the controller was bound", kind.value)


@dataclass
class AgentContext:
    world: WorldAgent
    settings: AgentSettings
    reporter: StatusReporter
    combat: CombatBehavior
    gathering: GatherBehavior
    planner: StructurePlanner
    book: RecipeBook
    resolver: CraftingResolver
    stations: StationLocator
    runners: Dict[StepKind, StepRunner]
    goals: GoalBoard = field(default_factory=GoalBoard)
    bus: Optional[EventBus] = None
    request_state: Callable[[StateKind], None] = _no_request
    clock: Callable[[], int] = lambda: 0

    def new_executor(self, reporter: StatusReporter) -> Executor:
        """Executor over the shared runner table, reporting as `reporter`."""
        return Executor(
            self.runners,
            config=self.settings.executor,
            reporter=reporter,
            logger=logging.getLogger(f"{reporter.module}.executor"),
        )

    def find_player(self, name: str) -> Optional[EntityInfo]:
        for entity in self.world.nearby_entities(self.settings.states.search_radius):
            if entity.kind == "player" and entity.name == name:
                return entity
        return None

    def find_entity(self, kind: str) -> Optional[EntityInfo]:
        """Nearest visible entity of `kind`."""
        origin = self.world.position()
        matches = [e for e in self.world.nearby_entities(self.settings.states.search_radius) if e.kind == kind]
        if not matches:
            return None
        return min(matches, key=lambda e: (e.position.distance(origin), e.id))
