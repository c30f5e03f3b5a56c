# src/states/registry.py

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from .base import State, StateKind
from .build import BuildState
from .combat import CombatState
from .craft import CraftState
from .defense import DefenseState
from .explore import ExploreState
from .farm import FarmState
from .fish import FishState
from .follow import FollowState
from .gather import GatherState
from .idle import IdleState
from .mining import MiningState
from .trade import TradeState

if TYPE_CHECKING:
    from agent.context import AgentContext


STATE_CLASSES: Dict[StateKind, Type[State]] = {
    StateKind.IDLE: IdleState,
    StateKind.MINING: MiningState,
    StateKind.COMBAT: CombatState,
    StateKind.GATHER: GatherState,
    StateKind.CRAFT: CraftState,
    StateKind.BUILD: BuildState,
    StateKind.EXPLORE: ExploreState,
    StateKind.FARM: FarmState,
    StateKind.FISH: FishState,
    StateKind.TRADE: TradeState,
    StateKind.DEFENSE: DefenseState,
    StateKind.FOLLOW: FollowState,
}


def build_states(ctx: "AgentContext") -> Dict[StateKind, State]:
    """One instance of every state, created once at startup."""
    return {kind: cls(ctx) for kind, cls in STATE_CLASSES.items()}
