"""Peer goal producers: combat and gather target selection."""

from .combat import HOSTILE_KINDS, CombatBehavior, is_hostile
from .gathering import GatherBehavior

__all__ = ["HOSTILE_KINDS", "CombatBehavior", "GatherBehavior", "is_hostile"]
