"""YAML-backed agent settings."""

from .schema import (
    AgentSettings,
    BuildSettings,
    CombatSettings,
    CraftingSettings,
    StateSettings,
)
from .loader import load_settings, settings_from_dict

__all__ = [
    "AgentSettings",
    "BuildSettings",
    "CombatSettings",
    "CraftingSettings",
    "StateSettings",
    "load_settings",
    "settings_from_dict",
]
