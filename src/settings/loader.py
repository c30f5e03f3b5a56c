# src/settings/loader.py
"""
Agent settings loader.

Responsibility:
  - Load config/agent.yaml from CONFIG_DIR
  - Map each top-level section onto its dataclass in settings.schema
  - Fill anything missing with dataclass defaults

Unknown keys are ignored with a warning so an old config keeps loading
after a field is retired.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

import yaml

from execution.executor import ExecutorConfig

from .schema import (
    AgentSettings,
    BuildSettings,
    CombatSettings,
    CraftingSettings,
    StateSettings,
)


log = logging.getLogger(__name__)

# Default config directory; tests monkeypatch this to point at a temp dir.
CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"

T = TypeVar("T")

_SECTIONS: Dict[str, type] = {
    "executor": ExecutorConfig,
    "build": BuildSettings,
    "crafting": CraftingSettings,
    "combat": CombatSettings,
    "states": StateSettings,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml(name: str) -> Dict[str, Any]:
    """
    Load a YAML config file from CONFIG_DIR and return it as a dict.

    Raises FileNotFoundError if the file does not exist and ValueError if
    the top level is not a mapping.
    """
    path = CONFIG_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data).__name__}")
    return data


def _build_section(cls: Type[T], raw: Any, section: str) -> T:
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{section}' must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(raw) - known)
    if unknown:
        log.warning("Ignoring unknown keys in '%s': %s", section, ", ".join(unknown))
    return cls(**{k: v for k, v in raw.items() if k in known})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def settings_from_dict(data: Dict[str, Any]) -> AgentSettings:
    """Build AgentSettings from an already-parsed mapping."""
    sections = {
        name: _build_section(cls, data.get(name), name) for name, cls in _SECTIONS.items()
    }
    agent_cfg = data.get("agent") or {}
    if not isinstance(agent_cfg, dict):
        raise ValueError("Config section 'agent' must be a mapping")

    return AgentSettings(
        name=str(agent_cfg.get("name", "agent")),
        owner=agent_cfg.get("owner"),
        command_prefix=str(agent_cfg.get("command_prefix", "!")),
        log_level=str(agent_cfg.get("log_level", "INFO")).upper(),
        event_log=agent_cfg.get("event_log"),
        **sections,
    )


def load_settings(name: str = "agent.yaml") -> AgentSettings:
    """Main entry point: returns fully resolved AgentSettings."""
    return settings_from_dict(load_yaml(name))
