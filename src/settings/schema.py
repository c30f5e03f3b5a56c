# src/settings/schema.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from execution.executor import ExecutorConfig


# ---------------------------------------------------------------------------
# Section dataclasses (one per top-level key in config/agent.yaml)
# ---------------------------------------------------------------------------


@dataclass
class BuildSettings:
    search_radius: int = 10
    ground_probe_depth: int = 3
    reach: float = 4.0
    protected_blocks: List[str] = field(default_factory=lambda: ["bedrock", "barrier"])
    timeout_ticks: int = 6000


@dataclass
class CraftingSettings:
    max_resolution_depth: int = 8
    station_search_radius: float = 20.0
    station_kind: str = "crafting_table"
    timeout_ticks: int = 2400
    keep_stock_of: Dict[str, int] = field(
        default_factory=lambda: {
            "crafting_table": 1,
            "wooden_pickaxe": 1,
            "wooden_axe": 1,
            "stone_pickaxe": 1,
            "stone_axe": 1,
            "torch": 16,
        }
    )


@dataclass
class CombatSettings:
    threat_distance: float = 5.0
    scan_radius: float = 20.0
    attack_range: float = 3.0
    flee_health: float = 7.0
    max_ticks: int = 2400


@dataclass
class StateSettings:
    """Dwell times and timeouts, all in world ticks (20 per second)."""

    idle_dwell_ticks: int = 100
    defense_duration_ticks: int = 600
    defense_radius: float = 10.0
    follow_distance: float = 10.0
    follow_near: float = 3.0
    follow_lost_ticks: int = 200
    gather_timeout_ticks: int = 6000
    mining_timeout_ticks: int = 12000
    explore_timeout_ticks: int = 6000
    explore_radius: int = 32
    explore_stride: int = 8
    farm_radius: float = 16.0
    fish_casts: int = 5
    hunger_threshold: float = 10.0
    search_radius: float = 32.0


@dataclass
class AgentSettings:
    """Top-level resolved agent configuration."""

    name: str = "agent"
    owner: str | None = None
    command_prefix: str = "!"
    log_level: str = "INFO"
    event_log: str | None = None
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    build: BuildSettings = field(default_factory=BuildSettings)
    crafting: CraftingSettings = field(default_factory=CraftingSettings)
    combat: CombatSettings = field(default_factory=CombatSettings)
    states: StateSettings = field(default_factory=StateSettings)
