# src/behaviors/combat.py
"""
Combat target selection.

Pure queries over the world's entity list; the Combat and Defense states
turn the chosen target into ATTACK steps.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from settings.schema import CombatSettings
from world.interface import WorldAgent
from world.types import EntityInfo


log = logging.getLogger(__name__)

HOSTILE_KINDS = frozenset(
    {
        "zombie", "skeleton", "creeper", "spider", "cave_spider", "enderman",
        "witch", "slime", "silverfish", "zombie_villager", "drowned",
        "husk", "stray", "phantom", "vindicator", "evoker", "pillager",
        "ravager", "vex", "ghast", "blaze", "magma_cube", "wither_skeleton",
        "guardian", "elder_guardian", "shulker", "endermite", "hoglin",
        "piglin_brute", "zoglin", "warden",
    }
)


def is_hostile(entity: EntityInfo) -> bool:
    return entity.kind.lower() in HOSTILE_KINDS


class CombatBehavior:
    def __init__(self, world: WorldAgent, settings: CombatSettings) -> None:
        self._world = world
        self._cfg = settings

    @property
    def settings(self) -> CombatSettings:
        return self._cfg

    def threats(self, radius: Optional[float] = None) -> List[EntityInfo]:
        """Hostile entities within `radius`, nearest first (ties by id)."""
        radius = self._cfg.scan_radius if radius is None else radius
        origin = self._world.position()
        hostiles = [e for e in self._world.nearby_entities(radius) if is_hostile(e)]
        hostiles.sort(key=lambda e: (e.position.distance(origin), e.id))
        return hostiles

    def nearest_threat_within(self, distance: Optional[float] = None) -> Optional[EntityInfo]:
        distance = self._cfg.threat_distance if distance is None else distance
        threats = self.threats(distance)
        return threats[0] if threats else None

    def pick_target(self, radius: Optional[float] = None) -> Optional[EntityInfo]:
        """
        Nearest hostile; among those equally near, the weakest one.
        Creepers inside attack range come first so they never get to blow.
        """
        threats = self.threats(radius)
        if not threats:
            return None
        origin = self._world.position()
        for entity in threats:
            if entity.kind == "creeper" and entity.position.distance(origin) <= self._cfg.attack_range:
                return entity
        nearest = threats[0].position.distance(origin)
        tied = [e for e in threats if e.position.distance(origin) - nearest < 1e-9]
        return min(tied, key=lambda e: (e.health, e.id))

    def should_flee(self) -> bool:
        return self._world.vitals().health <= self._cfg.flee_health
