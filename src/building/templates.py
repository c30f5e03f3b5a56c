# src/building/templates.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


# Default config directory; tests monkeypatch this to point at a temp dir.
CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


class UnknownStructure(ValueError):
    """Raised for structure names with no template."""


class StructureKind(Enum):
    WALL = "wall"
    TOWER = "tower"
    HOUSE = "house"
    BRIDGE = "bridge"
    STAIRCASE = "staircase"

    @classmethod
    def parse(cls, name: str) -> "StructureKind":
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise UnknownStructure(f"unknown structure '{name}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class StructureTemplate:
    """
    Parametric description of one structure kind.

    - width / length / height: footprint and layer count (unused ones stay 1)
    - steps: staircase rise, 0 for other kinds
    - materials: ranked material kinds, first held one wins
    - material_count: blocks the layout needs
    """

    kind: StructureKind
    description: str = ""
    width: int = 3
    length: int = 3
    height: int = 3
    steps: int = 0
    materials: Tuple[str, ...] = ("cobblestone",)
    material_count: int = 0


def _template_from_cfg(kind: StructureKind, data: Dict[str, Any]) -> StructureTemplate:
    width = int(data.get("width", 3))
    return StructureTemplate(
        kind=kind,
        description=str(data.get("description", "")),
        width=width,
        length=int(data.get("length", width)),
        height=int(data.get("height", 3)),
        steps=int(data.get("steps", 0)),
        materials=tuple(data.get("materials") or ("cobblestone",)),
        material_count=int(data.get("material_count", 0)),
    )


def load_structure_templates(path: Optional[Path] = None) -> Dict[StructureKind, StructureTemplate]:
    """
    Load structure templates from structures.yaml.

    Every StructureKind must be present; names that are not a known kind
    raise UnknownStructure so a typo in the config fails loudly.
    """
    path = path or CONFIG_DIR / "structures.yaml"
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Structure config {path} must be a mapping at top level.")

    section = raw.get("structures") or {}
    templates: Dict[StructureKind, StructureTemplate] = {}
    for name, data in section.items():
        kind = StructureKind.parse(name)
        templates[kind] = _template_from_cfg(kind, data or {})

    missing = [k.value for k in StructureKind if k not in templates]
    if missing:
        raise ValueError(f"Structure config {path} is missing templates: {', '.join(missing)}")
    return templates
