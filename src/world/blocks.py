# src/world/blocks.py
"""
Block classification helpers.

Decides whether a block kind is "air-like", solid enough to act as a
placement reference, protected from digging, or usable as a generic
building material. Kinds are bare names ("oak_planks"); a namespace
prefix such as "minecraft:" is stripped first.

This module does NOT:
    - Know anything about mod-specific materials
    - Reason about hazards beyond the protected list
"""

from __future__ import annotations

from typing import Iterable, Optional

from .types import BlockInfo


AIR_LIKE_KINDS = frozenset({"air", "cave_air", "void_air"})

# Occupy a cell but cannot serve as a reference face.
NON_SOLID_KINDS = AIR_LIKE_KINDS | frozenset(
    {
        "water",
        "lava",
        "grass",
        "short_grass",
        "tall_grass",
        "fern",
        "dandelion",
        "poppy",
        "torch",
        "snow",
        "wheat",
        "wheat_seeds",
    }
)

DEFAULT_PROTECTED_KINDS = frozenset({"bedrock", "barrier"})

VALID_BUILDING_KINDS = frozenset(
    {
        "stone", "cobblestone", "dirt", "andesite", "diorite", "granite",
        "oak_planks", "spruce_planks", "birch_planks", "jungle_planks",
        "acacia_planks", "dark_oak_planks", "crimson_planks", "warped_planks",
        "oak_log", "spruce_log", "birch_log", "jungle_log",
        "acacia_log", "dark_oak_log", "crimson_stem", "warped_stem",
        "sandstone", "brick", "stone_brick", "deepslate", "deepslate_brick",
        "deepslate_tile", "cobbled_deepslate",
    }
)

VALID_BUILDING_SUFFIXES = ("_planks", "_log", "_wood", "_brick", "_bricks", "_block", "_stone")


def normalize_kind(kind: str) -> str:
    """Strip a namespace prefix ("minecraft:stone" -> "stone")."""
    kind = kind.strip().lower()
    if ":" in kind:
        kind = kind.split(":", 1)[1]
    return kind


def is_air_like(kind: Optional[str]) -> bool:
    """
    Heuristic for "nothing is here".

    None and the empty string count as air so that half-populated world
    views do not block movement or placement.
    """
    if not kind:
        return True
    return normalize_kind(kind) in AIR_LIKE_KINDS


def is_solid_kind(kind: Optional[str]) -> bool:
    if not kind:
        return False
    return normalize_kind(kind) not in NON_SOLID_KINDS


def is_solid(block: Optional[BlockInfo]) -> bool:
    """Unknown (unloaded) blocks are never solid."""
    return block is not None and block.solid


def is_empty(block: Optional[BlockInfo]) -> bool:
    """True only for loaded, air-like cells."""
    return block is not None and is_air_like(block.kind)


def is_protected(kind: str, protected: Iterable[str] = DEFAULT_PROTECTED_KINDS) -> bool:
    return normalize_kind(kind) in set(protected)


def is_valid_building_block(kind: Optional[str]) -> bool:
    if not kind:
        return False
    name = normalize_kind(kind)
    return name in VALID_BUILDING_KINDS or name.endswith(VALID_BUILDING_SUFFIXES)
