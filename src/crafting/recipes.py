# src/crafting/recipes.py
"""
Recipe knowledge for the crafting resolver.

Loads config/recipes.yaml into:
  - Recipe objects (id, output, count per craft, ingredients, station need)
  - RawSource entries for items that come from the world (gather / mine)
  - an alias map for casual names ("sticks", "table", "pick")
  - a networkx DiGraph with an edge product -> ingredient

A cyclic recipe graph is a configuration bug. It is reported at load
time with a warning rather than rejected; the resolver guards against it
at runtime by failing the goal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx
import yaml

from world.blocks import normalize_kind


log = logging.getLogger(__name__)

# Default config directory; tests monkeypatch this to point at a temp dir.
CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Recipe:
    id: str
    output: str
    count: int
    ingredients: Tuple[Tuple[str, int], ...]
    requires_table: bool = False

    @property
    def distinct_ingredients(self) -> int:
        return len(self.ingredients)

    def ingredient_counts(self, batches: int = 1) -> Dict[str, int]:
        return {kind: qty * batches for kind, qty in self.ingredients}

    def batches_for(self, wanted: int) -> int:
        """Craft calls needed to produce at least `wanted` items."""
        return max(1, -(-wanted // self.count))


@dataclass(frozen=True)
class RawSource:
    """
    How a raw item is obtained.

    - method: "gather" (surface blocks, wood) or "mine"
    - sources: block kinds whose digging yields the item; empty means the
      item cannot be collected directly (smelted, traded, ...)
    """

    kind: str
    method: str = "gather"
    sources: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Recipe book
# ---------------------------------------------------------------------------


class RecipeBook:
    def __init__(
        self,
        recipes: Iterable[Recipe],
        raw: Optional[Mapping[str, RawSource]] = None,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._recipes: Dict[str, Recipe] = {}
        self._by_output: Dict[str, List[Recipe]] = {}
        for recipe in recipes:
            self._recipes[recipe.id] = recipe
            self._by_output.setdefault(recipe.output, []).append(recipe)

        self._raw: Dict[str, RawSource] = dict(raw or {})
        self._aliases: Dict[str, str] = {normalize_kind(k): normalize_kind(v) for k, v in (aliases or {}).items()}

        self._graph = nx.DiGraph()
        for recipe in self._recipes.values():
            self._graph.add_node(recipe.output)
            for kind, _ in recipe.ingredients:
                self._graph.add_edge(recipe.output, kind)

        if not nx.is_directed_acyclic_graph(self._graph):
            cycles = [" -> ".join(c) for c in nx.simple_cycles(self._graph)]
            log.warning("Recipe graph contains cycles: %s", "; ".join(cycles))

    # ---------------------- lookup helpers -------------------------

    def normalize(self, name: str) -> str:
        """Canonical item kind for a user-supplied name."""
        kind = normalize_kind(name)
        return self._aliases.get(kind, kind)

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(recipe_id)

    def recipes_for(self, kind: str) -> List[Recipe]:
        """All recipes producing `kind`, in declaration order."""
        return list(self._by_output.get(self.normalize(kind), []))

    def is_craftable(self, kind: str) -> bool:
        return bool(self.recipes_for(kind))

    def is_raw(self, kind: str) -> bool:
        return self.normalize(kind) in self._raw

    def raw_source(self, kind: str) -> Optional[RawSource]:
        return self._raw.get(self.normalize(kind))

    def knows(self, kind: str) -> bool:
        return self.is_raw(kind) or self.is_craftable(kind)

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    def dependencies_of(self, kind: str) -> List[str]:
        """Every item `kind` transitively depends on, in a stable order."""
        kind = self.normalize(kind)
        if kind not in self._graph:
            return []
        return sorted(nx.descendants(self._graph, kind))

    def has_cycles(self) -> bool:
        return not nx.is_directed_acyclic_graph(self._graph)

    def all_recipes(self) -> List[Recipe]:
        return list(self._recipes.values())


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _recipe_from_cfg(recipe_id: str, data: Dict[str, Any]) -> Recipe:
    output = data.get("output")
    if not isinstance(output, str):
        raise ValueError(f"Recipe '{recipe_id}' missing valid 'output'")
    ingredients = data.get("ingredients") or {}
    if not isinstance(ingredients, dict) or not ingredients:
        raise ValueError(f"Recipe '{recipe_id}' must list ingredients as a mapping")
    return Recipe(
        id=recipe_id,
        output=normalize_kind(output),
        count=int(data.get("count", 1)),
        ingredients=tuple((normalize_kind(k), int(v)) for k, v in ingredients.items()),
        requires_table=bool(data.get("requires_table", False)),
    )


def recipe_book_from_dict(raw: Dict[str, Any]) -> RecipeBook:
    recipes = [_recipe_from_cfg(rid, data or {}) for rid, data in (raw.get("recipes") or {}).items()]
    sources = {
        normalize_kind(kind): RawSource(
            kind=normalize_kind(kind),
            method=str((data or {}).get("method", "gather")),
            sources=tuple(normalize_kind(s) for s in (data or {}).get("sources", [kind])),
        )
        for kind, data in (raw.get("raw") or {}).items()
    }
    return RecipeBook(recipes, sources, raw.get("aliases") or {})


def load_recipe_book(path: Optional[Path] = None) -> RecipeBook:
    """Load recipes.yaml from CONFIG_DIR (or an explicit path)."""
    path = path or CONFIG_DIR / "recipes.yaml"
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return RecipeBook([])
    if not isinstance(data, dict):
        raise ValueError(f"Recipe config {path} must be a mapping at top level.")
    return recipe_book_from_dict(data)
