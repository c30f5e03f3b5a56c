# src/crafting/resolver.py
"""
Crafting dependency resolution.

Given a target item and count, decide which recipes to run and in which
order, and which raw materials are still missing.

Expansion uses an explicit worklist (a stack of frames) instead of
recursion. Each frame remembers the chain of item kinds that led to it;
meeting a kind that is already on the chain is a recipe cycle, and a
chain longer than `max_depth` is treated the same way. Both abort with
GoalUnreachable. Diamond-shaped dependencies (planks needed by both the
table and the sticks) are fine.

Inventory is simulated while expanding: every ingredient request first
takes what is (virtually) held, and craft surpluses flow back, so shared
intermediates are not double counted.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from execution.errors import GoalUnreachable
from execution.plan import ResourceRequirement

from .recipes import RawSource, Recipe, RecipeBook


log = logging.getLogger(__name__)

MAX_RESOLUTION_DEPTH = 8


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class CraftEntry:
    recipe: Recipe
    batches: int

    @property
    def kind(self) -> str:
        return self.recipe.output

    @property
    def produced(self) -> int:
        return self.batches * self.recipe.count

    def __str__(self) -> str:
        return f"{self.produced}x {self.kind} ({self.recipe.id} x{self.batches})"


@dataclass
class RawNeed:
    kind: str
    count: int
    source: Optional[RawSource] = None

    @property
    def obtainable(self) -> bool:
        return self.source is not None and bool(self.source.sources)

    def requirement(self) -> ResourceRequirement:
        return ResourceRequirement(self.kind, self.count)


@dataclass
class Resolution:
    """
    Expansion of one craft goal.

    - crafts: craft entries, dependencies first, target last
    - raw: raw materials still missing after using the inventory
    """

    target: str
    count: int
    crafts: List[CraftEntry] = field(default_factory=list)
    raw: List[RawNeed] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when the inventory covers every raw material."""
        return not self.raw

    @property
    def needs_table(self) -> bool:
        return any(c.recipe.requires_table for c in self.crafts)

    def missing(self) -> Dict[str, int]:
        return {r.kind: r.count for r in self.raw}


@dataclass
class _Frame:
    kind: str
    count: int
    path: Tuple[str, ...]
    top: bool = False
    expanded: bool = False
    need: int = 0
    recipe: Optional[Recipe] = None
    batches: int = 0


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class CraftingResolver:
    def __init__(self, book: RecipeBook, *, max_depth: int = MAX_RESOLUTION_DEPTH) -> None:
        self._book = book
        self._max_depth = max_depth

    @property
    def book(self) -> RecipeBook:
        return self._book

    # ---------------------- selection / gap analysis -------------------------

    def missing_ingredients(
        self, recipe: Recipe, batches: int, inventory: Mapping[str, int]
    ) -> Dict[str, int]:
        """Shortfall per ingredient for `batches` crafts of `recipe`."""
        missing: Dict[str, int] = {}
        for kind, needed in recipe.ingredient_counts(batches).items():
            held = inventory.get(kind, 0)
            if held < needed:
                missing[kind] = needed - held
        return missing

    def select_recipe(
        self, kind: str, count: int, inventory: Mapping[str, int]
    ) -> Optional[Recipe]:
        """
        First recipe the inventory already satisfies; otherwise the one with
        the fewest distinct ingredients (declaration order breaks ties).
        """
        recipes = self._book.recipes_for(kind)
        if not recipes:
            return None
        for recipe in recipes:
            if not self.missing_ingredients(recipe, recipe.batches_for(count), inventory):
                return recipe
        return min(recipes, key=lambda r: r.distinct_ingredients)

    def can_craft_now(self, kind: str, count: int, inventory: Mapping[str, int]) -> bool:
        recipe = self.select_recipe(kind, count, inventory)
        if recipe is None:
            return False
        return not self.missing_ingredients(recipe, recipe.batches_for(count), inventory)

    # ---------------------- expansion -------------------------

    def resolve(self, kind: str, count: int, inventory: Mapping[str, int]) -> Resolution:
        return self.resolve_all([(kind, count)], inventory)

    def resolve_all(
        self, goals: Sequence[Tuple[str, int]], inventory: Mapping[str, int]
    ) -> Resolution:
        """
        Expand several craft goals against one simulated inventory, in order.

        The Resolution's target is the last goal; earlier goals are
        prerequisites (e.g. a crafting table ahead of a pickaxe).
        """
        if not goals:
            raise ValueError("resolve_all needs at least one goal")
        tops: List[Tuple[str, int]] = []
        for kind, count in goals:
            target = self._book.normalize(kind)
            if not self._book.is_craftable(target):
                raise GoalUnreachable(f"don't know how to craft {target}", details={"item": target})
            tops.append((target, count))
        target, count = tops[-1]

        sim: Counter = Counter({k: v for k, v in inventory.items() if v > 0})
        crafts: List[CraftEntry] = []
        raw: Dict[str, int] = {}

        stack: List[_Frame] = [_Frame(kind=k, count=n, path=(k,), top=True) for k, n in reversed(tops)]
        while stack:
            frame = stack[-1]

            if frame.expanded:
                # All ingredients reserved; this craft can run now.
                stack.pop()
                assert frame.recipe is not None
                entry = CraftEntry(frame.recipe, frame.batches)
                crafts.append(entry)
                surplus = entry.produced if frame.top else entry.produced - frame.need
                sim[frame.kind] += surplus
                continue

            need = frame.count
            if not frame.top:
                take = min(sim[frame.kind], need)
                sim[frame.kind] -= take
                need -= take
            if need <= 0:
                stack.pop()
                continue

            if self._book.is_raw(frame.kind) or not self._book.is_craftable(frame.kind):
                stack.pop()
                raw[frame.kind] = raw.get(frame.kind, 0) + need
                continue

            recipe = self.select_recipe(frame.kind, need, sim)
            assert recipe is not None
            frame.expanded = True
            frame.need = need
            frame.recipe = recipe
            frame.batches = recipe.batches_for(need)

            children = []
            for ingredient, qty in recipe.ingredients:
                if ingredient in frame.path:
                    chain = " -> ".join(frame.path + (ingredient,))
                    raise GoalUnreachable(
                        f"recipe cycle while resolving {target}: {chain}",
                        details={"item": target, "chain": list(frame.path + (ingredient,))},
                    )
                if len(frame.path) + 1 > self._max_depth:
                    raise GoalUnreachable(
                        f"resolving {target} exceeds depth {self._max_depth}",
                        details={"item": target, "chain": list(frame.path)},
                    )
                children.append(_Frame(kind=ingredient, count=qty * frame.batches, path=frame.path + (ingredient,)))
            # First ingredient ends up on top of the stack.
            stack.extend(reversed(children))

        resolution = Resolution(
            target=target,
            count=count,
            crafts=crafts,
            raw=[RawNeed(k, n, self._book.raw_source(k)) for k, n in raw.items()],
        )
        log.debug(
            "Resolved %dx %s: crafts=[%s] raw=%s",
            count,
            target,
            ", ".join(str(c) for c in crafts),
            resolution.missing(),
        )
        return resolution
