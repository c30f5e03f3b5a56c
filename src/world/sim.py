# src/world/sim.py
"""
In-memory voxel world implementing the WorldAgent interface.

Used by the test-suite and by `cli.simulate` to drive the agent without a
game client. Everything is deterministic:

- blocks live in a dict keyed by Position; missing cells are air
- cells can be marked unloaded, in which case query_block() returns None
- every action returns a Future that resolves `latency` ticks later,
  when SimWorld.tick() is called; the world mutation happens at resolve
  time, like a real server confirming the action
- faults can be injected per action name (fail / hang / ghost places)

The sim is intentionally dumb about physics: no gravity, no collision
with the agent body, no item entities.
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import Future
from dataclasses import dataclass
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Set,
    Tuple,
)

from .blocks import is_air_like, is_protected, is_solid_kind, normalize_kind
from .types import (
    ActionResult,
    BlockInfo,
    EntityInfo,
    InventoryItem,
    Position,
    Vitals,
)


log = logging.getLogger(__name__)


# Block kind -> dropped item kinds when broken.
DEFAULT_DROPS: Dict[str, Tuple[Tuple[str, int], ...]] = {
    "stone": (("cobblestone", 1),),
    "grass_block": (("dirt", 1),),
    "wheat": (("wheat", 1), ("wheat_seeds", 1)),
    "coal_ore": (("coal", 1),),
    "iron_ore": (("raw_iron", 1),),
}

FISHING_CATCH = "cod"

# Food item -> hunger points restored.
FOOD_VALUES: Dict[str, float] = {
    "bread": 5,
    "cod": 2,
    "cooked_cod": 5,
    "apple": 4,
    "carrot": 3,
    "cooked_beef": 8,
    "cooked_porkchop": 8,
}


class RecipeLike(Protocol):
    """What SimWorld needs from a recipe to execute craft calls."""

    id: str
    output: str
    count: int
    ingredients: Tuple[Tuple[str, int], ...]
    requires_table: bool


class RecipeLookup(Protocol):
    def get(self, recipe_id: str) -> Optional[RecipeLike]:
        ...


@dataclass
class _PendingAction:
    name: str
    due: int
    future: "Future[ActionResult]"
    apply: Callable[[], ActionResult]


# ============================================================
# Simulated world
# ============================================================

class SimWorld:
    """
    Deterministic tick-driven world.

    Public contract: the WorldAgent protocol, plus setup helpers
    (set_block, fill, flat_ground, give, spawn, ...) and fault injection
    knobs used by tests.
    """

    def __init__(
        self,
        *,
        position: Position = Position(0, 64, 0),
        recipes: Optional[RecipeLookup] = None,
        latency: int = 1,
        station_reach: float = 6.0,
        attack_reach: float = 6.0,
        attack_damage: float = 5.0,
    ) -> None:
        self._position = position
        self._recipes = recipes
        self._latency = max(0, latency)
        self._station_reach = station_reach
        self._attack_reach = attack_reach
        self._attack_damage = attack_damage

        self._blocks: Dict[Position, str] = {}
        self._unloaded: Set[Position] = set()
        self._inventory: Dict[str, int] = {}
        self._entities: Dict[str, EntityInfo] = {}
        self._vitals = Vitals()
        self._pending: List[_PendingAction] = []

        self.clock: int = 0
        self.chat_log: List[str] = []
        self.action_log: List[Tuple[str, object]] = []

        # Fault injection
        self.unreachable: Set[Position] = set()
        self.fail_next: Counter = Counter()     # action name -> number of forced failures
        self.hang_actions: Set[str] = set()     # action names that never resolve
        self.ghost_places: int = 0              # place calls that report success but do nothing

    # ------------------------------------------------------------------
    # World setup helpers
    # ------------------------------------------------------------------

    def set_block(self, pos: Position, kind: str) -> None:
        kind = normalize_kind(kind)
        if is_air_like(kind):
            self._blocks.pop(pos, None)
        else:
            self._blocks[pos] = kind

    def block_kind(self, pos: Position) -> str:
        return self._blocks.get(pos, "air")

    def fill(self, a: Position, b: Position, kind: str) -> None:
        """Fill the axis-aligned box spanned by `a` and `b` (inclusive)."""
        for x in range(min(a.x, b.x), max(a.x, b.x) + 1):
            for y in range(min(a.y, b.y), max(a.y, b.y) + 1):
                for z in range(min(a.z, b.z), max(a.z, b.z) + 1):
                    self.set_block(Position(x, y, z), kind)

    def flat_ground(self, radius: int, y: int = 63, kind: str = "grass_block") -> None:
        """Lay a square slab of `kind` at height `y` centred on the agent."""
        c = self._position
        self.fill(Position(c.x - radius, y, c.z - radius), Position(c.x + radius, y, c.z + radius), kind)

    def unload(self, positions: Iterable[Position]) -> None:
        self._unloaded.update(positions)

    def teleport(self, pos: Position) -> None:
        self._position = pos

    def give(self, kind: str, count: int = 1) -> None:
        kind = normalize_kind(kind)
        self._inventory[kind] = self._inventory.get(kind, 0) + count

    def take(self, kind: str, count: int = 1) -> bool:
        kind = normalize_kind(kind)
        held = self._inventory.get(kind, 0)
        if held < count:
            return False
        if held == count:
            del self._inventory[kind]
        else:
            self._inventory[kind] = held - count
        return True

    def held(self, kind: str) -> int:
        return self._inventory.get(normalize_kind(kind), 0)

    def spawn(self, entity: EntityInfo) -> None:
        self._entities[entity.id] = entity

    def despawn(self, entity_id: str) -> None:
        self._entities.pop(entity_id, None)

    def set_vitals(self, health: float = 20.0, food: float = 20.0) -> None:
        self._vitals = Vitals(health=health, food=food)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advance one world tick, resolving every action that is due."""
        self.clock += 1
        due = [p for p in self._pending if p.due <= self.clock]
        self._pending = [p for p in self._pending if p.due > self.clock]
        for p in due:
            self._resolve(p)

    def pending_actions(self) -> int:
        return len(self._pending)

    def _resolve(self, pending: _PendingAction) -> None:
        result = pending.apply()
        log.debug("SimWorld resolved %s success=%s error=%s", pending.name, result.success, result.error)
        # Abandoned futures still resolve; nobody is waiting on them.
        if not pending.future.done():
            pending.future.set_result(result)

    def _schedule(
        self, name: str, apply: Callable[[], ActionResult], *args: object
    ) -> "Future[ActionResult]":
        self.action_log.append((name, args))
        future: "Future[ActionResult]" = Future()

        if name in self.hang_actions:
            return future

        if self.fail_next[name] > 0:
            self.fail_next[name] -= 1
            apply = lambda: ActionResult.fail("injected_failure", action=name)  # noqa: E731

        pending = _PendingAction(name=name, due=self.clock + self._latency, future=future, apply=apply)
        if self._latency == 0:
            self._resolve(pending)
        else:
            self._pending.append(pending)
        return future

    # ------------------------------------------------------------------
    # WorldAgent: queries
    # ------------------------------------------------------------------

    def position(self) -> Position:
        return self._position

    def query_block(self, pos: Position) -> Optional[BlockInfo]:
        if pos in self._unloaded:
            return None
        kind = self.block_kind(pos)
        return BlockInfo(kind=kind, position=pos, solid=is_solid_kind(kind))

    def query_inventory(self) -> List[InventoryItem]:
        return [
            InventoryItem(kind=kind, count=count, slot=slot)
            for slot, (kind, count) in enumerate(self._inventory.items())
            if count > 0
        ]

    def find_nearest_of_kind(
        self, kind: str, max_distance: float, count: int = 1
    ) -> List[Position]:
        kind = normalize_kind(kind)
        found = [
            pos
            for pos, k in self._blocks.items()
            if k == kind
            and pos not in self._unloaded
            and pos.distance(self._position) <= max_distance
        ]
        found.sort(key=lambda p: (p.distance(self._position), p.as_tuple()))
        return found[:count]

    def nearby_entities(self, radius: float) -> List[EntityInfo]:
        near = [e for e in self._entities.values() if e.position.distance(self._position) <= radius]
        near.sort(key=lambda e: (e.position.distance(self._position), e.id))
        return near

    def vitals(self) -> Vitals:
        return self._vitals

    def chat(self, message: str) -> None:
        self.chat_log.append(message)

    # ------------------------------------------------------------------
    # WorldAgent: actions
    # ------------------------------------------------------------------

    def move_near(self, pos: Position, tolerance: float) -> "Future[ActionResult]":
        def apply() -> ActionResult:
            if pos in self.unreachable:
                return ActionResult.fail("no_path", target=pos.as_tuple())
            self._position = self._approach(pos, tolerance)
            return ActionResult.ok(position=self._position.as_tuple())

        return self._schedule("move_near", apply, pos, tolerance)

    def break_block(self, pos: Position) -> "Future[ActionResult]":
        def apply() -> ActionResult:
            if pos in self._unloaded:
                return ActionResult.fail("unloaded", target=pos.as_tuple())
            kind = self.block_kind(pos)
            if is_air_like(kind):
                return ActionResult.fail("nothing_to_break", target=pos.as_tuple())
            if is_protected(kind):
                return ActionResult.fail("unbreakable", kind=kind)
            self.set_block(pos, "air")
            for drop, n in DEFAULT_DROPS.get(kind, ((kind, 1),)):
                self.give(drop, n)
            return ActionResult.ok(kind=kind)

        return self._schedule("break_block", apply, pos)

    def place_block(self, ref_pos: Position, face: Position, item: str) -> "Future[ActionResult]":
        item = normalize_kind(item)
        target = ref_pos + face

        def apply() -> ActionResult:
            if self.held(item) <= 0:
                return ActionResult.fail("no_item", item=item)
            if target in self._unloaded or ref_pos in self._unloaded:
                return ActionResult.fail("unloaded", target=target.as_tuple())
            if not is_solid_kind(self.block_kind(ref_pos)):
                return ActionResult.fail("no_reference", ref=ref_pos.as_tuple())
            if not is_air_like(self.block_kind(target)):
                return ActionResult.fail("occupied", target=target.as_tuple())
            if self.ghost_places > 0:
                self.ghost_places -= 1
                return ActionResult.ok(target=target.as_tuple())
            self.take(item, 1)
            self.set_block(target, item)
            return ActionResult.ok(target=target.as_tuple())

        return self._schedule("place_block", apply, ref_pos, face, item)

    def craft(
        self, recipe_id: str, count: int, station_pos: Optional[Position] = None
    ) -> "Future[ActionResult]":
        def apply() -> ActionResult:
            recipe = self._recipes.get(recipe_id) if self._recipes is not None else None
            if recipe is None:
                return ActionResult.fail("unknown_recipe", recipe=recipe_id)
            if recipe.requires_table:
                if station_pos is None or self.block_kind(station_pos) != "crafting_table":
                    return ActionResult.fail("no_station", recipe=recipe_id)
                if station_pos.distance(self._position) > self._station_reach:
                    return ActionResult.fail("station_out_of_reach", recipe=recipe_id)
            missing = {
                kind: qty * count - self.held(kind)
                for kind, qty in recipe.ingredients
                if self.held(kind) < qty * count
            }
            if missing:
                return ActionResult.fail("missing_ingredients", missing=missing)
            for kind, qty in recipe.ingredients:
                self.take(kind, qty * count)
            produced = recipe.count * count
            self.give(recipe.output, produced)
            return ActionResult.ok(item=recipe.output, produced=produced)

        return self._schedule("craft", apply, recipe_id, count, station_pos)

    def attack(self, entity_id: str) -> "Future[ActionResult]":
        def apply() -> ActionResult:
            entity = self._entities.get(entity_id)
            if entity is None:
                return ActionResult.fail("no_target", entity_id=entity_id)
            if entity.position.distance(self._position) > self._attack_reach:
                return ActionResult.fail("out_of_range", entity_id=entity_id)
            entity.health -= self._attack_damage
            killed = entity.health <= 0
            if killed:
                self.despawn(entity_id)
            return ActionResult.ok(entity_id=entity_id, killed=killed)

        return self._schedule("attack", apply, entity_id)

    def use_item(self, item: str) -> "Future[ActionResult]":
        item = normalize_kind(item)

        def apply() -> ActionResult:
            if self.held(item) <= 0:
                return ActionResult.fail("no_item", item=item)
            if item == "fishing_rod":
                if not self.find_nearest_of_kind("water", 8.0, 1):
                    return ActionResult.fail("no_water")
                self.give(FISHING_CATCH, 1)
                return ActionResult.ok(caught=FISHING_CATCH)
            if item in FOOD_VALUES:
                self.take(item, 1)
                food = min(20.0, self._vitals.food + FOOD_VALUES[item])
                self._vitals = Vitals(health=self._vitals.health, food=food)
                return ActionResult.ok(item=item, food=food)
            return ActionResult.ok(item=item)

        return self._schedule("use_item", apply, item)

    def trade(self, entity_id: str, want: str, count: int) -> "Future[ActionResult]":
        want = normalize_kind(want)

        def apply() -> ActionResult:
            entity = self._entities.get(entity_id)
            if entity is None or entity.kind != "villager":
                return ActionResult.fail("no_trader", entity_id=entity_id)
            if not self.take("emerald", count):
                return ActionResult.fail("no_currency", need=count)
            self.give(want, count)
            return ActionResult.ok(item=want, count=count)

        return self._schedule("trade", apply, entity_id, want, count)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _approach(self, target: Position, tolerance: float) -> Position:
        """Step axis by axis toward `target` until within `tolerance` (Chebyshev)."""
        reach = max(0, int(tolerance))
        cur = self._position
        x, y, z = cur.x, cur.y, cur.z
        if abs(target.x - x) > reach:
            x = target.x - reach if target.x > x else target.x + reach
        if abs(target.z - z) > reach:
            z = target.z - reach if target.z > z else target.z + reach
        if abs(target.y - y) > reach:
            y = target.y - reach if target.y > y else target.y + reach
        return Position(x, y, z)
