# src/execution/runners.py
"""
Step runners for the generic step kinds.

Each runner is a callable taking a Step and returning a cooperative task
(generator) that yields world-action futures. A runner performs at most
one world-mutating call per attempt (dig, place, attack, use, trade);
move_near calls only reposition the agent.

Placement lives in building.placement because it needs material policy.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from world.blocks import DEFAULT_PROTECTED_KINDS, is_air_like, is_protected, is_solid
from world.interface import WorldAgent
from world.inventory import count_of
from world.types import UP, Position

from .errors import (
    NavigationFailure,
    PlacementFailure,
    ResourceShortage,
    WorldInconsistency,
)
from .plan import Step, StepKind, StepOutcome
from .task import Task, expect


log = logging.getLogger(__name__)


def _require_target(step: Step) -> Position:
    if step.target is None:
        raise WorldInconsistency(f"{step.describe()} has no target position")
    return step.target


class MoveRunner:
    """MOVE: walk to within `tolerance` of the target."""

    def __init__(self, world: WorldAgent, *, tolerance: float = 2.0) -> None:
        self._world = world
        self._tolerance = tolerance

    def __call__(self, step: Step) -> Task:
        target = _require_target(step)
        tolerance = float(step.params.get("tolerance", self._tolerance))
        yield from expect(self._world.move_near(target, tolerance), NavigationFailure, "move failed")
        return StepOutcome.DONE


class DigRunner:
    """
    DIG: remove the block at the target.

    Already-empty cells count as done. Protected kinds are refused.
    The removal is confirmed by re-querying the cell.
    """

    def __init__(
        self,
        world: WorldAgent,
        *,
        reach: float = 4.0,
        protected: Iterable[str] = DEFAULT_PROTECTED_KINDS,
    ) -> None:
        self._world = world
        self._reach = reach
        self._protected = frozenset(protected)

    def __call__(self, step: Step) -> Task:
        target = _require_target(step)
        block = self._world.query_block(target)
        if block is None:
            raise WorldInconsistency(f"cannot see {target}: chunk not loaded")
        if is_air_like(block.kind):
            return StepOutcome.DONE
        if is_protected(block.kind, self._protected):
            raise WorldInconsistency(f"refusing to dig protected {block.kind} at {target}")

        yield from expect(self._world.move_near(target, self._reach), NavigationFailure, "cannot reach block")
        yield from expect(self._world.break_block(target), WorldInconsistency, "dig failed")

        after = self._world.query_block(target)
        if after is None or not is_air_like(after.kind):
            raise WorldInconsistency(f"{target} still occupied after digging")
        return StepOutcome.DONE


class CollectRunner:
    """
    COLLECT: find the nearest block of one of `params["sources"]` and dig it.

    Used by gathering, mining and farming. The step's resource names the
    item the caller wants; when the inventory already holds
    `params["until"]` of it the step is done without acting.
    """

    def __init__(self, world: WorldAgent, *, search_radius: float = 32.0, reach: float = 4.0) -> None:
        self._world = world
        self._search_radius = search_radius
        self._reach = reach

    def __call__(self, step: Step) -> Task:
        wanted = step.resource.item_kind if step.resource is not None else ""
        sources = list(step.params.get("sources") or ([wanted] if wanted else []))
        until: Optional[int] = step.params.get("until")

        if wanted and until is not None and count_of(self._world.query_inventory(), wanted) >= until:
            return StepOutcome.DONE

        target = step.target if step.target is not None else self._find_source(sources)
        if target is None:
            raise ResourceShortage(
                f"no {'/'.join(sources) or wanted} within {self._search_radius:g} blocks",
                kind=wanted,
                count=step.resource.count if step.resource is not None else 1,
            )

        block = self._world.query_block(target)
        if block is None:
            raise WorldInconsistency(f"cannot see {target}: chunk not loaded")
        if is_air_like(block.kind):
            # Someone got there first; a fresh search happens on retry.
            raise WorldInconsistency(f"{target} is already empty")

        yield from expect(self._world.move_near(target, self._reach), NavigationFailure, "cannot reach source")
        yield from expect(self._world.break_block(target), WorldInconsistency, "dig failed")
        return StepOutcome.DONE

    def _find_source(self, sources: Iterable[str]) -> Optional[Position]:
        best: Optional[Position] = None
        origin = self._world.position()
        for kind in sources:
            found = self._world.find_nearest_of_kind(kind, self._search_radius, 1)
            if found and (best is None or found[0].distance(origin) < best.distance(origin)):
                best = found[0]
        return best


class PlantRunner:
    """PLANT: place a seed item on the (solid) block below an empty target cell."""

    def __init__(self, world: WorldAgent, *, reach: float = 4.0) -> None:
        self._world = world
        self._reach = reach

    def __call__(self, step: Step) -> Task:
        target = _require_target(step)
        seed = step.resource.item_kind if step.resource is not None else "wheat_seeds"
        if count_of(self._world.query_inventory(), seed) <= 0:
            raise ResourceShortage(f"no {seed} to plant", kind=seed, count=1)

        soil = target.offset(dy=-1)
        if not is_solid(self._world.query_block(soil)):
            raise PlacementFailure(f"nothing to plant on at {soil}")

        yield from expect(self._world.move_near(target, self._reach), NavigationFailure, "cannot reach field")
        yield from expect(self._world.place_block(soil, UP, seed), PlacementFailure, "planting failed")
        return StepOutcome.DONE


class UseItemRunner:
    """USE: use the held item named by the step's resource (fishing casts, food, ...)."""

    def __init__(self, world: WorldAgent) -> None:
        self._world = world

    def __call__(self, step: Step) -> Task:
        if step.resource is None:
            raise WorldInconsistency("use step without an item")
        item = step.resource.item_kind
        if count_of(self._world.query_inventory(), item) <= 0:
            raise ResourceShortage(f"no {item} to use", kind=item, count=1)
        if step.target is not None:
            yield from expect(
                self._world.move_near(step.target, float(step.params.get("tolerance", 3.0))),
                NavigationFailure,
                "cannot reach spot",
            )
        yield from expect(self._world.use_item(item), WorldInconsistency, f"using {item} failed")
        return StepOutcome.DONE


class AttackRunner:
    """ATTACK: close in on `params["entity_id"]` and hit it once."""

    def __init__(self, world: WorldAgent, *, attack_range: float = 3.0) -> None:
        self._world = world
        self._range = attack_range

    def __call__(self, step: Step) -> Task:
        entity_id = step.params.get("entity_id")
        entity = next((e for e in self._world.nearby_entities(64.0) if e.id == entity_id), None)
        if entity is None:
            # Target died or left; nothing to do.
            return StepOutcome.DONE

        yield from expect(self._world.move_near(entity.position, self._range), NavigationFailure, "cannot reach target")
        yield from expect(self._world.attack(entity.id), WorldInconsistency, "attack missed")
        return StepOutcome.DONE


class TradeRunner:
    """TRADE: walk to the trader in `params["entity_id"]` and buy the step's resource."""

    def __init__(self, world: WorldAgent, *, reach: float = 3.0) -> None:
        self._world = world
        self._reach = reach

    def __call__(self, step: Step) -> Task:
        if step.resource is None:
            raise WorldInconsistency("trade step without an item")
        entity_id = step.params.get("entity_id")
        trader = next((e for e in self._world.nearby_entities(64.0) if e.id == entity_id), None)
        if trader is None:
            raise NavigationFailure(f"trader {entity_id} not in sight")

        yield from expect(self._world.move_near(trader.position, self._reach), NavigationFailure, "cannot reach trader")
        result = yield self._world.trade(trader.id, step.resource.item_kind, step.resource.count)
        if not result.success:
            if result.error == "no_currency":
                raise ResourceShortage(
                    f"cannot pay for {step.resource}", kind="emerald", count=step.resource.count
                )
            raise WorldInconsistency(f"trade failed: {result.error}", details=dict(result.details))
        return StepOutcome.DONE


def default_runners(world: WorldAgent, *, reach: float = 4.0, attack_range: float = 3.0,
                    search_radius: float = 32.0,
                    protected: Iterable[str] = DEFAULT_PROTECTED_KINDS) -> Dict[StepKind, object]:
    """Runner table for every generic step kind."""
    return {
        StepKind.MOVE: MoveRunner(world),
        StepKind.DIG: DigRunner(world, reach=reach, protected=protected),
        StepKind.COLLECT: CollectRunner(world, search_radius=search_radius, reach=reach),
        StepKind.PLANT: PlantRunner(world, reach=reach),
        StepKind.USE: UseItemRunner(world),
        StepKind.ATTACK: AttackRunner(world, attack_range=attack_range),
        StepKind.TRADE: TradeRunner(world, reach=reach),
    }
