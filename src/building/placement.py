# src/building/placement.py
"""
Block placement protocol (runner for StepKind.PLACE).

Per attempt:

  1. unknown target -> WorldInconsistency; already solid -> DONE
  2. pick a material: the step's resource, then the step's substitutes,
     then any valid building block held; nothing held -> ResourceShortage
  3. walk within reach of the target
  4. look for a solid neighbour (below, above, -x, +x, -z, +z)
  5. none: place one support block in a neighbour cell that itself has a
     solid neighbour, and report PROGRESSED; the step stays at the front
  6. place against the reference face, then re-query the target; only a
     solid cell counts as placed (a "successful" call that left air is a
     PlacementFailure)
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from execution.errors import (
    NavigationFailure,
    PlacementFailure,
    ResourceShortage,
    WorldInconsistency,
)
from execution.plan import Step, StepOutcome
from execution.task import Task, expect
from world.blocks import is_air_like, is_solid
from world.interface import WorldAgent
from world.inventory import building_materials, inventory_counts
from world.types import Position


log = logging.getLogger(__name__)


class PlacementRunner:
    def __init__(self, world: WorldAgent, *, reach: float = 4.0) -> None:
        self._world = world
        self._reach = reach

    def __call__(self, step: Step) -> Task:
        if step.target is None:
            raise WorldInconsistency("placement step without a target")
        target = step.target

        block = self._world.query_block(target)
        if block is None:
            raise WorldInconsistency(f"cannot see {target}: chunk not loaded")
        if block.solid:
            return StepOutcome.DONE
        if not is_air_like(block.kind):
            raise PlacementFailure(f"{target} is occupied by {block.kind}")

        item = self.choose_material(step)

        yield from expect(self._world.move_near(target, self._reach), NavigationFailure, "cannot reach build spot")

        ref = self.find_reference(target)
        if ref is None:
            support = self.find_support(target)
            if support is None:
                raise PlacementFailure(f"no reference face near {target}")
            support_ref, support_cell = support
            log.debug("PlacementRunner placing support at %s for %s", support_cell, target)
            yield from self._place(support_ref, support_cell, item)
            return StepOutcome.PROGRESSED

        yield from self._place(ref, target, item)
        return StepOutcome.DONE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def choose_material(self, step: Step) -> str:
        counts = inventory_counts(self._world.query_inventory())
        preferred: Sequence[str] = tuple(
            ([step.resource.item_kind] if step.resource is not None else [])
            + list(step.params.get("substitutes", ()))
        )
        ranked = building_materials(counts, preferred)
        if not ranked:
            wanted = step.resource.item_kind if step.resource is not None else "building block"
            raise ResourceShortage(f"out of {wanted}", kind=wanted, count=1)
        if step.resource is not None and ranked[0] != step.resource.item_kind:
            log.debug("PlacementRunner substituting %s for %s", ranked[0], step.resource.item_kind)
        return ranked[0]

    def find_reference(self, target: Position) -> Optional[Position]:
        for n in target.neighbors():
            if is_solid(self._world.query_block(n)):
                return n
        return None

    def find_support(self, target: Position) -> Optional[Tuple[Position, Position]]:
        """(reference, cell) for a depth-1 support block next to `target`."""
        for cell in target.neighbors():
            block = self._world.query_block(cell)
            if block is None or not is_air_like(block.kind):
                continue
            ref = self.find_reference(cell)
            if ref is not None:
                return ref, cell
        return None

    def _place(self, ref: Position, cell: Position, item: str) -> Task:
        yield from expect(
            self._world.place_block(ref, cell - ref, item),
            PlacementFailure,
            f"placing {item} at {cell} failed",
        )
        after = self._world.query_block(cell)
        if after is None:
            raise WorldInconsistency(f"lost sight of {cell} after placing")
        if not after.solid:
            raise PlacementFailure(f"placement at {cell} did not take")
        return None
