# src/crafting/session.py
"""
Tick-driven execution of a CraftQueue.

One craft entry is attempted at a time as a cooperative task (see
execution.task), so there is never more than one outstanding world call.
Per attempt:

  - re-check the ingredients against the live inventory; a shortfall is
    recorded on the queue and the entry goes to the back
  - if the recipe needs a station, run the StationLocator chain and walk
    over to the station
  - issue the craft call

Any other failure (timeout, no path to the station, rejected craft) is
retried up to `max_retries` times and does not count toward livelock.

tick() raises GoalUnreachable when the queue livelocks (a full pass with
no successful craft), when an entry runs out of retries, or when the
station chain fails.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

from execution.errors import (
    GoalUnreachable,
    NavigationFailure,
    ResourceShortage,
    WorldInconsistency,
)
from execution.task import Task, TaskRunner, expect
from monitoring.events import EventType
from monitoring.status import StatusReporter
from world.interface import WorldAgent
from world.inventory import inventory_counts

from .queue import CraftQueue, QueueEntry
from .resolver import CraftingResolver, Resolution
from .stations import StationLocator


log = logging.getLogger(__name__)


class SessionStatus(Enum):
    IDLE = auto()
    RUNNING = auto()
    COMPLETE = auto()
    FAILED = auto()


class CraftSession:
    def __init__(
        self,
        world: WorldAgent,
        resolver: CraftingResolver,
        stations: StationLocator,
        *,
        timeout_ticks: int = 200,
        max_retries: int = 3,
        reach: float = 3.0,
        reporter: StatusReporter | None = None,
    ) -> None:
        self._world = world
        self._resolver = resolver
        self._stations = stations
        self._timeout = timeout_ticks
        self._max_retries = max_retries
        self._reach = reach
        self._reporter = reporter if reporter is not None else StatusReporter()

        self._queue = CraftQueue()
        self._task: Optional[TaskRunner] = None
        self._status = SessionStatus.IDLE
        self._goal = ""

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def queue(self) -> CraftQueue:
        return self._queue

    @property
    def status(self) -> SessionStatus:
        return self._status

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def begin(self, resolution: Resolution) -> None:
        """Queue every craft of `resolution`, dependencies first."""
        self.cancel()
        self._queue = CraftQueue(max_retries=self._max_retries)
        self._queue.extend(resolution.crafts)
        self._goal = f"{resolution.count}x {resolution.target}"
        self._status = SessionStatus.RUNNING if not self._queue.is_empty else SessionStatus.COMPLETE
        log.info(
            "Crafting %s via %s",
            self._goal,
            ", ".join(e.kind for e in self._queue.entries) or "nothing",
        )

    def cancel(self) -> None:
        if self._task is not None:
            self._task.close()
            self._task = None
        self._status = SessionStatus.IDLE

    def tick(self) -> SessionStatus:
        if self._status is not SessionStatus.RUNNING:
            return self._status

        if self._task is None:
            entry = self._queue.front()
            self._task = TaskRunner(self._craft(entry), timeout_ticks=self._timeout, label=f"craft {entry.kind}")

        try:
            finished = self._task.poll()
        except GoalUnreachable:
            self._task = None
            self._status = SessionStatus.FAILED
            raise
        if not finished:
            return self._status

        task, self._task = self._task, None
        if task.error is None:
            entry = self._queue.record_success(task.value)
            self._reporter.note(EventType.CRAFTED, f"Crafted {task.value}x {entry.kind}", item=entry.kind, count=task.value)
        elif isinstance(task.error, ResourceShortage):
            entry = self._queue.record_shortfall(task.error.details.get("missing") or {})
            log.debug("Craft of %s blocked: %s", entry.kind, task.error)
        else:
            entry = self._queue.record_failure()
            log.warning(
                "Craft of %s failed (retry %d/%d): %s",
                entry.kind,
                entry.retries,
                self._max_retries,
                task.error,
            )

        if self._queue.livelocked:
            self._status = SessionStatus.FAILED
            raise GoalUnreachable(
                f"cannot craft {self._goal}: blocked on {', '.join(self._queue.blocked())}",
                missing=dict(self._queue.missing_ingredients),
            )
        if self._queue.is_empty:
            if self._queue.dropped:
                self._status = SessionStatus.FAILED
                raise GoalUnreachable(f"cannot craft {self._goal}: gave up on {', '.join(self._queue.dropped)}")
            self._status = SessionStatus.COMPLETE
        return self._status

    # ------------------------------------------------------------------
    # Craft task
    # ------------------------------------------------------------------

    def _craft(self, entry: QueueEntry) -> Task:
        counts = inventory_counts(self._world.query_inventory())
        recipe = entry.recipe or self._resolver.select_recipe(entry.kind, entry.count, counts)
        if recipe is None:
            raise GoalUnreachable(f"don't know how to craft {entry.kind}")
        batches = recipe.batches_for(entry.count)

        missing = self._resolver.missing_ingredients(recipe, batches, counts)
        if missing:
            first = next(iter(missing))
            raise ResourceShortage(
                f"missing ingredients for {entry.kind}",
                details={"missing": missing},
                kind=first,
                count=missing[first],
            )

        station = None
        if recipe.requires_table:
            station = yield from self._stations.ensure()
            yield from expect(self._world.move_near(station, self._reach), NavigationFailure, "cannot reach station")

        result = yield self._world.craft(recipe.id, batches, station)
        if not result.success:
            if result.error == "missing_ingredients":
                raise ResourceShortage(
                    f"missing ingredients for {entry.kind}",
                    details={"missing": result.details.get("missing", {})},
                    kind=entry.kind,
                    count=entry.count,
                )
            if result.error == "no_station":
                self._stations.forget()
            raise WorldInconsistency(f"craft {recipe.id} failed: {result.error}", details=dict(result.details))
        return int(result.details.get("produced", recipe.count * batches))
