# src/execution/task.py
"""
Cooperative tasks over world-action futures.

A task is a generator that yields `Future[ActionResult]` objects obtained
from the WorldAgent and receives the resolved ActionResult back:

    def place_task(world, ref, face, item):
        result = yield world.place_block(ref, face, item)
        if not result.success:
            raise PlacementFailure("place failed")
        return StepOutcome.DONE

TaskRunner drives exactly one such generator, holding at most one
outstanding future. It is polled once per tick and never blocks; a future
that stays pending longer than the tick limit turns into ActionTimeout.
Abandoning a task (close()) does not cancel the outstanding action; the
world may still complete it, nobody waits for the result any more.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Generator, Optional, Type, TypeVar

from world.types import ActionResult

from .errors import ActionTimeout, StepError


log = logging.getLogger(__name__)

T = TypeVar("T")

# Generator yielding futures, receiving ActionResults, returning T.
Task = Generator["Future[ActionResult]", ActionResult, T]


def expect(
    future: "Future[ActionResult]",
    failure: Type[StepError],
    message: str,
) -> Generator["Future[ActionResult]", ActionResult, ActionResult]:
    """
    Wait for `future` and raise `failure` if the action did not succeed.

    Use with `yield from` inside a task.
    """
    result = yield future
    if not result.success:
        details = dict(result.details)
        details["error"] = result.error
        raise failure(f"{message}: {result.error}", details=details)
    return result


class TaskRunner:
    """
    Poll-driven driver for one cooperative task.

    After `finished` becomes True exactly one of `value` / `error` is set
    (value may legitimately be None).
    """

    def __init__(self, task: Task, *, timeout_ticks: int, label: str = "") -> None:
        self._task = task
        self._timeout_ticks = max(1, timeout_ticks)
        self.label = label

        self._pending: Optional["Future[ActionResult]"] = None
        self._started = False
        self._waited = 0

        self.finished = False
        self.value: Any = None
        self.error: Optional[BaseException] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def poll(self) -> bool:
        """Advance the task as far as it can go this tick. Returns `finished`."""
        if self.finished:
            return True

        if not self._started:
            self._started = True
            self._advance(None)

        # Chain through futures that already resolved (zero-latency worlds).
        while not self.finished and self._pending is not None and self._pending.done():
            result = self._pending.result()
            self._pending = None
            self._advance(result)

        if not self.finished:
            self._waited += 1
            if self._waited > self._timeout_ticks:
                log.debug("TaskRunner %s timed out after %d ticks", self.label, self._waited - 1)
                self.close()
                self._finish(error=ActionTimeout(
                    f"{self.label or 'action'} exceeded {self._timeout_ticks} ticks",
                    details={"timeout_ticks": self._timeout_ticks},
                ))

        return self.finished

    def close(self) -> None:
        """Abandon the task; any outstanding action is simply not awaited."""
        self._pending = None
        self._task.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self, result: Optional[ActionResult]) -> None:
        try:
            future = self._task.send(result)  # type: ignore[arg-type]
        except StopIteration as stop:
            self._finish(value=stop.value)
            return
        except StepError as exc:
            self._finish(error=exc)
            return

        self._pending = future
        self._waited = 0

    def _finish(self, *, value: Any = None, error: Optional[BaseException] = None) -> None:
        self.finished = True
        self.value = value
        self.error = error
