# src/states/gather.py

from __future__ import annotations

from typing import Optional

from execution.executor import ExecutionReport
from execution.plan import Plan
from world.inventory import count_of

from .base import StateKind, TaskState


class GatherState(TaskState):
    """Collect `goal.count` more of `goal.target` from nearby source blocks."""

    kind = StateKind.GATHER

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.item = ""
        self.wanted = 0

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.states.gather_timeout_ticks

    def start(self) -> Optional[Plan]:
        assert self.goal is not None
        self.item = self.ctx.book.normalize(self.goal.target)
        self.wanted = self.held() + self.goal.count
        if self.ctx.gathering.nearest_source(self.item) is None:
            self.fail(f"No {'/'.join(self.ctx.gathering.source_blocks(self.item))} nearby for {self.item}")
            return None
        return self.ctx.gathering.plan_collection(self.item, self.goal.count)

    def held(self) -> int:
        return count_of(self.ctx.world.query_inventory(), self.item)

    def plan_complete(self, report: ExecutionReport) -> None:
        self._conclude()

    def plan_stuck(self, report: ExecutionReport) -> None:
        self.executor.cancel()
        self._conclude()

    def _conclude(self) -> None:
        have = self.held()
        if have >= self.wanted:
            self.finish(f"Gathered {self.item} ({have} held)")
        else:
            assert self.goal is not None
            got = self.goal.count - (self.wanted - have)
            self.fail(f"Only gathered {max(0, got)}/{self.goal.count} {self.item}")
