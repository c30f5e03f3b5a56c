# src/states/trade.py

from __future__ import annotations

from typing import Optional

from execution.errors import ResourceShortage
from execution.executor import ExecutionReport
from execution.plan import Plan, ResourceRequirement, Step, StepKind

from .base import StateKind, TaskState


TRADER_KIND = "villager"


class TradeState(TaskState):
    """Buy `goal.count` of `goal.target` from the nearest villager."""

    kind = StateKind.TRADE

    def start(self) -> Optional[Plan]:
        assert self.goal is not None
        trader = self.ctx.find_entity(TRADER_KIND)
        if trader is None:
            self.fail(f"No {TRADER_KIND} nearby to buy {self.goal.target} from")
            return None
        item = self.ctx.book.normalize(self.goal.target)
        step = Step(
            kind=StepKind.TRADE,
            resource=ResourceRequirement(item, self.goal.count),
            label=f"buy {self.goal.count}x {item}",
            params={"entity_id": trader.id},
        )
        return Plan.of(f"trade-{item}", [step])

    def plan_stuck(self, report: ExecutionReport) -> None:
        self.executor.cancel()
        if isinstance(report.last_error(), ResourceShortage):
            self.fail(f"Cannot afford {self.describe_goal()}")
        else:
            self.fail(f"Trade for {self.describe_goal()} failed")
