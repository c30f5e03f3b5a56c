# src/states/idle.py

from __future__ import annotations

from typing import Optional

from agent.goals import Goal
from crafting.needs import assess_crafting_needs
from execution.executor import ExecutorStatus
from execution.plan import Plan, ResourceRequirement, Step, StepKind
from world.inventory import inventory_counts

from .base import State, StateKind


# Edible items, best first.
FOODS = ("bread", "cooked_beef", "cooked_porkchop", "cooked_cod", "cod", "apple", "carrot")

# Ticks between autonomous checks once the idle dwell has passed.
NEEDS_INTERVAL_TICKS = 200


class IdleState(State):
    """
    Default state.

    Hands over to any task state with a pending goal (in the order below).
    After `idle_dwell_ticks` it also looks after itself: eats when hungry
    and posts crafting goals for missing basic tools.
    """

    kind = StateKind.IDLE
    min_dwell_ticks = 20
    exit_candidates = (
        StateKind.CRAFT,
        StateKind.BUILD,
        StateKind.MINING,
        StateKind.GATHER,
        StateKind.FARM,
        StateKind.FISH,
        StateKind.TRADE,
        StateKind.EXPLORE,
    )

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.executor = ctx.new_executor(self.reporter)
        self._last_check: Optional[int] = None

    def enter(self) -> None:
        self.executor.cancel()
        self._last_check = None

    def exit(self) -> None:
        self.executor.cancel()

    def update(self) -> None:
        if self.executor.status is ExecutorStatus.RUNNING:
            self.executor.tick()
            return
        if self.ticks_in_state < self.ctx.settings.states.idle_dwell_ticks:
            return
        now = self.ctx.clock()
        if self._last_check is not None and now - self._last_check < NEEDS_INTERVAL_TICKS:
            return
        self._last_check = now
        if not self.eat_if_hungry():
            self.assess_needs()

    def survival(self, candidate: StateKind) -> bool:
        if candidate is StateKind.FOLLOW:
            return self.ctx.goals.follow_target is not None
        return super().survival(candidate)

    def wants(self, candidate: StateKind) -> bool:
        return self.ctx.goals.pending(candidate)

    def status(self) -> str:
        return "eating" if self.executor.status is ExecutorStatus.RUNNING else "waiting"

    # ------------------------------------------------------------------
    # Autonomous needs
    # ------------------------------------------------------------------

    def eat_if_hungry(self) -> bool:
        if self.ctx.world.vitals().food > self.ctx.settings.states.hunger_threshold:
            return False
        counts = inventory_counts(self.ctx.world.query_inventory())
        food = next((f for f in FOODS if counts[f] > 0), None)
        if food is None:
            self.log.debug("Hungry but carrying no food")
            return False
        self.log.info("Hungry, eating %s", food)
        self.executor.run(Plan.of("eat", [Step(kind=StepKind.USE, resource=ResourceRequirement(food, 1))]))
        return True

    def assess_needs(self) -> None:
        if self.ctx.goals.pending(StateKind.CRAFT):
            return
        counts = inventory_counts(self.ctx.world.query_inventory())
        needs = assess_crafting_needs(self.ctx.resolver, counts, self.ctx.settings.crafting.keep_stock_of)
        if not needs:
            return
        kind, count = needs[0]
        self.log.info("Low on %s, queueing %dx", kind, count)
        self.ctx.goals.post(Goal(StateKind.CRAFT, kind, count, source="needs"))
