# src/states/mining.py

from __future__ import annotations

from typing import Optional

from agent.goals import Goal
from execution.executor import ExecutionReport
from execution.plan import Plan, Step, StepKind
from world.inventory import inventory_counts

from .base import StateKind, TaskState


# Blocks that need a pickaxe to drop anything.
NEEDS_PICKAXE = frozenset({"stone", "cobblestone", "coal_ore", "iron_ore", "copper_ore", "gold_ore",
                           "redstone_ore", "lapis_ore", "diamond_ore", "emerald_ore", "deepslate"})

# Liquids next to a block make digging it unsafe.
UNSAFE_NEIGHBORS = frozenset({"lava", "water"})


class MiningState(TaskState):
    """
    Dig `goal.count` blocks of kind `goal.target`.

    Hard blocks need a pickaxe; without one the state posts a craft goal
    for a wooden pickaxe and waits for it. Blocks touching lava or water
    are skipped.
    """

    kind = StateKind.MINING
    exit_candidates = (StateKind.CRAFT, StateKind.IDLE)

    def timeout(self) -> Optional[int]:
        return self.ctx.settings.states.mining_timeout_ticks

    def start(self) -> Optional[Plan]:
        assert self.goal is not None
        block = self.goal.target
        if block in NEEDS_PICKAXE and not self.has_pickaxe():
            self.require(Goal(StateKind.CRAFT, "wooden_pickaxe", 1, source="mining"))
            self.hand_over(StateKind.CRAFT, f"Need a pickaxe to mine {block}")
            return None

        radius = self.ctx.settings.states.search_radius
        found = self.ctx.world.find_nearest_of_kind(block, radius, self.goal.count * 2)
        targets = [pos for pos in found if self.safe_to_mine(pos)][: self.goal.count]
        if not targets:
            self.fail(f"No {block} safe to mine within {radius:g} blocks")
            return None
        steps = [
            Step(kind=StepKind.COLLECT, target=pos, label=f"mine {block} at {pos}", params={"sources": [block]})
            for pos in targets
        ]
        return Plan.of(f"mine-{block}", steps)

    def has_pickaxe(self) -> bool:
        return any(kind.endswith("_pickaxe") for kind in inventory_counts(self.ctx.world.query_inventory()))

    def safe_to_mine(self, pos) -> bool:
        for n in pos.neighbors():
            block = self.ctx.world.query_block(n)
            if block is not None and block.kind in UNSAFE_NEIGHBORS:
                return False
        return True

    def plan_complete(self, report: ExecutionReport) -> None:
        assert self.goal is not None
        if report.succeeded == 0:
            self.fail(f"Could not mine any {self.goal.target}")
        else:
            self.finish(f"Mined {report.succeeded}/{self.goal.count} {self.goal.target}")
