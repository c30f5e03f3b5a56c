# src/states/follow.py

from __future__ import annotations

from typing import Optional

from execution.executor import ExecutorStatus
from execution.plan import Plan, Step, StepKind

from .base import StateKind, TaskState


class FollowState(TaskState):
    """
    Stay close to a player.

    The follow goal is never completed by this state; it stays on the board
    until a `stop` command removes it, or the player has been out of sight
    for `follow_lost_ticks` ticks.
    """

    kind = StateKind.FOLLOW
    min_dwell_ticks = 20
    limit_attempts = False

    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.unseen_ticks = 0

    def start(self) -> Optional[Plan]:
        self.unseen_ticks = 0
        return None

    def step(self) -> None:
        if self.executor.status is ExecutorStatus.RUNNING:
            self.executor.tick()
            return

        assert self.goal is not None
        if self.ctx.goals.peek(StateKind.FOLLOW) is not self.goal:
            # Cancelled or replaced by a newer follow request.
            self.outcome = "done"
            return

        player = self.ctx.find_player(self.goal.target)
        if player is None:
            self.unseen_ticks += 1
            if self.unseen_ticks > self.ctx.settings.states.follow_lost_ticks:
                self.fail(f"Lost sight of {self.goal.target}")
            return
        self.unseen_ticks = 0

        near = self.ctx.settings.states.follow_near
        if player.position.distance(self.ctx.world.position()) > near:
            self.executor.run(
                Plan.of(
                    "follow",
                    [Step(kind=StepKind.MOVE, target=player.position, label=f"follow {player.name}", params={"tolerance": near})],
                )
            )

    def survival(self, candidate: StateKind) -> bool:
        if candidate is StateKind.FOLLOW:
            return False
        return super().survival(candidate)

    def status(self) -> str:
        if self.goal is not None and self.outcome is None:
            return f"following {self.goal.target}"
        return super().status()
