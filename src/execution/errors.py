# src/execution/errors.py
"""
Error taxonomy for plan execution.

Step-level failures (StepError subclasses) are raised by step runners and
handled inside the Executor by the retry/defer mechanism; they never
escape a Plan run.

GoalUnreachable is the only error that surfaces to the owning State,
which must react by transitioning away instead of retrying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List


@dataclass(eq=False)
class AgentError(RuntimeError):
    """Base class for orchestration-level errors."""

    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    code: ClassVar[str] = "agent_error"

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# ---------------------------------------------------------------------------
# Retryable step failures
# ---------------------------------------------------------------------------

class StepError(AgentError):
    """A single Step attempt failed; the Executor may retry it later."""

    code: ClassVar[str] = "step_error"


@dataclass(eq=False)
class ResourceShortage(StepError):
    """Inventory lacks the item a Step needs."""

    kind: str = ""
    count: int = 0

    code: ClassVar[str] = "resource_shortage"


class NavigationFailure(StepError):
    """No path to the target, or movement timed out."""

    code: ClassVar[str] = "navigation_failure"


class PlacementFailure(StepError):
    """No valid reference face, or a placement did not take."""

    code: ClassVar[str] = "placement_failure"


class WorldInconsistency(StepError):
    """The world does not look the way the Step expected (e.g. unloaded chunk)."""

    code: ClassVar[str] = "world_inconsistency"


class ActionTimeout(StepError):
    """An action call exceeded its tick limit."""

    code: ClassVar[str] = "action_timeout"


# ---------------------------------------------------------------------------
# Terminal failures
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class GoalUnreachable(AgentError):
    """
    A resolver or planner made zero progress across a full pass.

    - missing: per-item shortfalls that blocked progress, when known
    - subgoals: (kind, count) pairs that would unblock the goal
    """

    missing: Dict[str, Dict[str, int]] = field(default_factory=dict)
    subgoals: List[Any] = field(default_factory=list)

    code: ClassVar[str] = "goal_unreachable"
