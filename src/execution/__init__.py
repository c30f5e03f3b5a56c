"""Plan / Step model, cooperative tasks and the generic Executor."""

from .errors import (
    ActionTimeout,
    AgentError,
    GoalUnreachable,
    NavigationFailure,
    PlacementFailure,
    ResourceShortage,
    StepError,
    WorldInconsistency,
)
from .plan import Plan, ResourceRequirement, Step, StepKind, StepOutcome
from .executor import ExecutionReport, Executor, ExecutorConfig, ExecutorStatus

__all__ = [
    "ActionTimeout",
    "AgentError",
    "GoalUnreachable",
    "NavigationFailure",
    "PlacementFailure",
    "ResourceShortage",
    "StepError",
    "WorldInconsistency",
    "Plan",
    "ResourceRequirement",
    "Step",
    "StepKind",
    "StepOutcome",
    "ExecutionReport",
    "Executor",
    "ExecutorConfig",
    "ExecutorStatus",
]
