# src/execution/plan.py

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Deque, Dict, Iterable, List, Optional

from world.types import Position


class StepKind(Enum):
    """Action kind of a Step; each kind has one registered runner."""

    MOVE = auto()
    DIG = auto()
    PLACE = auto()
    COLLECT = auto()     # find + dig a block of a given kind
    PLANT = auto()
    USE = auto()
    ATTACK = auto()
    TRADE = auto()


class StepOutcome(Enum):
    DONE = auto()        # step finished, pop it
    PROGRESSED = auto()  # made progress (e.g. support block placed), keep it at the front


@dataclass
class ResourceRequirement:
    item_kind: str
    count: int = 1

    def __str__(self) -> str:
        return f"{self.count}x {self.item_kind}"


@dataclass
class Step:
    """
    Discrete world-affecting unit of a Plan.

    - target: block/position the step acts on, if any
    - resource: item the step consumes, if any
    - retry_count: failed attempts so far
    - params: runner-specific extras (substitute materials, entity ids, ...)
    """

    kind: StepKind
    target: Optional[Position] = None
    resource: Optional[ResourceRequirement] = None
    retry_count: int = 0
    label: str = ""
    params: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        if self.label:
            return self.label
        parts = [self.kind.name.lower()]
        if self.resource is not None:
            parts.append(self.resource.item_kind)
        if self.target is not None:
            parts.append(f"@ {self.target}")
        return " ".join(parts)


@dataclass
class Plan:
    """Ordered, mutable queue of Steps."""

    name: str
    steps: Deque[Step] = field(default_factory=deque)
    initial_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.steps, deque):
            self.steps = deque(self.steps)
        if not self.initial_count:
            self.initial_count = len(self.steps)

    @classmethod
    def of(cls, name: str, steps: Iterable[Step]) -> "Plan":
        return cls(name=name, steps=deque(steps))

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def front(self) -> Step:
        return self.steps[0]

    def pop_front(self) -> Step:
        return self.steps.popleft()

    def defer_front(self) -> Step:
        """Move the front Step to the back of the queue."""
        step = self.steps.popleft()
        self.steps.append(step)
        return step

    def targets(self) -> List[Optional[Position]]:
        return [s.target for s in self.steps]

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "remaining": len(self.steps),
            "initial": self.initial_count,
        }
