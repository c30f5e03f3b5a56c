# src/crafting/queue.py

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional

from .recipes import Recipe
from .resolver import CraftEntry


@dataclass
class QueueEntry:
    kind: str
    count: int
    recipe: Optional[Recipe] = None
    attempts: int = 0
    retries: int = 0

    @property
    def batches(self) -> int:
        return self.recipe.batches_for(self.count) if self.recipe is not None else self.count


@dataclass
class CraftQueue:
    """
    Ordered craft work with livelock detection.

    The front entry is attempted; a success pops it, a shortfall records
    the missing ingredients and moves it to the back. A full pass over
    the queue without a single success sets `livelocked`: every remaining
    entry is blocked, so the goal is unreachable.

    Any other failure (timeout, lost path, rejected craft call) is a retry:
    the entry goes to the back without counting toward the pass, and is
    dropped once it has failed `max_retries` times.
    """

    entries: Deque[QueueEntry] = field(default_factory=deque)
    missing_ingredients: Dict[str, Dict[str, int]] = field(default_factory=dict)
    crafted: Counter = field(default_factory=Counter)
    dropped: List[str] = field(default_factory=list)
    max_retries: int = 3

    _pass_remaining: int = field(default=0, init=False, repr=False)
    _pass_success: bool = field(default=False, init=False, repr=False)
    livelocked: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.entries, deque):
            self.entries = deque(self.entries)
        self._reset_pass()

    # ------------------------------------------------------------------
    # Building the queue
    # ------------------------------------------------------------------

    def push(self, kind: str, count: int, recipe: Optional[Recipe] = None) -> QueueEntry:
        entry = QueueEntry(kind=kind, count=count, recipe=recipe)
        self.entries.append(entry)
        self._reset_pass()
        return entry

    def extend(self, crafts: Iterable[CraftEntry]) -> None:
        for craft in crafts:
            self.entries.append(QueueEntry(kind=craft.kind, count=craft.produced, recipe=craft.recipe))
        self._reset_pass()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def front(self) -> QueueEntry:
        return self.entries[0]

    def record_success(self, produced: Optional[int] = None) -> QueueEntry:
        entry = self.entries.popleft()
        entry.attempts += 1
        self.crafted[entry.kind] += produced if produced is not None else entry.count
        self.missing_ingredients.pop(entry.kind, None)
        self._pass_success = True
        self._end_attempt()
        return entry

    def record_shortfall(self, missing: Dict[str, int]) -> QueueEntry:
        entry = self.entries.popleft()
        entry.attempts += 1
        self.missing_ingredients[entry.kind] = dict(missing)
        self.entries.append(entry)
        self._end_attempt()
        return entry

    def record_failure(self) -> QueueEntry:
        """Requeue the front entry after a non-shortfall failure, or drop it."""
        entry = self.entries.popleft()
        entry.attempts += 1
        entry.retries += 1
        if entry.retries < self.max_retries:
            self.entries.append(entry)
            return entry
        self.dropped.append(entry.kind)
        self.missing_ingredients.pop(entry.kind, None)
        self._pass_remaining = min(self._pass_remaining, len(self.entries))
        return entry

    def blocked(self) -> List[str]:
        return [e.kind for e in self.entries if e.kind in self.missing_ingredients]

    # ------------------------------------------------------------------
    # Pass accounting
    # ------------------------------------------------------------------

    def _reset_pass(self) -> None:
        self._pass_remaining = len(self.entries)
        self._pass_success = False
        self.livelocked = False

    def _end_attempt(self) -> None:
        if not self.entries:
            return
        self._pass_remaining -= 1
        if self._pass_remaining > 0:
            return
        if not self._pass_success:
            self.livelocked = True
            return
        self._pass_remaining = len(self.entries)
        self._pass_success = False
