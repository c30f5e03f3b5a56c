# src/agent/commands.py
"""
Textual command router.

Maps one command line to goals on the GoalBoard plus a state request that
the controller applies at the next tick boundary. Parsing of names into
StateKind / StructureKind happens here and nowhere else.

    state <name>                 switch state directly
    build <kind>                 build a structure near the agent
    repair <kind> <x> <y> <z>    repair a structure anchored at x y z
    craft [count] <item>
    mine <block> [count]
    gather <item> [count]
    follow <player>
    defend [radius]
    explore [radius]
    farm
    fish [casts]
    trade <item> [count]
    stop                         drop all goals and go idle
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from building.templates import StructureKind, UnknownStructure
from crafting.recipes import RecipeBook
from monitoring.events import EventType
from monitoring.status import StatusReporter
from states.base import StateKind
from world.types import Position

from .controller import StateController
from .goals import Goal, GoalBoard


log = logging.getLogger(__name__)


@dataclass
class CommandResult:
    ok: bool
    message: str
    goal: Optional[Goal] = None


class CommandError(ValueError):
    """Malformed command arguments."""


class CommandRouter:
    def __init__(
        self,
        controller: StateController,
        goals: GoalBoard,
        book: RecipeBook,
        *,
        reporter: Optional[StatusReporter] = None,
        prefix: str = "",
        owner: Optional[str] = None,
    ) -> None:
        self._controller = controller
        self._goals = goals
        self._book = book
        self._reporter = reporter if reporter is not None else StatusReporter(module="agent.commands")
        self._prefix = prefix
        self._owner = owner
        self._handlers: Dict[str, Callable[[List[str], Optional[str]], CommandResult]] = {
            "state": self._state,
            "build": self._build,
            "repair": self._repair,
            "craft": self._craft,
            "mine": self._mine,
            "gather": self._gather,
            "follow": self._follow,
            "defend": self._defend,
            "explore": self._explore,
            "farm": self._farm,
            "fish": self._fish,
            "trade": self._trade,
            "stop": self._stop,
        }

    @property
    def commands(self) -> List[str]:
        return sorted(self._handlers)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def handle(self, text: str, sender: Optional[str] = None) -> CommandResult:
        """Parse and run one command line. Always produces exactly one status message."""
        line = text.strip()
        if self._prefix and line.startswith(self._prefix):
            line = line[len(self._prefix):].strip()

        try:
            words = shlex.split(line)
        except ValueError as exc:
            return self._reply(CommandResult(False, f"Cannot parse '{text}': {exc}"))
        if not words:
            return self._reply(CommandResult(False, "Empty command"))

        name, args = words[0].lower(), words[1:]
        handler = self._handlers.get(name)
        if handler is None:
            return self._reply(CommandResult(False, f"Unknown command '{name}'. Try: {', '.join(self.commands)}"))

        try:
            result = handler(args, sender)
        except CommandError as exc:
            result = CommandResult(False, f"{name}: {exc}")
        return self._reply(result)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _state(self, args: List[str], sender: Optional[str]) -> CommandResult:
        name = _arg(args, 0, "state name")
        try:
            kind = StateKind.parse(name)
        except ValueError as exc:
            raise CommandError(str(exc)) from None
        self._controller.request_state(kind)
        return CommandResult(True, f"Switching to {kind.value}")

    def _build(self, args: List[str], sender: Optional[str]) -> CommandResult:
        kind = self._structure(_arg(args, 0, "structure kind"))
        goal = self._goals.post(Goal(StateKind.BUILD, kind.value))
        return self._start(goal, f"Building a {kind.value}")

    def _repair(self, args: List[str], sender: Optional[str]) -> CommandResult:
        kind = self._structure(_arg(args, 0, "structure kind"))
        if len(args) < 4:
            raise CommandError("usage: repair <kind> <x> <y> <z>")
        anchor = Position(_int(args[1], "x"), _int(args[2], "y"), _int(args[3], "z"))
        goal = self._goals.post(Goal(StateKind.BUILD, kind.value, params={"repair": True, "anchor": anchor}))
        return self._start(goal, f"Repairing the {kind.value} at {anchor}")

    def _craft(self, args: List[str], sender: Optional[str]) -> CommandResult:
        if args and args[0].isdigit():
            count, item = int(args[0]), _arg(args, 1, "item")
        else:
            item = _arg(args, 0, "item")
            count = _int(args[1], "count") if len(args) > 1 else 1
        item = self._book.normalize(item)
        if not self._book.is_craftable(item):
            raise CommandError(f"don't know how to craft {item}")
        goal = self._goals.post(Goal(StateKind.CRAFT, item, _positive(count)))
        return self._start(goal, f"Crafting {count}x {item}")

    def _mine(self, args: List[str], sender: Optional[str]) -> CommandResult:
        block = _arg(args, 0, "block")
        count = _positive(_int(args[1], "count")) if len(args) > 1 else 1
        goal = self._goals.post(Goal(StateKind.MINING, block, count))
        return self._start(goal, f"Mining {count}x {block}")

    def _gather(self, args: List[str], sender: Optional[str]) -> CommandResult:
        item = self._book.normalize(_arg(args, 0, "item"))
        count = _positive(_int(args[1], "count")) if len(args) > 1 else 1
        goal = self._goals.post(Goal(StateKind.GATHER, item, count))
        return self._start(goal, f"Gathering {count}x {item}")

    def _follow(self, args: List[str], sender: Optional[str]) -> CommandResult:
        player = args[0] if args else (sender or self._owner)
        if not player:
            raise CommandError("usage: follow <player>")
        self._goals.clear(StateKind.FOLLOW)
        goal = self._goals.post(Goal(StateKind.FOLLOW, player))
        return self._start(goal, f"Following {player}")

    def _defend(self, args: List[str], sender: Optional[str]) -> CommandResult:
        params = {"radius": _positive(_int(args[0], "radius"))} if args else {}
        self._goals.clear(StateKind.DEFENSE)
        goal = self._goals.post(Goal(StateKind.DEFENSE, params=params))
        return self._start(goal, "Defending this area")

    def _explore(self, args: List[str], sender: Optional[str]) -> CommandResult:
        params = {"radius": _positive(_int(args[0], "radius"))} if args else {}
        goal = self._goals.post(Goal(StateKind.EXPLORE, params=params))
        return self._start(goal, "Exploring")

    def _farm(self, args: List[str], sender: Optional[str]) -> CommandResult:
        goal = self._goals.post(Goal(StateKind.FARM))
        return self._start(goal, "Farming")

    def _fish(self, args: List[str], sender: Optional[str]) -> CommandResult:
        casts = _positive(_int(args[0], "casts")) if args else 5
        goal = self._goals.post(Goal(StateKind.FISH, "fish", casts))
        return self._start(goal, f"Fishing ({casts} casts)")

    def _trade(self, args: List[str], sender: Optional[str]) -> CommandResult:
        item = self._book.normalize(_arg(args, 0, "item"))
        count = _positive(_int(args[1], "count")) if len(args) > 1 else 1
        goal = self._goals.post(Goal(StateKind.TRADE, item, count))
        return self._start(goal, f"Trading for {count}x {item}")

    def _stop(self, args: List[str], sender: Optional[str]) -> CommandResult:
        dropped = self._goals.clear_all()
        self._controller.request_state(StateKind.IDLE)
        return CommandResult(True, f"Stopped ({dropped} goals dropped)")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _start(self, goal: Goal, message: str) -> CommandResult:
        self._controller.request_state(goal.kind)
        return CommandResult(True, message, goal)

    @staticmethod
    def _structure(name: str) -> StructureKind:
        try:
            return StructureKind.parse(name)
        except UnknownStructure as exc:
            raise CommandError(str(exc)) from None

    def _reply(self, result: CommandResult) -> CommandResult:
        if result.ok:
            event = EventType.GOAL_POSTED if result.goal is not None else EventType.STATUS
            self._reporter.say(event, result.message)
        else:
            self._reporter.failure(EventType.STATUS, result.message)
        return result


def _arg(args: List[str], index: int, what: str) -> str:
    if len(args) <= index:
        raise CommandError(f"missing {what}")
    return args[index]


def _int(text: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise CommandError(f"{what} must be a number, got '{text}'") from None


def _positive(n: int) -> int:
    if n <= 0:
        raise CommandError("count must be positive")
    return n
