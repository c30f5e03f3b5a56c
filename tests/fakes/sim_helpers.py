# tests/fakes/sim_helpers.py

from __future__ import annotations

from collections import Counter
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Sequence

from agent.bootstrap import Agent, build_agent
from crafting.recipes import RecipeBook, load_recipe_book
from execution.errors import StepError
from execution.plan import Step, StepOutcome
from execution.task import Task, TaskRunner
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from settings.schema import AgentSettings
from world.sim import SimWorld
from world.types import ActionResult, Position


GROUND_Y = 63
ORIGIN = Position(0, GROUND_Y + 1, 0)

HANG = "hang"


def resolved(result: Optional[ActionResult] = None) -> "Future[ActionResult]":
    future: "Future[ActionResult]" = Future()
    future.set_result(result if result is not None else ActionResult.ok())
    return future


def flat_world(radius: int = 12, *, book: Optional[RecipeBook] = None, latency: int = 1) -> SimWorld:
    world = SimWorld(position=ORIGIN, recipes=book if book is not None else load_recipe_book(), latency=latency)
    world.flat_ground(radius, y=GROUND_Y)
    return world


def drive(task: Task, world: SimWorld, *, max_ticks: int = 200, timeout_ticks: int = 20) -> TaskRunner:
    """Poll `task` against `world` until it finishes."""
    runner = TaskRunner(task, timeout_ticks=timeout_ticks)
    for _ in range(max_ticks):
        if runner.poll():
            return runner
        world.tick()
    raise AssertionError(f"task did not finish within {max_ticks} ticks")


class EventRecorder:
    def __init__(self, bus: EventBus) -> None:
        self.events: List[MonitoringEvent] = []
        bus.subscribe(self.events.append)

    def of(self, event_type: EventType) -> List[MonitoringEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def messages(self, event_type: EventType) -> List[str]:
        return [e.message for e in self.of(event_type)]


class ScriptedRunner:
    """
    Step runner whose outcome per step label follows a script.

    Script entries are a StepOutcome, a StepError subclass to raise, or
    HANG for a future that never resolves. The last entry repeats.
    """

    def __init__(self, scripts: Dict[str, Sequence[object]]) -> None:
        self.scripts = {label: list(outcomes) for label, outcomes in scripts.items()}
        self.calls: Counter = Counter()

    def __call__(self, step: Step) -> Task:
        self.calls[step.label] += 1
        script = self.scripts[step.label]
        outcome = script.pop(0) if len(script) > 1 else script[0]
        return self._run(outcome)

    @staticmethod
    def _run(outcome: object) -> Task:
        if outcome == HANG:
            yield Future()
            return StepOutcome.DONE
        yield resolved()
        if isinstance(outcome, type) and issubclass(outcome, StepError):
            raise outcome("scripted failure")
        return outcome


# ---------------------------------------------------------------------------
# Whole agent
# ---------------------------------------------------------------------------


def make_agent(
    world: SimWorld,
    *,
    book: Optional[RecipeBook] = None,
    settings: Optional[AgentSettings] = None,
) -> "tuple[Agent, EventRecorder]":
    bus = EventBus()
    recorder = EventRecorder(bus)
    agent = build_agent(world, settings, bus=bus, book=book if book is not None else load_recipe_book())
    return agent, recorder


def run(
    agent: Agent,
    world: SimWorld,
    ticks: int,
    *,
    until: Optional[Callable[[], bool]] = None,
) -> int:
    """Advance world and agent together; returns the ticks used."""
    for n in range(1, ticks + 1):
        world.tick()
        agent.tick()
        if until is not None and until():
            return n
    return ticks
