# src/execution/executor.py
"""
Generic Plan executor.

Drives one Plan at a time, one Step attempt at a time, one outstanding
world action at a time:

- each StepKind is handled by a registered runner (a generator task, see
  execution.task)
- DONE pops the step; PROGRESSED keeps it at the front
- a StepError bumps the step's retry counter; below max_retries the step
  is moved to the back, at max_retries it is dropped for good
- a full pass over the remaining steps without any DONE/PROGRESSED
  outcome marks the plan STUCK
- progress is reported every `progress_every` consumed steps and on
  completion, never per step

The executor never touches the world itself; only runners do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Mapping, Optional

from monitoring.events import EventType
from monitoring.status import StatusReporter

from .errors import StepError
from .plan import Plan, Step, StepKind, StepOutcome
from .task import Task, TaskRunner


log = logging.getLogger(__name__)

StepRunner = Callable[[Step], Task]


# ---------------------------------------------------------------------------
# Config / results
# ---------------------------------------------------------------------------


@dataclass
class ExecutorConfig:
    max_retries: int = 3
    step_timeout_ticks: int = 200
    progress_every: int = 5


class ExecutorStatus(Enum):
    IDLE = auto()
    RUNNING = auto()
    COMPLETE = auto()
    STUCK = auto()


@dataclass
class ExecutionReport:
    plan_name: str = ""
    total: int = 0
    succeeded: int = 0
    dropped: int = 0
    stuck: bool = False
    errors: List[StepError] = field(default_factory=list)

    @property
    def consumed(self) -> int:
        return self.succeeded + self.dropped

    @property
    def ratio(self) -> float:
        return self.succeeded / self.total if self.total else 0.0

    @property
    def percent(self) -> int:
        return int(100 * self.consumed / self.total) if self.total else 100

    def last_error(self) -> Optional[StepError]:
        return self.errors[-1] if self.errors else None

    def to_dict(self) -> Dict[str, object]:
        return {
            "plan": self.plan_name,
            "total": self.total,
            "succeeded": self.succeeded,
            "dropped": self.dropped,
            "stuck": self.stuck,
            "ratio": round(self.ratio, 3),
        }


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class Executor:
    """
    Public contract:
      run(plan)       adopt a plan (abandons any previous one)
      tick() -> ExecutorStatus
      cancel()        drop plan and in-flight task
    """

    def __init__(
        self,
        runners: Mapping[StepKind, StepRunner],
        *,
        config: ExecutorConfig | None = None,
        reporter: StatusReporter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runners: Dict[StepKind, StepRunner] = dict(runners)
        self._cfg = config if config is not None else ExecutorConfig()
        self._reporter = reporter if reporter is not None else StatusReporter()
        self._log = logger or log

        self._plan: Optional[Plan] = None
        self._task: Optional[TaskRunner] = None
        self._status = ExecutorStatus.IDLE
        self._report = ExecutionReport()

        # Stuck detection: attempts left in the current pass, and whether
        # any of them made progress.
        self._pass_remaining = 0
        self._pass_progress = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def plan(self) -> Optional[Plan]:
        return self._plan

    @property
    def status(self) -> ExecutorStatus:
        return self._status

    @property
    def report(self) -> ExecutionReport:
        return self._report

    @property
    def config(self) -> ExecutorConfig:
        return self._cfg

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, kind: StepKind, runner: StepRunner) -> None:
        self._runners[kind] = runner

    def run(self, plan: Plan) -> None:
        self.cancel()
        self._plan = plan
        self._report = ExecutionReport(plan_name=plan.name, total=plan.initial_count)
        self._pass_remaining = len(plan)
        self._pass_progress = False
        self._status = ExecutorStatus.RUNNING
        self._reporter.note(
            EventType.PLAN_CREATED,
            f"Plan {plan.name} started with {len(plan)} steps",
            plan=plan.summary(),
        )
        if plan.is_empty:
            self._complete()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.close()
            self._task = None
        self._plan = None
        self._status = ExecutorStatus.IDLE

    def tick(self) -> ExecutorStatus:
        if self._plan is None or self._status is not ExecutorStatus.RUNNING:
            return self._status

        if self._task is None:
            step = self._plan.front()
            runner = self._runners.get(step.kind)
            if runner is None:
                self._log.warning("Executor has no runner for step kind %s", step.kind.name)
                self._on_failure(step, StepError(f"no runner for {step.kind.name}"))
                return self._status
            self._log.debug("Executor attempt %s (retry=%d)", step.describe(), step.retry_count)
            self._task = TaskRunner(
                runner(step),
                timeout_ticks=self._cfg.step_timeout_ticks,
                label=step.describe(),
            )

        if not self._task.poll():
            return self._status

        task, self._task = self._task, None
        step = self._plan.front()
        if task.error is not None:
            self._on_failure(step, task.error)  # type: ignore[arg-type]
        elif task.value is StepOutcome.PROGRESSED:
            self._on_progressed(step)
        else:
            self._on_done(step)
        return self._status

    # ------------------------------------------------------------------
    # Outcome handling
    # ------------------------------------------------------------------

    def _on_done(self, step: Step) -> None:
        assert self._plan is not None
        self._plan.pop_front()
        self._report.succeeded += 1
        self._pass_progress = True
        self._log.debug("Executor step done: %s", step.describe())
        self._maybe_report_progress()
        self._end_attempt()

    def _on_progressed(self, step: Step) -> None:
        self._pass_progress = True
        self._log.debug("Executor step progressed: %s", step.describe())
        self._end_attempt()

    def _on_failure(self, step: Step, error: StepError) -> None:
        assert self._plan is not None
        step.retry_count += 1
        self._report.errors.append(error)

        if step.retry_count >= self._cfg.max_retries:
            self._plan.pop_front()
            self._report.dropped += 1
            self._reporter.failure(
                EventType.STEP_DROPPED,
                f"Giving up on {step.describe()} after {step.retry_count} attempts ({error.code})",
                plan=self._report.plan_name,
                error=str(error),
            )
            self._maybe_report_progress()
        else:
            self._plan.defer_front()
            self._log.debug(
                "Executor deferred %s (retry %d/%d): %s",
                step.describe(),
                step.retry_count,
                self._cfg.max_retries,
                error,
            )
        self._end_attempt()

    def _end_attempt(self) -> None:
        assert self._plan is not None
        if self._plan.is_empty:
            self._complete()
            return

        self._pass_remaining -= 1
        if self._pass_remaining > 0:
            return

        if not self._pass_progress:
            self._status = ExecutorStatus.STUCK
            self._report.stuck = True
            last = self._report.last_error()
            self._reporter.failure(
                EventType.PLAN_STUCK,
                f"Plan {self._report.plan_name} is stuck with {len(self._plan)} steps left"
                + (f" ({last.code})" if last is not None else ""),
                **self._report.to_dict(),
            )
            return

        self._pass_remaining = len(self._plan)
        self._pass_progress = False

    def _complete(self) -> None:
        self._status = ExecutorStatus.COMPLETE
        r = self._report
        self._reporter.note(
            EventType.PLAN_COMPLETED,
            f"Plan {r.plan_name} finished: {r.succeeded}/{r.total} steps succeeded",
            **r.to_dict(),
        )

    def _maybe_report_progress(self) -> None:
        r = self._report
        every = max(1, self._cfg.progress_every)
        if r.consumed % every != 0 or r.consumed >= r.total:
            return
        self._reporter.say(
            EventType.PLAN_PROGRESS,
            f"{r.plan_name}: {r.percent}% complete ({r.consumed}/{r.total})",
            **r.to_dict(),
        )
