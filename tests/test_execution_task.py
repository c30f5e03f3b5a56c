#tests/test_execution_task.py
"""
Tests for execution.task.TaskRunner and expect().

Covers:
- value / error capture
- one outstanding future, polled without blocking
- tick timeout -> ActionTimeout
- GoalUnreachable is not swallowed
"""

from __future__ import annotations

from concurrent.futures import Future

import pytest

from execution.errors import ActionTimeout, GoalUnreachable, NavigationFailure
from execution.task import TaskRunner, expect
from world.types import ActionResult

from fakes.sim_helpers import resolved


def test_task_runner_returns_value_after_resolved_futures():
    def task():
        first = yield resolved(ActionResult.ok(n=3))
        second = yield resolved(ActionResult.ok(n=4))
        return first.details["n"] + second.details["n"]

    runner = TaskRunner(task(), timeout_ticks=5)

    assert runner.poll() is True
    assert runner.value == 7
    assert runner.error is None


def test_task_runner_waits_for_pending_future():
    pending: "Future[ActionResult]" = Future()

    def task():
        result = yield pending
        return result.success

    runner = TaskRunner(task(), timeout_ticks=10)
    assert runner.poll() is False
    assert runner.poll() is False

    pending.set_result(ActionResult.ok())
    assert runner.poll() is True
    assert runner.value is True


def test_task_runner_times_out_on_hanging_future():
    def task():
        yield Future()
        return "never"

    runner = TaskRunner(task(), timeout_ticks=2, label="hang")

    assert runner.poll() is False
    assert runner.poll() is False
    assert runner.poll() is True
    assert isinstance(runner.error, ActionTimeout)
    assert runner.value is None


def test_expect_turns_failed_result_into_step_error():
    def task():
        yield from expect(resolved(ActionResult.fail("no_path", target=(1, 2, 3))), NavigationFailure, "move")
        return "unreachable"

    runner = TaskRunner(task(), timeout_ticks=5)
    runner.poll()

    assert isinstance(runner.error, NavigationFailure)
    assert runner.error.details["error"] == "no_path"
    assert runner.error.details["target"] == (1, 2, 3)
    assert "move" in str(runner.error)


def test_goal_unreachable_propagates_out_of_poll():
    def task():
        yield resolved()
        raise GoalUnreachable("no recipe")

    runner = TaskRunner(task(), timeout_ticks=5)
    with pytest.raises(GoalUnreachable):
        runner.poll()


def test_close_abandons_outstanding_future():
    pending: "Future[ActionResult]" = Future()
    log = []

    def task():
        try:
            yield pending
        finally:
            log.append("closed")
        return None

    runner = TaskRunner(task(), timeout_ticks=5)
    runner.poll()
    runner.close()

    assert log == ["closed"]
    # The world may still complete the action; nobody is waiting for it.
    pending.set_result(ActionResult.ok())
    assert not pending.cancelled()
