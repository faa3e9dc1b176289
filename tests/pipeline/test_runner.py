# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_runner.py
#   file_relpath : tests/pipeline/test_runner.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Unit tests for the sequential `Runner`."""

from __future__ import annotations

from typing import Any

import pytest

from pipemerge.core.errors import ConflictConfigurationError
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.runner import Runner
from pipemerge.pipeline.status import ConflictPolicy, ResultStatus
from tests.conftest import parametrize
from tests.support_steps import (
    FailingStep,
    SimpleStep,
    SkippedStep,
    StaticStep,
)

pytestmark = pytest.mark.pipeline


class RecordingRecorder:
    """History recorder double that remembers every call."""

    def __init__(self) -> None:
        self.steps: list[tuple[str, ResultStatus, float, Result | None]] = []
        self.finals: list[ExecutionContext] = []

    def record_step(
        self,
        context: ExecutionContext,
        step_name: str,
        status: ResultStatus,
        duration: float,
        result: Result | None,
    ) -> None:
        self.steps.append((step_name, status, duration, result))

    def record_final(self, context: ExecutionContext) -> None:
        self.finals.append(context)


class ExplodingRecorder(RecordingRecorder):
    def record_step(self, *args: Any) -> None:
        raise RuntimeError("database is down")

    def record_final(self, context: ExecutionContext) -> None:
        raise RuntimeError("database is down")


def test_runs_steps_in_order(context: ExecutionContext) -> None:
    order: list[str] = []

    def first(ctx: ExecutionContext) -> Result:
        order.append("first")
        return Result(key="seq", data=["first"])

    def second(ctx: ExecutionContext) -> Result:
        order.append("second")
        return Result(key="seq", data=["second"])

    runner = Runner([first]).add_step(second)
    assert runner.run(context) is context
    assert order == ["first", "second"]
    assert context.build() == {"seq": ["first", "second"]}


def test_failing_step_is_recorded_and_run_continues(context: ExecutionContext) -> None:
    Runner([FailingStep(), SimpleStep()]).run(context)

    assert context.has_errors
    (error,) = context.errors
    assert error["step"] == "tests.support_steps.FailingStep"
    assert error["message"] == "Step failed intentionally"
    assert "RuntimeError" in error["trace"]
    assert context.build() == {"test": {"executed": True}}


def test_recorder_sees_every_step_and_the_final_context(context: ExecutionContext) -> None:
    recorder = RecordingRecorder()
    Runner([SimpleStep(), FailingStep(), SkippedStep()], recorder=recorder).run(context)

    assert [(name, status) for name, status, _, _ in recorder.steps] == [
        ("simple", ResultStatus.OK),
        ("tests.support_steps.FailingStep", ResultStatus.FAILED),
        ("tests.support_steps.SkippedStep", ResultStatus.SKIPPED),
    ]
    assert all(duration >= 0 for _, _, duration, _ in recorder.steps)
    assert recorder.steps[1][3] is None
    assert recorder.finals == [context]


def test_recorder_failures_do_not_abort_the_run(context: ExecutionContext) -> None:
    runner = Runner([SimpleStep()]).set_recorder(ExplodingRecorder())
    runner.run(context)
    assert context.build() == {"test": {"executed": True}}
    assert not context.has_errors


def test_misconfigured_custom_result_propagates(context: ExecutionContext) -> None:
    recorder = RecordingRecorder()
    custom = Result(key="k", data=2, policy=ConflictPolicy.CUSTOM, meta={"resolver": "missing"})
    runner = Runner(
        [StaticStep(Result(key="k", data=1), name="first"), StaticStep(custom, name="second")],
        recorder=recorder,
    )
    with pytest.raises(ConflictConfigurationError):
        runner.run(context)
    assert [(name, status) for name, status, _, _ in recorder.steps] == [
        ("first", ResultStatus.OK),
        ("second", ResultStatus.FAILED),
    ]
    assert recorder.finals == [context]
    assert [error["step"] for error in context.errors] == ["second"]
    assert context.build() == {"k": 1}


def test_empty_runner_still_records_final(context: ExecutionContext) -> None:
    recorder = RecordingRecorder()
    Runner(recorder=recorder).run(context)
    assert recorder.steps == []
    assert recorder.finals == [context]


def test_steps_and_recorder_properties() -> None:
    recorder = RecordingRecorder()
    runner = Runner([SimpleStep()], recorder=recorder)
    assert len(runner.steps) == 1
    assert runner.recorder is recorder
    assert runner.set_recorder(None).recorder is None


def test_rejects_non_steps() -> None:
    with pytest.raises(TypeError):
        Runner([42])  # type: ignore[list-item]


@parametrize("returned", [None, {"key": "k", "data": 1}, "k"])
def test_step_returning_a_non_result_is_a_step_failure(
    context: ExecutionContext, returned: Any
) -> None:
    recorder = RecordingRecorder()

    def bad_step(ctx: ExecutionContext) -> Any:
        return returned

    Runner([bad_step, SimpleStep()], recorder=recorder).run(context)

    (error,) = context.errors
    assert error["step"].endswith("bad_step")
    assert "expected a Result" in error["message"]
    assert [status for _, status, _, _ in recorder.steps] == [ResultStatus.FAILED, ResultStatus.OK]
    assert recorder.steps[0][3] is None
    assert context.build() == {"test": {"executed": True}}
