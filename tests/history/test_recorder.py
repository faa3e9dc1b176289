# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_recorder.py
#   file_relpath : tests/history/test_recorder.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the SQLAlchemy-backed history store and recorder."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pipemerge.core.errors import ConflictConfigurationError
from pipemerge.history.recorder import (
    RUN_STATUS_COMPLETED,
    RUN_STATUS_FAILED,
    RUN_STATUS_RUNNING,
    HistoryStore,
    SqlHistoryRecorder,
)
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.runner import Runner
from pipemerge.pipeline.status import ConflictPolicy
from tests.support_steps import EmailFormatterStep, FailingStep, SimpleStep, SkippedStep, StaticStep

if TYPE_CHECKING:
    from pipemerge.history.recorder import RunRecord

pytestmark = pytest.mark.history


def test_store_round_trips_runs_and_steps(history_store: HistoryStore) -> None:
    run_id = history_store.start_run("demo", {"x": 1}, {"source": "test"})
    history_store.add_step(
        run_id,
        step_name="StepA",
        status="ok",
        duration_ms=1.5,
        key="k",
        policy="merge",
        result={"key": "k", "data": 1},
    )
    history_store.add_step(run_id, step_name="StepB", status="failed", duration_ms=0.2)

    run = history_store.get_run(run_id)
    assert run is not None
    assert (run.pipeline_name, run.status, run.payload, run.meta) == (
        "demo",
        RUN_STATUS_RUNNING,
        {"x": 1},
        {"source": "test"},
    )
    assert run.final is None and run.finished_at is None

    steps = history_store.get_steps(run_id)
    assert [s.step_name for s in steps] == ["StepA", "StepB"]
    assert steps[0].result == {"key": "k", "data": 1}
    assert steps[1].result is None and steps[1].key is None

    history_store.finish_run(run_id, status=RUN_STATUS_COMPLETED, final={"results": {}}, meta={"done": True})
    finished = history_store.get_run(run_id)
    assert finished is not None
    assert finished.status == RUN_STATUS_COMPLETED
    assert finished.final == {"results": {}}
    assert finished.meta == {"done": True}
    assert finished.finished_at is not None


def test_get_run_unknown_id(history_store: HistoryStore) -> None:
    assert history_store.get_run(999) is None
    assert history_store.get_steps(999) == []


def test_finish_unknown_run_is_ignored(history_store: HistoryStore) -> None:
    history_store.finish_run(999, status=RUN_STATUS_FAILED, final={}, meta={})
    assert history_store.list_runs() == []


def test_list_runs_newest_first_with_filters(history_store: HistoryStore) -> None:
    ids = [history_store.start_run(name, {}, {}) for name in ("a", "b", "a", "a")]
    runs: list[RunRecord] = history_store.list_runs()
    assert [r.id for r in runs] == list(reversed(ids))
    assert [r.id for r in history_store.list_runs(limit=2)] == [ids[3], ids[2]]
    assert {r.pipeline_name for r in history_store.list_runs(pipeline_name="a")} == {"a"}
    assert len(history_store.list_runs(pipeline_name="a")) == 3


def test_recorder_writes_one_run_per_pipeline_execution(history_store: HistoryStore) -> None:
    recorder = SqlHistoryRecorder("emails", history_store)
    ctx = ExecutionContext.bootstrap({"user": {"email": "A@B.io"}})
    Runner([EmailFormatterStep(), SkippedStep()], recorder=recorder).run(ctx)

    assert recorder.run_id is not None
    run = history_store.get_run(recorder.run_id)
    assert run is not None
    assert run.status == RUN_STATUS_COMPLETED
    assert run.payload == {"user": {"email": "A@B.io"}}
    assert run.final == ctx.to_dict()

    steps = history_store.get_steps(recorder.run_id)
    assert [(s.step_name, s.status, s.key, s.policy) for s in steps] == [
        ("tests.support_steps.EmailFormatterStep", "ok", "email", "merge"),
        ("tests.support_steps.SkippedStep", "skipped", "optional", "merge"),
    ]
    assert all(s.duration_ms >= 0 for s in steps)
    assert steps[0].result is not None and steps[0].result["data"] == {"value": "a@b.io"}


def test_recorder_marks_runs_with_step_errors_failed(history_store: HistoryStore) -> None:
    recorder = SqlHistoryRecorder("broken", history_store)
    ctx = ExecutionContext.bootstrap({})
    Runner([FailingStep(), SimpleStep()], recorder=recorder).run(ctx)

    assert recorder.run_id is not None
    run = history_store.get_run(recorder.run_id)
    assert run is not None
    assert run.status == RUN_STATUS_FAILED
    assert run.meta["errors"][0]["message"] == "Step failed intentionally"
    steps = history_store.get_steps(recorder.run_id)
    assert steps[0].status == "failed" and steps[0].result is None


def test_aborted_run_is_closed_as_failed(history_store: HistoryStore) -> None:
    recorder = SqlHistoryRecorder("aborted", history_store)
    custom = Result(key="k", data=2, policy=ConflictPolicy.CUSTOM)
    runner = Runner(
        [StaticStep(Result(key="k", data=1), name="first"), StaticStep(custom, name="second")],
        recorder=recorder,
    )
    with pytest.raises(ConflictConfigurationError):
        runner.run(ExecutionContext.bootstrap({}))

    assert recorder.run_id is not None
    run = history_store.get_run(recorder.run_id)
    assert run is not None
    assert run.status == RUN_STATUS_FAILED
    assert run.finished_at is not None
    assert [error["step"] for error in run.meta["errors"]] == ["second"]
    assert run.final is not None and run.final["results"]["k"]["data"] == 1
    assert [(s.step_name, s.status) for s in history_store.get_steps(recorder.run_id)] == [
        ("first", "ok"),
        ("second", "failed"),
    ]


def test_disabled_recorder_writes_nothing(history_store: HistoryStore) -> None:
    recorder = SqlHistoryRecorder("quiet", history_store, enabled=False)
    Runner([SimpleStep()], recorder=recorder).run(ExecutionContext.bootstrap({}))
    assert recorder.run_id is None
    assert history_store.list_runs() == []


def test_file_backed_store_persists_between_instances(history_db_url: str) -> None:
    store = HistoryStore(history_db_url)
    store.create_schema()
    run_id = store.start_run("persisted", {}, {})
    store.dispose()

    reopened = HistoryStore(history_db_url)
    try:
        run = reopened.get_run(run_id)
        assert run is not None and run.pipeline_name == "persisted"
    finally:
        reopened.dispose()
