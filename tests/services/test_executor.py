# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_executor.py
#   file_relpath : tests/services/test_executor.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `PipelineExecutor` and step resolution."""

from __future__ import annotations

import pytest

from pipemerge.config.model import HistorySettings, PipelineConfig
from pipemerge.core.errors import ConflictConfigurationError, PipelineConfigError
from pipemerge.history.recorder import RUN_STATUS_COMPLETED, RUN_STATUS_FAILED, HistoryStore
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.resolution import ConflictResolver
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.status import ConflictPolicy
from pipemerge.pipeline.steps import FunctionStep
from pipemerge.services.executor import PipelineExecutor, resolve_steps
from tests.support_steps import (
    CustomTagStep,
    EmailFormatterStep,
    SimpleStep,
    StaticStep,
    UnionResolver,
)

pytestmark = pytest.mark.services

EMAIL_STEPS: tuple[str, ...] = (
    "tests.support_steps:EmailFormatterStep",
    "tests.support_steps:EmailDomainExtractorStep",
    "tests.support_steps:EmailValidatorStep",
)


def test_resolve_steps_accepts_specs_classes_instances_and_callables() -> None:
    simple = SimpleStep()

    def produce(ctx: ExecutionContext) -> Result:
        return Result(key="fn")

    steps = resolve_steps(["tests.support_steps:EmailFormatterStep", SimpleStep, simple, produce])
    assert isinstance(steps[0], EmailFormatterStep)
    assert isinstance(steps[1], SimpleStep)
    assert steps[2] is simple
    assert isinstance(steps[3], FunctionStep)


def test_resolve_steps_errors() -> None:
    with pytest.raises(PipelineConfigError):
        resolve_steps(["tests.support_steps:NoSuchStep"])
    with pytest.raises(TypeError):
        resolve_steps([42])


def test_run_without_store_records_nothing() -> None:
    ctx = PipelineExecutor().run({"user": {"email": "A@B.io"}}, EMAIL_STEPS, pipeline_name="emails")
    assert ctx.build()["email"]["valid"] is True
    assert "run_id" not in ctx.get_meta()


def test_named_run_is_recorded(history_store: HistoryStore) -> None:
    executor = PipelineExecutor(history_store)
    ctx = executor.run({"user": {"email": "A@B.io"}}, EMAIL_STEPS, pipeline_name="emails")

    (run,) = history_store.list_runs()
    assert ctx.get_meta()["run_id"] == run.id
    assert run.pipeline_name == "emails"
    assert run.status == RUN_STATUS_COMPLETED
    assert len(history_store.get_steps(run.id)) == 3


def test_aborted_named_run_is_not_left_running(history_store: HistoryStore) -> None:
    steps = [
        StaticStep(Result(key="k", data=1)),
        StaticStep(Result(key="k", data=2, policy=ConflictPolicy.CUSTOM)),
    ]
    with pytest.raises(ConflictConfigurationError):
        PipelineExecutor(history_store).run({}, steps, pipeline_name="p")

    (run,) = history_store.list_runs()
    assert run.status == RUN_STATUS_FAILED
    assert run.finished_at is not None


@pytest.mark.parametrize(
    ("pipeline_name", "record_history"),
    [(None, True), ("", True), ("emails", False)],
)
def test_history_is_skipped(
    history_store: HistoryStore, pipeline_name: str | None, record_history: bool
) -> None:
    PipelineExecutor(history_store).run(
        {}, [SimpleStep()], pipeline_name=pipeline_name, record_history=record_history
    )
    assert history_store.list_runs() == []


def test_run_uses_given_resolver() -> None:
    resolver = ConflictResolver({"union": UnionResolver()})
    ctx = PipelineExecutor().run({}, [CustomTagStep(), CustomTagStep()], resolver=resolver)
    assert ctx.build() == {"tags": ["custom"]}


def test_replay_continues_a_snapshot(history_store: HistoryStore) -> None:
    snapshot = PipelineExecutor().run({"user": {"email": "A@B.io"}}, EMAIL_STEPS[:1]).to_dict()

    ctx = PipelineExecutor(history_store).replay(snapshot, EMAIL_STEPS[1:], pipeline_name="replay")
    assert ctx.build()["email"] == {
        "value": "a@b.io",
        "domain": "b.io",
        "valid": True,
        "status": "verified",
    }
    (run,) = history_store.list_runs()
    assert run.pipeline_name == "replay"
    assert [s.step_name for s in history_store.get_steps(run.id)] == [
        "tests.support_steps.EmailDomainExtractorStep",
        "tests.support_steps.EmailValidatorStep",
    ]


def test_from_config_without_history() -> None:
    config = PipelineConfig(name="quiet", history=HistorySettings(enabled=False))
    assert PipelineExecutor.from_config(config).history_store is None


def test_from_config_creates_the_schema(history_db_url: str) -> None:
    config = PipelineConfig(name="loud", history=HistorySettings(database_url=history_db_url))
    executor = PipelineExecutor.from_config(config)
    assert executor.history_store is not None
    try:
        executor.run({}, [SimpleStep()], pipeline_name=config.name)
        assert [r.pipeline_name for r in executor.history_store.list_runs()] == ["loud"]
    finally:
        executor.history_store.dispose()
