# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_steps_base.py
#   file_relpath : tests/pipeline/test_steps_base.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Unit tests for `BaseStep`, `FunctionStep` and the step coercion helpers."""

from __future__ import annotations

import pytest

from pipemerge.constants import DEFAULT_PRIORITY
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.status import ConflictPolicy, ResultStatus
from pipemerge.pipeline.steps import BaseStep, FunctionStep, as_step, step_name
from tests.support_steps import EmailFormatterStep, SimpleStep, StaticStep

pytestmark = pytest.mark.pipeline


def test_base_step_requires_handle(context: ExecutionContext) -> None:
    with pytest.raises(NotImplementedError):
        BaseStep().handle(context)


def test_step_id_defaults_to_qualified_class_name() -> None:
    assert EmailFormatterStep().step_id == "tests.support_steps.EmailFormatterStep"
    assert SimpleStep().step_id == "simple"


def test_make_result_applies_class_defaults(context: ExecutionContext) -> None:
    result = EmailFormatterStep().handle(context)
    assert result.key == "email"
    assert result.data == {"value": "john@example.com"}
    assert result.policy is ConflictPolicy.MERGE
    assert result.priority == 10
    assert result.provenance == "tests.support_steps.EmailFormatterStep"
    assert result.status is ResultStatus.OK


def test_make_result_overrides() -> None:
    class Tagger(BaseStep):
        name = "tagger"
        key = "tags"

    result = Tagger().make_result(
        ["x"],
        key="labels",
        policy=ConflictPolicy.OVERWRITE,
        priority=0,
        status=ResultStatus.SKIPPED,
        meta={"note": "n"},
    )
    assert result == Result(
        key="labels",
        data=["x"],
        policy=ConflictPolicy.OVERWRITE,
        priority=0,
        provenance="tagger",
        status=ResultStatus.SKIPPED,
        meta={"note": "n"},
    )


def test_make_result_uses_default_priority() -> None:
    class Plain(BaseStep):
        key = "plain"

    assert Plain().make_result(1).priority == DEFAULT_PRIORITY


def test_function_step_wraps_callables(context: ExecutionContext) -> None:
    def produce(ctx: ExecutionContext) -> Result:
        return Result(key="fn", data=ctx.get_content("user.name"))

    step = FunctionStep(produce)
    assert step.handle(context).data == "John"
    assert step.step_id.endswith("produce")
    assert FunctionStep(produce, name="producer").step_id == "producer"


def test_as_step() -> None:
    simple = SimpleStep()
    assert as_step(simple) is simple
    assert isinstance(as_step(lambda ctx: Result(key="k")), FunctionStep)
    with pytest.raises(TypeError):
        as_step("not a step")


def test_step_name_fallbacks() -> None:
    assert step_name(SimpleStep()) == "simple"
    assert step_name(StaticStep(Result(key="k"), name="static")) == "static"
    assert step_name(StaticStep(Result(key="k"))) == "tests.support_steps.StaticStep"
