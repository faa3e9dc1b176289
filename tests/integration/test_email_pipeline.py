# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_email_pipeline.py
#   file_relpath : tests/integration/test_email_pipeline.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""End-to-end runs combining steps, merge policies and failure handling."""

from __future__ import annotations

import pytest

from pipemerge.core.errors import ConflictConfigurationError
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.resolution import ConflictResolver
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.runner import Runner
from pipemerge.pipeline.status import ConflictPolicy
from pipemerge.pipeline.steps import BaseStep
from tests.conftest import mark_integration
from tests.support_steps import (
    CustomTagStep,
    EmailDomainExtractorStep,
    EmailFormatterStep,
    EmailValidatorStep,
    StaticStep,
    UnionResolver,
)


@mark_integration
def test_email_steps_merge_into_one_result() -> None:
    ctx = ExecutionContext.bootstrap({"user": {"email": "  John@Example.COM  "}})
    Runner([EmailFormatterStep(), EmailDomainExtractorStep(), EmailValidatorStep()]).run(ctx)

    email = ctx.get_result("email")
    assert email is not None
    assert email.data == {
        "value": "john@example.com",
        "domain": "example.com",
        "valid": True,
        "status": "verified",
    }
    assert email.priority == 20
    assert email.provenance == (
        "tests.support_steps.EmailFormatterStep + "
        "tests.support_steps.EmailDomainExtractorStep + "
        "tests.support_steps.EmailValidatorStep"
    )
    assert not ctx.has_errors


@mark_integration
def test_invalid_email_is_flagged() -> None:
    ctx = ExecutionContext.bootstrap({"user": {"email": "not-an-address"}})
    Runner([EmailFormatterStep(), EmailDomainExtractorStep(), EmailValidatorStep()]).run(ctx)
    assert ctx.build()["email"] == {
        "value": "not-an-address",
        "domain": "",
        "valid": False,
        "status": "invalid",
    }


@mark_integration
def test_overwrite_drops_earlier_fields() -> None:
    ctx = ExecutionContext.bootstrap({})
    Runner(
        [
            StaticStep(Result(key="config", data={"version": 1, "enabled": True})),
            StaticStep(Result(key="config", data={"version": 2}, policy=ConflictPolicy.OVERWRITE)),
        ]
    ).run(ctx)
    assert ctx.build() == {"config": {"version": 2}}


@mark_integration
def test_failure_is_isolated_between_steps() -> None:
    class Boom(BaseStep):
        name = "B"

        def handle(self, context: ExecutionContext) -> Result:
            raise ValueError("boom")

    ctx = ExecutionContext.bootstrap({})
    Runner(
        [
            StaticStep(Result(key="a", data=1), name="A"),
            Boom(),
            StaticStep(Result(key="c", data=3), name="C"),
        ]
    ).run(ctx)

    assert ctx.build() == {"a": 1, "c": 3}
    assert len(ctx.errors) == 1
    assert ctx.errors[0]["step"] == "B"
    assert "boom" in ctx.errors[0]["message"]


@mark_integration
def test_custom_policy_without_resolver_aborts_the_run() -> None:
    ctx = ExecutionContext.bootstrap({})
    runner = Runner(
        [
            StaticStep(Result(key="tags", data=["a"])),
            StaticStep(Result(key="tags", data=["b"], policy=ConflictPolicy.CUSTOM)),
        ]
    )
    with pytest.raises(ConflictConfigurationError):
        runner.run(ctx)


@mark_integration
def test_custom_resolver_from_registry() -> None:
    ctx = ExecutionContext.bootstrap({}, resolver=ConflictResolver({"union": UnionResolver()}))
    Runner([StaticStep(Result(key="tags", data=["zeta", "alpha"])), CustomTagStep()]).run(ctx)
    assert ctx.build() == {"tags": ["alpha", "custom", "zeta"]}


@mark_integration
def test_replayed_context_continues_from_snapshot() -> None:
    first = ExecutionContext.bootstrap({"user": {"email": "A@B.io"}})
    Runner([EmailFormatterStep()]).run(first)

    replayed = ExecutionContext.from_json(first.to_json())
    Runner([EmailDomainExtractorStep()]).run(replayed)
    assert replayed.build() == {"email": {"value": "a@b.io", "domain": "b.io"}}
