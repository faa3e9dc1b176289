# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_introspection.py
#   file_relpath : tests/unit/test_introspection.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Unit tests for naming and dynamic-import helpers."""

from __future__ import annotations

import pytest

from pipemerge.core.errors import PipelineConfigError
from pipemerge.utils.introspection import import_object, load_instance, qualified_name
from tests.conftest import parametrize
from tests.support_steps import SimpleStep, StaticStep, UnionResolver


def _helper() -> None:
    return None


def test_qualified_name() -> None:
    assert qualified_name(SimpleStep) == "tests.support_steps.SimpleStep"
    assert qualified_name(SimpleStep()) == "tests.support_steps.SimpleStep"
    assert qualified_name(_helper).endswith("test_introspection._helper")


@parametrize("spec", ["tests.support_steps:UnionResolver", "tests.support_steps.UnionResolver"])
def test_import_object_accepts_both_spec_forms(spec: str) -> None:
    assert import_object(spec) is UnionResolver


def test_load_instance_instantiates_classes() -> None:
    assert isinstance(load_instance("tests.support_steps:SimpleStep"), SimpleStep)
    assert load_instance("tests.support_steps:_EMAIL_RE").pattern.startswith("^")


@parametrize(
    "spec",
    [
        "nomodule",
        ":Attr",
        "module:",
        "no_such_module_for_pipemerge:Thing",
        "tests.support_steps:Missing",
        "tests.support_steps:SimpleStep.missing",
    ],
)
def test_import_errors(spec: str) -> None:
    with pytest.raises(PipelineConfigError):
        import_object(spec)


def test_load_instance_requires_no_argument_constructor() -> None:
    with pytest.raises(PipelineConfigError, match="without arguments"):
        load_instance("tests.support_steps:StaticStep")
    assert StaticStep is import_object("tests.support_steps:StaticStep")
