# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_make_step.py
#   file_relpath : tests/cli/test_make_step.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""CLI tests for `pipemerge make-step`."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pipemerge.cli.exit_codes import ExitCode
from tests.cli.conftest import run_cli_in
from tests.conftest import parametrize

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.cli


def test_creates_step_in_package(tmp_path: Path) -> None:
    result = run_cli_in(
        tmp_path,
        ["--no-color", "make-step", "billing/ChargeStep", "--dir", "steps", "--policy", "OVERWRITE", "--priority", "30"],
    )
    assert result.exit_code == ExitCode.SUCCESS, result.output
    assert "Step created: ChargeStep" in result.output
    assert "Import spec : billing.charge_step:ChargeStep" in result.output

    module = tmp_path / "steps" / "billing" / "charge_step.py"
    source = module.read_text(encoding="utf-8")
    assert 'key = "charge"' in source
    assert "policy = ConflictPolicy.OVERWRITE" in source
    assert "priority = 30" in source
    assert (tmp_path / "steps" / "billing" / "__init__.py").is_file()


def test_existing_file_requires_force(tmp_path: Path) -> None:
    assert run_cli_in(tmp_path, ["make-step", "AuditStep"]).exit_code == ExitCode.SUCCESS

    again = run_cli_in(tmp_path, ["make-step", "AuditStep"])
    assert again.exit_code == ExitCode.FAILURE
    assert "--force" in again.output

    forced = run_cli_in(tmp_path, ["make-step", "AuditStep", "--key", "audit_log", "--force"])
    assert forced.exit_code == ExitCode.SUCCESS, forced.output
    assert 'key = "audit_log"' in (tmp_path / "audit_step.py").read_text(encoding="utf-8")


@parametrize(
    "argv",
    [
        ["make-step", "not a class"],
        ["make-step", "billing/class"],
        ["make-step", "GoodStep", "--policy", "sometimes"],
    ],
)
def test_invalid_input_is_a_usage_error(tmp_path: Path, argv: list[str]) -> None:
    result = run_cli_in(tmp_path, argv)
    assert result.exit_code == ExitCode.USAGE_ERROR, result.output
    assert list(tmp_path.iterdir()) == []
