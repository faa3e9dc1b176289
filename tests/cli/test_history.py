# topmark:header:start
#
#   project      : PipeMerge
#   file         : test_history.py
#   file_relpath : tests/cli/test_history.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""CLI tests for `pipemerge history`."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from pipemerge.cli.exit_codes import ExitCode
from tests.cli.conftest import history_url, run_cli_in, write_definition

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.cli


@pytest.fixture
def recorded(tmp_path: Path) -> Path:
    """Record two runs of ``emails`` and one failing run of ``broken``."""
    write_definition(tmp_path)
    for _ in range(2):
        assert run_cli_in(tmp_path, ["run", "pipemerge.toml"]).exit_code == ExitCode.SUCCESS
    write_definition(tmp_path, name="broken", steps=("tests.support_steps:FailingStep", "tests.support_steps:SimpleStep"))
    assert run_cli_in(tmp_path, ["run", "pipemerge.toml"]).exit_code == ExitCode.STEP_ERRORS
    return tmp_path


def test_lists_runs_newest_first(recorded: Path) -> None:
    result = run_cli_in(recorded, ["--no-color", "history", "--database-url", history_url(recorded)])
    assert result.exit_code == ExitCode.SUCCESS, result.output
    lines = result.output.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("#3") and "broken" in lines[0] and "failed" in lines[0]
    assert "errors=1" in lines[0]
    assert lines[2].startswith("#1") and "completed" in lines[2]


def test_filters_and_limits(recorded: Path) -> None:
    url = history_url(recorded)
    only_emails = run_cli_in(recorded, ["history", "--database-url", url, "--pipeline", "emails", "--format", "json"])
    assert [r["id"] for r in json.loads(only_emails.output)] == [2, 1]

    limited = run_cli_in(recorded, ["history", "--database-url", url, "--limit", "1", "--format", "json"])
    (run,) = json.loads(limited.output)
    assert run["pipeline_name"] == "broken"
    assert run["status"] == "failed"
    assert run["errors"] == 1
    assert run["finished_at"] is not None


def test_shows_steps_of_a_run(recorded: Path) -> None:
    url = history_url(recorded)
    result = run_cli_in(recorded, ["history", "--database-url", url, "--run-id", "3", "--format", "json"])
    assert result.exit_code == ExitCode.SUCCESS, result.output
    doc = json.loads(result.output)
    assert doc["run"]["id"] == 3
    assert [(s["step_name"], s["status"]) for s in doc["steps"]] == [
        ("tests.support_steps.FailingStep", "failed"),
        ("simple", "ok"),
    ]

    text = run_cli_in(recorded, ["--no-color", "history", "--database-url", url, "--run-id", "1"])
    assert "Run 1 (emails, completed)" in text.output
    assert "tests.support_steps.EmailValidatorStep -> email" in text.output


def test_markdown_listing(recorded: Path) -> None:
    result = run_cli_in(recorded, ["history", "--database-url", history_url(recorded), "--format", "markdown"])
    assert result.exit_code == ExitCode.SUCCESS, result.output
    assert "# Pipeline runs" in result.output
    assert "| Id" in result.output


def test_empty_database(tmp_path: Path) -> None:
    result = run_cli_in(tmp_path, ["history", "--database-url", history_url(tmp_path)])
    assert result.exit_code == ExitCode.SUCCESS, result.output
    assert "No runs recorded." in result.output


def test_unknown_run_id(tmp_path: Path) -> None:
    result = run_cli_in(tmp_path, ["history", "--database-url", history_url(tmp_path), "--run-id", "42"])
    assert result.exit_code == ExitCode.FILE_NOT_FOUND
    assert "No run with id 42" in result.output


def test_limit_must_be_positive(tmp_path: Path) -> None:
    result = run_cli_in(tmp_path, ["history", "--database-url", history_url(tmp_path), "--limit", "0"])
    assert result.exit_code == 2
