# topmark:header:start
#
#   project      : PipeMerge
#   file         : conftest.py
#   file_relpath : tests/cli/conftest.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""CLI test helpers for running PipeMerge in a controlled working directory.

`run_cli_in()` changes the process working directory to ``tmp_path`` before
invoking the Click CLI, so relative paths (``--dir``, pipeline definitions,
the default history database) resolve inside the temporary directory.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from typing import IO, TYPE_CHECKING, Any

import pytest
from click.testing import CliRunner, Result

from pipemerge.cli.main import cli
from pipemerge.config import logging

if TYPE_CHECKING:
    from pathlib import Path

EMAIL_STEPS: tuple[str, ...] = (
    "tests.support_steps:EmailFormatterStep",
    "tests.support_steps:EmailDomainExtractorStep",
    "tests.support_steps:EmailValidatorStep",
)


@pytest.fixture(autouse=True)
def restore_test_logging() -> Iterator[None]:
    """Reinstate TRACE logging after the CLI reconfigured it from the environment."""
    yield
    logging.setup_logging(level=logging.TRACE_LEVEL)


def write_definition(
    directory: Path,
    *,
    name: str = "emails",
    steps: Sequence[str] = EMAIL_STEPS,
    history: bool = True,
    extra: str = "",
) -> Path:
    """Write a ``pipemerge.toml`` into ``directory`` and return its path.

    History goes to ``history.db`` inside ``directory``.
    """
    step_lines: str = "".join(f'    "{spec}",\n' for spec in steps)
    db_url: str = f"sqlite:///{(directory / 'history.db').as_posix()}"
    text: str = (
        f'[pipeline]\nname = "{name}"\nsteps = [\n{step_lines}]\n\n'
        f'[history]\nenabled = {"true" if history else "false"}\ndatabase_url = "{db_url}"\n'
        f"{extra}"
    )
    path: Path = directory / "pipemerge.toml"
    path.write_text(text, encoding="utf-8")
    return path


def history_url(directory: Path) -> str:
    """Return the history database URL used by `write_definition`."""
    return f"sqlite:///{(directory / 'history.db').as_posix()}"


def run_cli_in(
    tmp_path: Path,
    argv: str | Sequence[str] | None,
    *,
    input_text: str | bytes | IO[Any] | None = None,
) -> Result:
    """Invoke the CLI with ``tmp_path`` as the working directory.

    Args:
        tmp_path (Path): Directory used as the CWD for the invocation.
        argv (str | Sequence[str] | None): CLI argument vector.
        input_text (str | bytes | IO[Any] | None): Optional standard input.

    Returns:
        Result: The `click.testing.Result` of the invocation.
    """
    runner = CliRunner()
    cwd: str = os.getcwd()
    try:
        os.chdir(tmp_path)
        return runner.invoke(cli, argv, input=input_text, obj={})
    finally:
        os.chdir(cwd)


def run_cli(
    argv: str | Sequence[str] | None,
    *,
    input_text: str | bytes | IO[Any] | None = None,
) -> Result:
    """Invoke the CLI without changing the working directory.

    Use this for commands that touch no relative paths (``--help``, ``version``)
    or when every path passed is absolute.
    """
    runner = CliRunner()
    return runner.invoke(cli, argv, input=input_text, obj={})
