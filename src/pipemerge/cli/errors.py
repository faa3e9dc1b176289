# topmark:header:start
#
#   project      : PipeMerge
#   file         : errors.py
#   file_relpath : src/pipemerge/cli/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions for the PipeMerge CLI.

Raise these from commands to print a message and exit with a specific
`ExitCode`. When a project console is stored on the Click context, errors are
printed through it; otherwise Click's default display is used.
"""

from __future__ import annotations

from typing import IO, Any

import click

from pipemerge.cli.exit_codes import ExitCode


class PipemergeCliError(click.ClickException):
    """Base class for all PipeMerge CLI errors."""

    exit_code = ExitCode.FAILURE

    def format_message(self) -> str:
        """Return the plain error message text (color is applied in `show()`)."""
        return str(getattr(self, "message", ""))

    def show(self, file: IO[Any] | None = None) -> None:  # pragma: no cover - Click prints errors
        """Display the error using the project console if available."""
        ctx: click.Context | None = click.get_current_context(silent=True)
        console: Any = None
        if ctx is not None and isinstance(ctx.obj, dict):
            console = ctx.obj.get("console")
        if console is None:
            super().show(file)
            return
        console.error(console.styled(f"Error: {self.format_message()}", fg="bright_red"))


class PipemergeUsageError(PipemergeCliError):
    """Invalid flags or arguments."""

    exit_code = ExitCode.USAGE_ERROR


class PipemergeConfigError(PipemergeCliError):
    """Missing, unreadable or invalid pipeline definition."""

    exit_code = ExitCode.CONFIG_ERROR


class PipemergeFileNotFoundError(PipemergeCliError):
    """An input path does not exist."""

    exit_code = ExitCode.FILE_NOT_FOUND


class PipemergeDecodingError(PipemergeCliError):
    """Malformed JSON payload, snapshot or record."""

    exit_code = ExitCode.DECODING_ERROR


class PipemergePipelineError(PipemergeCliError):
    """The run was aborted by a configuration error raised during merging."""

    exit_code = ExitCode.PIPELINE_ERROR
