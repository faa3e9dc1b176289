# topmark:header:start
#
#   project      : PipeMerge
#   file         : errors.py
#   file_relpath : src/pipemerge/core/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions raised by the PipeMerge engine.

Usage:
    - Step failures are wrapped in `StepExecutionError` by the runner and recorded
      into the context's ``errors`` metadata; they never escape ``Runner.run()``.
    - `ConflictConfigurationError` and `DecodingError` signal programmer or data
      errors and propagate to the caller.
    - `PipelineConfigError` is raised while loading TOML pipeline definitions or
      resolving step/resolver import specifications.

The CLI maps these onto exit codes in `pipemerge.cli.errors`.
"""

from __future__ import annotations


class PipemergeError(Exception):
    """Base class for all PipeMerge errors."""


class ConflictConfigurationError(PipemergeError):
    """A ``custom`` policy result does not name a usable resolver."""


class DecodingError(PipemergeError, ValueError):
    """A serialized result or context record is malformed."""


class PipelineConfigError(PipemergeError):
    """A pipeline definition is missing, unreadable, or invalid."""


class StepExecutionError(PipemergeError):
    """An exception raised by a step's ``handle()``.

    Attributes:
        step_name (str): Identifier of the failing step.
        cause (BaseException): The original exception.
    """

    def __init__(self, step_name: str, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.step_name = step_name
        self.cause = cause

    @property
    def message(self) -> str:
        """Message of the original exception (empty string when it has none)."""
        return str(self.cause)

    def __repr__(self) -> str:
        return f"StepExecutionError(step_name={self.step_name!r}, cause={self.cause!r})"
