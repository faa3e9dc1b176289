# topmark:header:start
#
#   project      : PipeMerge
#   file         : contracts.py
#   file_relpath : src/pipemerge/pipeline/contracts.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Type contracts for the pipeline's pluggable collaborators (engine-facing).

The runner only depends on these protocols:

Step
    ``handle(context) -> Result``; may raise any exception. Implementations
    typically subclass [`pipemerge.pipeline.steps.base.BaseStep`][].
ResolverLike
    ``resolve(existing, incoming, context) -> Result``; registered by name for
    the ``custom`` conflict policy.
HistoryRecorder
    Observer notified after every step and once at the end of a run.
Notifier
    Success/failure callbacks used by the executor and background jobs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.result import Result
    from pipemerge.pipeline.status import ResultStatus


@runtime_checkable
class Step(Protocol):
    """Protocol for a single pipeline step."""

    def handle(self, context: ExecutionContext) -> Result:
        """Read the context and return one result.

        Args:
            context (ExecutionContext): The run's context. Steps read the payload and
                earlier results; they must not submit results themselves.

        Returns:
            Result: The step's contribution, merged by the runner.
        """
        ...


class ResolverLike(Protocol):
    """Protocol for a named custom conflict resolver."""

    def resolve(self, existing: Result, incoming: Result, context: ExecutionContext) -> Result:
        """Return the result that replaces ``existing``."""
        ...


class HistoryRecorder(Protocol):
    """Observer receiving per-step telemetry and the final context."""

    def record_step(
        self,
        context: ExecutionContext,
        step_name: str,
        status: ResultStatus,
        duration: float,
        result: Result | None,
    ) -> None:
        """Record the outcome of one step.

        Args:
            context (ExecutionContext): The context after the step.
            step_name (str): Identifier of the step (see `step_name()`).
            status (ResultStatus): Terminal status of the step.
            duration (float): Wall-clock duration in seconds.
            result (Result | None): The step's result, or ``None`` if it failed.
        """
        ...

    def record_final(self, context: ExecutionContext) -> None:
        """Record the final context once all steps ran."""
        ...


class Notifier(Protocol):
    """Receives run-level success and failure notifications."""

    def notify_success(
        self,
        context: ExecutionContext,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        """Report a run that returned a context (possibly with step errors)."""
        ...

    def notify_failure(
        self,
        error: BaseException,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        """Report a run that raised."""
        ...
