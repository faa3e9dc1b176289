# topmark:header:start
#
#   project      : PipeMerge
#   file         : runner.py
#   file_relpath : src/pipemerge/pipeline/runner.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Run an ordered list of steps against one execution context.

Each step is invoked once, in order. A step that raises, or returns anything
other than a `Result`, is recorded in ``meta["errors"]`` and the run continues
with the next step; the runner never aborts on a step failure. A misconfigured
``custom`` result is different: the error is recorded, the history recorder is
closed, and the `ConflictConfigurationError` propagates to the caller.
"""

from __future__ import annotations

import traceback
from time import perf_counter
from typing import TYPE_CHECKING

from pipemerge.config.logging import get_logger
from pipemerge.core.errors import ConflictConfigurationError, StepExecutionError
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.status import ResultStatus
from pipemerge.pipeline.steps.base import as_step, step_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import HistoryRecorder, Step

logger: PipemergeLogger = get_logger(__name__)


class Runner:
    """Sequential step runner with an optional history recorder.

    Args:
        steps (Iterable[Step]): Initial steps, in execution order. Plain
            callables are wrapped with `FunctionStep`.
        recorder (HistoryRecorder | None): Observer for per-step telemetry.
    """

    def __init__(
        self,
        steps: Iterable[Step] = (),
        recorder: HistoryRecorder | None = None,
    ) -> None:
        self._steps: list[Step] = [as_step(step) for step in steps]
        self._recorder: HistoryRecorder | None = recorder

    @property
    def steps(self) -> tuple[Step, ...]:
        """Return the configured steps in execution order."""
        return tuple(self._steps)

    @property
    def recorder(self) -> HistoryRecorder | None:
        """Return the configured history recorder, if any."""
        return self._recorder

    def add_step(self, step: Step) -> Runner:
        """Append ``step`` and return ``self`` for chaining."""
        self._steps.append(as_step(step))
        return self

    def set_recorder(self, recorder: HistoryRecorder | None) -> Runner:
        """Replace the history recorder and return ``self`` for chaining."""
        self._recorder = recorder
        return self

    def run(self, context: ExecutionContext) -> ExecutionContext:
        """Execute every step against ``context``.

        Args:
            context (ExecutionContext): The run's context; mutated in place.

        Returns:
            ExecutionContext: The same context, after all steps ran.

        Raises:
            ConflictConfigurationError: If a ``custom`` result cannot be resolved.
        """
        logger.info("Running %d step(s)", len(self._steps))
        for step in self._steps:
            name: str = step_name(step)
            result: Result | None = None
            started: float = perf_counter()
            try:
                returned: object = step.handle(context)
                if not isinstance(returned, Result):
                    raise TypeError(f"Step returned {type(returned).__name__}, expected a Result")
                context.set_result(returned)
                result = returned
            except ConflictConfigurationError as exc:
                self._abort(context, name, exc, perf_counter() - started)
                raise
            except Exception as exc:  # step failures are recorded, not raised
                failure = StepExecutionError(name, exc)
                context.add_error(name, failure.message, traceback.format_exc())
                logger.warning("Step %s failed: %s", name, failure.message)
            duration: float = perf_counter() - started

            status: ResultStatus = ResultStatus.FAILED if result is None else result.status
            logger.debug("Step %s: %s in %.2f ms", name, status.value, duration * 1000)

            self._record_step(context, name, status, duration, result)

        self._record_final(context)
        logger.info("Run finished (errors: %d)", len(context.errors))
        return context

    def _abort(
        self,
        context: ExecutionContext,
        name: str,
        exc: ConflictConfigurationError,
        duration: float,
    ) -> None:
        # Close the recorded run before the error leaves the runner
        context.add_error(name, str(exc), traceback.format_exc())
        logger.error("Run aborted at step %s: %s", name, exc)
        self._record_step(context, name, ResultStatus.FAILED, duration, None)
        self._record_final(context)

    def _record_step(
        self,
        context: ExecutionContext,
        name: str,
        status: ResultStatus,
        duration: float,
        result: Result | None,
    ) -> None:
        if self._recorder is None:
            return
        try:
            self._recorder.record_step(context, name, status, duration, result)
        except Exception:
            logger.exception("History recorder failed for step %s", name)

    def _record_final(self, context: ExecutionContext) -> None:
        if self._recorder is None:
            return
        try:
            self._recorder.record_final(context)
        except Exception:
            logger.exception("History recorder failed to record the final context")
