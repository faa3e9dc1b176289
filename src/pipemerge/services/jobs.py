# topmark:header:start
#
#   project      : PipeMerge
#   file         : jobs.py
#   file_relpath : src/pipemerge/services/jobs.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Background pipeline jobs with retry and backoff.

A `PipelineJob` carries everything needed to run a pipeline later. The
`JobDispatcher` runs jobs on a thread pool; a job whose ``handle`` raises is
redelivered after each delay in ``job.backoff`` until the attempts or the
job's ``retry_window`` run out, then ``job.failed`` is called and the error
is set on the returned future. Steps themselves are never retried: each
attempt is a complete new run.

Configuration and data errors (`PipemergeError` subclasses other than
`StepExecutionError`) fail the job on the first attempt; only other exceptions
are treated as transient.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from pipemerge.config.logging import get_logger
from pipemerge.core.errors import PipemergeError, StepExecutionError

if TYPE_CHECKING:
    from types import TracebackType

    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import Notifier
    from pipemerge.services.executor import PipelineExecutor

logger: PipemergeLogger = get_logger(__name__)


def is_retryable(exc: BaseException) -> bool:
    """Return True if a job that raised ``exc`` may succeed on a later attempt."""
    return not isinstance(exc, PipemergeError) or isinstance(exc, StepExecutionError)


@dataclass(frozen=True)
class PipelineJob:
    """A deferred pipeline run.

    Attributes:
        payload (Any): Initial payload of the run.
        step_specs (tuple[Any, ...]): Steps as import specs, classes or instances.
        pipeline_name (str | None): Name used for history and notifications.
        record_history (bool): Record the run when the executor has a store.
        notifier (Notifier | None): Receives success and final-failure notices.
    """

    backoff: ClassVar[tuple[int, ...]] = (10, 30, 60)
    retry_window: ClassVar[timedelta] = timedelta(minutes=10)

    payload: Any
    step_specs: tuple[Any, ...]
    pipeline_name: str | None = None
    record_history: bool = True
    notifier: Notifier | None = None

    def handle(self, executor: PipelineExecutor) -> ExecutionContext:
        """Run the pipeline and notify success.

        A run that collected step errors still counts as a success here; the
        notifier receives the context and can inspect ``has_errors``.
        """
        context: ExecutionContext = executor.run(
            self.payload,
            self.step_specs,
            pipeline_name=self.pipeline_name,
            record_history=self.record_history,
        )
        if self.notifier is not None:
            try:
                self.notifier.notify_success(context, pipeline_name=self.pipeline_name)
            except Exception:
                logger.exception("Success notification failed for pipeline %s", self.pipeline_name)
        return context

    def failed(self, exc: BaseException) -> None:
        """Log the final failure and notify it."""
        logger.error("Pipeline job failed (pipeline=%s): %s", self.pipeline_name, exc)
        if self.notifier is not None:
            try:
                self.notifier.notify_failure(exc, pipeline_name=self.pipeline_name)
            except Exception:
                logger.exception("Failure notification failed for pipeline %s", self.pipeline_name)

    def tags(self) -> list[str]:
        """Return queue tags for this job."""
        tags: list[str] = ["pipeline"]
        if self.pipeline_name:
            tags.append(f"pipeline:{self.pipeline_name}")
        return tags


class JobDispatcher:
    """Run `PipelineJob` instances on a thread pool.

    Args:
        executor (PipelineExecutor): Executor passed to every ``job.handle``.
        max_workers (int): Thread pool size.
        sleep (Callable[[float], None]): Used to wait between attempts.
        clock (Callable[[], float]): Monotonic clock (seconds) for the retry window.
    """

    def __init__(
        self,
        executor: PipelineExecutor,
        max_workers: int = 2,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.executor: PipelineExecutor = executor
        self._sleep: Callable[[float], None] = sleep
        self._clock: Callable[[], float] = clock
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pipemerge-job")

    def dispatch(self, job: PipelineJob) -> Future[ExecutionContext]:
        """Queue ``job`` and return a future for its final context."""
        logger.debug("Dispatching job %s", job.tags())
        return self._pool.submit(self.process, job)

    def process(self, job: PipelineJob) -> ExecutionContext:
        """Run ``job`` in the calling thread, retrying per its backoff.

        Non-retryable errors (see `is_retryable`) are not retried.

        Raises:
            Exception: The error of the last attempt, after ``job.failed``.
        """
        deadline: float = self._clock() + job.retry_window.total_seconds()
        attempt: int = 0
        while True:
            attempt += 1
            try:
                return job.handle(self.executor)
            except Exception as exc:
                if not is_retryable(exc):
                    logger.error("Job %s failed with a permanent error: %s", job.tags(), exc)
                    job.failed(exc)
                    raise
                if attempt > len(job.backoff) or self._clock() + job.backoff[attempt - 1] > deadline:
                    logger.error("Job %s gave up after %d attempt(s)", job.tags(), attempt)
                    job.failed(exc)
                    raise
                delay: int = job.backoff[attempt - 1]
                logger.warning(
                    "Job %s attempt %d failed (%s); retrying in %ds", job.tags(), attempt, exc, delay
                )
                self._sleep(delay)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs and optionally wait for running ones."""
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> JobDispatcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

