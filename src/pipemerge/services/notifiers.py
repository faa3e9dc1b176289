# topmark:header:start
#
#   project      : PipeMerge
#   file         : notifiers.py
#   file_relpath : src/pipemerge/services/notifiers.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Built-in run notifiers.

`LogNotifier` writes one record per notification to a named logger. The
structured fields are attached to the record as ``record.notification`` so
log handlers can forward them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pipemerge.config.logging import get_logger
from pipemerge.config.model import NotifierKind
from pipemerge.constants import DEFAULT_NOTIFIER_CHANNEL, RUN_ID_META_KEY

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.config.model import NotifierSettings
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import Notifier


class NullNotifier:
    """Notifier that discards every notification."""

    def notify_success(
        self,
        context: ExecutionContext,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        return None

    def notify_failure(
        self,
        error: BaseException,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        return None


class LogNotifier:
    """Notifier that logs to the ``channel`` logger.

    Args:
        channel (str): Logger name.
    """

    def __init__(self, channel: str = DEFAULT_NOTIFIER_CHANNEL) -> None:
        self.channel: str = channel
        self._logger: PipemergeLogger = get_logger(channel)

    def notify_success(
        self,
        context: ExecutionContext,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a completed run (INFO), including whether steps failed."""
        run_meta = context.get_meta()
        fields: dict[str, Any] = {
            "pipeline_name": pipeline_name,
            "run_id": run_meta.get(RUN_ID_META_KEY),
            "has_errors": context.has_errors,
            "results_count": len(context.results),
            "meta": dict(meta or {}),
        }
        self._logger.info("Pipeline completed successfully: %s", fields, extra={"notification": fields})

    def notify_failure(
        self,
        error: BaseException,
        pipeline_name: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        """Log a run that raised (ERROR)."""
        fields: dict[str, Any] = {
            "pipeline_name": pipeline_name,
            "error": str(error),
            "exception_class": type(error).__name__,
            "meta": dict(meta or {}),
        }
        self._logger.error("Pipeline execution failed: %s", fields, extra={"notification": fields})


def build_notifier(settings: NotifierSettings) -> Notifier:
    """Return the notifier selected by ``settings``."""
    if settings.kind is NotifierKind.LOG:
        return LogNotifier(settings.channel)
    return NullNotifier()
