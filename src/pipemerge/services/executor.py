# topmark:header:start
#
#   project      : PipeMerge
#   file         : executor.py
#   file_relpath : src/pipemerge/services/executor.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Facade that wires a runner, optional history recording and step loading."""

from __future__ import annotations

from inspect import isclass
from typing import TYPE_CHECKING, Any

from pipemerge.config.logging import get_logger
from pipemerge.constants import RUN_ID_META_KEY
from pipemerge.history.recorder import HistoryStore, SqlHistoryRecorder
from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.runner import Runner
from pipemerge.pipeline.steps.base import as_step
from pipemerge.utils.introspection import load_instance

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.config.model import PipelineConfig
    from pipemerge.pipeline.contracts import Step
    from pipemerge.pipeline.resolution import ConflictResolver

logger: PipemergeLogger = get_logger(__name__)


def resolve_steps(step_specs: Iterable[Any]) -> list[Step]:
    """Turn import specs, classes, instances or callables into steps.

    Raises:
        PipelineConfigError: If an import spec cannot be loaded.
        TypeError: If an item cannot be used as a step.
    """
    steps: list[Step] = []
    for spec in step_specs:
        if isinstance(spec, str):
            obj: Any = load_instance(spec)
        elif isclass(spec):
            obj = spec()
        else:
            obj = spec
        steps.append(as_step(obj))
    return steps


class PipelineExecutor:
    """Run pipelines, recording history when a store is configured.

    Args:
        history_store (HistoryStore | None): Store used for named runs with
            ``record_history=True``. Without a store nothing is recorded.
    """

    def __init__(self, history_store: HistoryStore | None = None) -> None:
        self.history_store: HistoryStore | None = history_store

    @classmethod
    def from_config(cls, config: PipelineConfig) -> PipelineExecutor:
        """Build an executor whose store follows ``config.history``.

        The history schema is created when history is enabled.
        """
        if not config.history.enabled:
            return cls()
        store = HistoryStore(config.history.database_url)
        store.create_schema()
        return cls(store)

    def _create_recorder(self, pipeline_name: str | None, record_history: bool) -> SqlHistoryRecorder | None:
        if not record_history or not pipeline_name or self.history_store is None:
            return None
        return SqlHistoryRecorder(pipeline_name, self.history_store)

    def execute(
        self,
        context: ExecutionContext,
        steps: Iterable[Any],
        pipeline_name: str | None = None,
        record_history: bool = True,
    ) -> ExecutionContext:
        """Run ``steps`` over ``context``.

        When a run row was recorded, its id is stored under ``meta["run_id"]``
        once the run has finished.

        Args:
            context (ExecutionContext): Context to run over (mutated in place).
            steps (Iterable[Any]): Steps, in order (see `resolve_steps`).
            pipeline_name (str | None): Name used for history records.
            record_history (bool): Record the run when a store is configured.

        Returns:
            ExecutionContext: The same context after the run.

        Raises:
            ConflictConfigurationError: From the runner; a recorded run is
                already closed as ``failed`` when it propagates.
        """
        recorder: SqlHistoryRecorder | None = self._create_recorder(pipeline_name, record_history)
        runner = Runner(resolve_steps(steps), recorder=recorder)
        runner.run(context)
        if recorder is not None and recorder.run_id is not None:
            meta = context.get_meta()
            meta[RUN_ID_META_KEY] = recorder.run_id
            context.set_meta(meta)
        return context

    def run(
        self,
        payload: Any,
        step_specs: Iterable[Any],
        pipeline_name: str | None = None,
        record_history: bool = True,
        resolver: ConflictResolver | None = None,
    ) -> ExecutionContext:
        """Run ``step_specs`` over a fresh context built from ``payload``."""
        context: ExecutionContext = ExecutionContext.bootstrap(payload, resolver=resolver)
        return self.execute(context, step_specs, pipeline_name, record_history)

    def replay(
        self,
        record: Mapping[str, Any],
        step_specs: Iterable[Any],
        pipeline_name: str | None = None,
        record_history: bool = True,
        resolver: ConflictResolver | None = None,
    ) -> ExecutionContext:
        """Rehydrate a serialized context and run ``step_specs`` over it.

        Raises:
            DecodingError: If ``record`` is malformed.
        """
        context: ExecutionContext = ExecutionContext.from_dict(record, resolver=resolver)
        logger.debug("Replaying snapshot with %d seeded result(s)", len(context.results))
        return self.execute(context, step_specs, pipeline_name, record_history)
