# topmark:header:start
#
#   project      : PipeMerge
#   file         : recorder.py
#   file_relpath : src/pipemerge/history/recorder.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Persist pipeline runs and their steps with SQLAlchemy.

`HistoryStore` owns the engine and session factory and exposes plain, detached
snapshots (`RunRecord`, `StepRecord`) to callers. `SqlHistoryRecorder` is the
runner-facing observer: it creates the run row on the first recorded step and
closes it in `record_final`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pipemerge.config.logging import get_logger
from pipemerge.constants import DEFAULT_DATABASE_URL
from pipemerge.history.models import Base, PipelineRun, PipelineStepRecord, utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.engine import URL, Engine
    from sqlalchemy.orm import Session

    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.result import Result
    from pipemerge.pipeline.status import ResultStatus

logger: PipemergeLogger = get_logger(__name__)

RUN_STATUS_RUNNING: str = "running"
RUN_STATUS_COMPLETED: str = "completed"
RUN_STATUS_FAILED: str = "failed"


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _loads(text: str | None) -> Any:
    return None if text is None else json.loads(text)


@dataclass(frozen=True)
class RunRecord:
    """Detached snapshot of a ``pipeline_runs`` row."""

    id: int
    pipeline_name: str
    status: str
    payload: Any
    final: dict[str, Any] | None
    meta: dict[str, Any]
    created_at: datetime
    finished_at: datetime | None

    @classmethod
    def from_row(cls, row: PipelineRun) -> RunRecord:
        """Build a snapshot from an ORM row."""
        return cls(
            id=row.id,
            pipeline_name=row.pipeline_name,
            status=row.status,
            payload=_loads(row.payload_json),
            final=_loads(row.final_json),
            meta=_loads(row.meta_json) or {},
            created_at=row.created_at,
            finished_at=row.finished_at,
        )


@dataclass(frozen=True)
class StepRecord:
    """Detached snapshot of a ``pipeline_steps`` row."""

    id: int
    run_id: int
    step_name: str
    key: str | None
    policy: str | None
    status: str
    duration_ms: float
    result: dict[str, Any] | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: PipelineStepRecord) -> StepRecord:
        """Build a snapshot from an ORM row."""
        return cls(
            id=row.id,
            run_id=row.run_id,
            step_name=row.step_name,
            key=row.key,
            policy=row.policy,
            status=row.status,
            duration_ms=row.duration_ms,
            result=_loads(row.result_json),
            created_at=row.created_at,
        )


class HistoryStore:
    """Engine, session factory and queries for the history tables.

    Args:
        database_url (str): SQLAlchemy database URL. In-memory SQLite URLs share
            a single connection so every session sees the same database.
        echo (bool): Echo SQL statements (passed to `create_engine`).
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL, *, echo: bool = False) -> None:
        self.database_url: str = database_url
        url: URL = make_url(database_url)
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine: Engine = create_engine(database_url, **engine_kwargs)
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    def create_schema(self) -> None:
        """Create the history tables if they do not exist."""
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    # --- Writes ----------------------------------------------------------------

    def start_run(self, pipeline_name: str, payload: Any, meta: dict[str, Any]) -> int:
        """Insert a ``running`` run row and return its id."""
        with self._session_factory() as session, session.begin():
            row = PipelineRun(
                pipeline_name=pipeline_name,
                status=RUN_STATUS_RUNNING,
                payload_json=_dumps(payload),
                final_json=None,
                meta_json=_dumps(meta),
                created_at=utc_now(),
            )
            session.add(row)
            session.flush()
            run_id: int = row.id
        logger.debug("Started history run %d for %r", run_id, pipeline_name)
        return run_id

    def add_step(
        self,
        run_id: int,
        *,
        step_name: str,
        status: str,
        duration_ms: float,
        key: str | None = None,
        policy: str | None = None,
        result: dict[str, Any] | None = None,
    ) -> int:
        """Insert a step row for ``run_id`` and return its id."""
        with self._session_factory() as session, session.begin():
            row = PipelineStepRecord(
                run_id=run_id,
                step_name=step_name,
                key=key,
                policy=policy,
                status=status,
                duration_ms=duration_ms,
                result_json=None if result is None else _dumps(result),
                created_at=utc_now(),
            )
            session.add(row)
            session.flush()
            step_id: int = row.id
        return step_id

    def finish_run(self, run_id: int, *, status: str, final: dict[str, Any], meta: dict[str, Any]) -> None:
        """Close the run row with its final status, context and metadata."""
        with self._session_factory() as session, session.begin():
            row: PipelineRun | None = session.get(PipelineRun, run_id)
            if row is None:
                logger.warning("History run %d vanished before it could be finished", run_id)
                return
            row.status = status
            row.final_json = _dumps(final)
            row.meta_json = _dumps(meta)
            row.finished_at = utc_now()
        logger.debug("Finished history run %d: %s", run_id, status)

    # --- Queries ---------------------------------------------------------------

    def get_run(self, run_id: int) -> RunRecord | None:
        """Return the run with ``run_id``, or ``None``."""
        with self._session_factory() as session:
            row: PipelineRun | None = session.get(PipelineRun, run_id)
            return None if row is None else RunRecord.from_row(row)

    def list_runs(self, limit: int = 20, pipeline_name: str | None = None) -> list[RunRecord]:
        """Return the most recent runs first.

        Args:
            limit (int): Maximum number of runs.
            pipeline_name (str | None): Only runs of this pipeline.
        """
        stmt = select(PipelineRun).order_by(PipelineRun.id.desc()).limit(limit)
        if pipeline_name is not None:
            stmt = stmt.where(PipelineRun.pipeline_name == pipeline_name)
        with self._session_factory() as session:
            return [RunRecord.from_row(row) for row in session.scalars(stmt)]

    def get_steps(self, run_id: int) -> list[StepRecord]:
        """Return the steps of ``run_id`` in execution order."""
        stmt = (
            select(PipelineStepRecord)
            .where(PipelineStepRecord.run_id == run_id)
            .order_by(PipelineStepRecord.id)
        )
        with self._session_factory() as session:
            return [StepRecord.from_row(row) for row in session.scalars(stmt)]


class SqlHistoryRecorder:
    """History observer writing one run row and one row per step.

    Args:
        pipeline_name (str): Name stored on the run row.
        store (HistoryStore): Target store; its schema must exist.
        enabled (bool): When False every call is a no-op.
    """

    def __init__(self, pipeline_name: str, store: HistoryStore, enabled: bool = True) -> None:
        self.pipeline_name: str = pipeline_name
        self.store: HistoryStore = store
        self.enabled: bool = enabled
        self._run_id: int | None = None

    @property
    def run_id(self) -> int | None:
        """Id of the run row, once the first step has been recorded."""
        return self._run_id

    def record_step(
        self,
        context: ExecutionContext,
        step_name: str,
        status: ResultStatus,
        duration: float,
        result: Result | None,
    ) -> None:
        """Insert a step row, creating the run row first if needed."""
        if not self.enabled:
            return
        if self._run_id is None:
            self._run_id = self.store.start_run(self.pipeline_name, context.payload, context.get_meta())
        self.store.add_step(
            self._run_id,
            step_name=step_name,
            status=status.value,
            duration_ms=round(duration * 1000, 2),
            key=None if result is None else result.key,
            policy=None if result is None else result.policy.value,
            result=None if result is None else result.to_dict(),
        )

    def record_final(self, context: ExecutionContext) -> None:
        """Close the run row; no-op when disabled or nothing was recorded."""
        if not self.enabled or self._run_id is None:
            return
        self.store.finish_run(
            self._run_id,
            status=RUN_STATUS_FAILED if context.has_errors else RUN_STATUS_COMPLETED,
            final=context.to_dict(),
            meta=context.get_meta(),
        )
