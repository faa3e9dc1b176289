# topmark:header:start
#
#   project      : PipeMerge
#   file         : models.py
#   file_relpath : src/pipemerge/history/models.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""SQLAlchemy table mappings for pipeline history.

JSON documents (payload, final context, metadata, step results) are stored as
text so any SQL backend works without a native JSON type.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class PipelineRun(Base):
    """One execution of a named pipeline."""

    __tablename__ = "pipeline_runs"

    id = Column(Integer, primary_key=True, index=True)
    pipeline_name = Column(String(255), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="running")
    payload_json = Column(Text, nullable=True)
    final_json = Column(Text, nullable=True)
    meta_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    steps = relationship(
        "PipelineStepRecord",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="PipelineStepRecord.id",
    )


class PipelineStepRecord(Base):
    """One step invocation within a run."""

    __tablename__ = "pipeline_steps"

    id = Column(Integer, primary_key=True, index=True)
    run_id = Column(Integer, ForeignKey("pipeline_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    step_name = Column(String(512), nullable=False)
    key = Column(String(255), nullable=True)
    policy = Column(String(32), nullable=True)
    status = Column(String(32), nullable=False)
    duration_ms = Column(Float, nullable=False)
    result_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    run = relationship("PipelineRun", back_populates="steps")
