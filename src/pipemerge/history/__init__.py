# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/history/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""SQL-backed run and step history."""

from __future__ import annotations

from pipemerge.history.recorder import HistoryStore, RunRecord, SqlHistoryRecorder, StepRecord

__all__: list[str] = [
    "HistoryStore",
    "RunRecord",
    "SqlHistoryRecorder",
    "StepRecord",
]
