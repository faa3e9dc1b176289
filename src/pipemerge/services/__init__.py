# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/services/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Application services built around the pipeline engine."""

from __future__ import annotations

from pipemerge.services.executor import PipelineExecutor
from pipemerge.services.jobs import JobDispatcher, PipelineJob
from pipemerge.services.notifiers import LogNotifier, NullNotifier, build_notifier

__all__: list[str] = [
    "JobDispatcher",
    "LogNotifier",
    "NullNotifier",
    "PipelineExecutor",
    "PipelineJob",
    "build_notifier",
]
