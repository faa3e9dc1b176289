# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/pipeline/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Pipeline engine: results, execution context, conflict resolution and runner."""

from __future__ import annotations

from pipemerge.pipeline.context import ExecutionContext
from pipemerge.pipeline.resolution import ConflictResolver, ResolverRegistry
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.runner import Runner
from pipemerge.pipeline.status import ConflictPolicy, ResultStatus
from pipemerge.pipeline.steps.base import BaseStep, FunctionStep

__all__: list[str] = [
    "BaseStep",
    "ConflictPolicy",
    "ConflictResolver",
    "ExecutionContext",
    "FunctionStep",
    "ResolverRegistry",
    "Result",
    "ResultStatus",
    "Runner",
]
