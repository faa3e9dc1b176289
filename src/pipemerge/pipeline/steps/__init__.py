# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/pipeline/steps/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Step base classes and helpers."""

from __future__ import annotations

from pipemerge.pipeline.steps.base import BaseStep, FunctionStep, as_step, step_name

__all__: list[str] = [
    "BaseStep",
    "FunctionStep",
    "as_step",
    "step_name",
]
