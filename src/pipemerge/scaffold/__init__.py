# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/scaffold/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Source-code scaffolding for new pipeline steps."""

from __future__ import annotations

from pipemerge.scaffold.generator import (
    StepModulePlan,
    plan_step_module,
    render_step_module,
    snake_case,
    write_step_module,
)

__all__: list[str] = [
    "StepModulePlan",
    "plan_step_module",
    "render_step_module",
    "snake_case",
    "write_step_module",
]
