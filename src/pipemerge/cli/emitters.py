# topmark:header:start
#
#   project      : PipeMerge
#   file         : emitters.py
#   file_relpath : src/pipemerge/cli/emitters.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Render run results and history records for the console.

Each emitter takes an `OutputFormat` and prints through a `ConsoleLike`:

- ``text``: human-readable, colored when the console allows it;
- ``json``: one indented JSON document, never colored;
- ``markdown``: headings, tables and fenced JSON.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

from pipemerge.core.enum_mixins import EnumIntrospectionMixin
from pipemerge.pipeline.status import ResultStatus
from pipemerge.rendering.markdown import escape_cell, render_markdown_table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pipemerge.cli.console import ConsoleLike
    from pipemerge.history.recorder import RunRecord, StepRecord
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.result import Result


class OutputFormat(EnumIntrospectionMixin, str, Enum):
    """Output formats supported by the ``run`` and ``history`` commands."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _status_text(console: ConsoleLike, status: str) -> str:
    if not console.enable_color:
        return status
    for member in ResultStatus:
        if member.value == status:
            return member.colored()
    return status


def _result_row(result: Result) -> list[str]:
    return [
        result.key,
        result.policy.value,
        str(result.priority),
        result.status.value,
        result.provenance,
    ]


# --- run -------------------------------------------------------------------------


def emit_run(
    console: ConsoleLike,
    context: ExecutionContext,
    *,
    pipeline_name: str,
    fmt: OutputFormat,
    verbosity: int = 0,
) -> None:
    """Print the outcome of a run.

    Args:
        console (ConsoleLike): Output console.
        context (ExecutionContext): Final context.
        pipeline_name (str): Name of the pipeline that ran.
        fmt (OutputFormat): Output format.
        verbosity (int): Program-output verbosity; ``> 0`` adds error traces,
            ``< 0`` prints only the built data.
    """
    if fmt == OutputFormat.JSON:
        console.print(
            _dump(
                {
                    "pipeline": pipeline_name,
                    "has_errors": context.has_errors,
                    "data": context.build(),
                    "context": context.to_dict(),
                }
            )
        )
    elif fmt == OutputFormat.MARKDOWN:
        _emit_run_markdown(console, context, pipeline_name)
    else:
        _emit_run_text(console, context, pipeline_name, verbosity)


def _emit_run_text(console: ConsoleLike, context: ExecutionContext, pipeline_name: str, verbosity: int) -> None:
    if verbosity < 0:
        console.print(_dump(context.build()))
        return

    run_id: Any = context.get_meta().get("run_id")
    title: str = f"Pipeline {pipeline_name}" + (f" (run {run_id})" if run_id is not None else "")
    console.print(console.styled(title, bold=True))

    results: list[Result] = list(context.results.values())
    if results:
        width: int = max(len(r.key) for r in results)
        for result in results:
            console.print(
                f"  {result.key:<{width}}  {result.policy.value:<9} p{result.priority:<4} "
                f"{_status_text(console, result.status.value)}  {result.provenance}"
            )
    else:
        console.print("  (no results)")

    console.print()
    console.print(console.styled("Data:", bold=True))
    console.print(_dump(context.build()))

    errors = context.errors
    if errors:
        console.print()
        console.print(console.styled(f"Errors ({len(errors)}):", fg="bright_red", bold=True))
        for record in errors:
            console.print(f"  - {record.get('step')}: {record.get('message')}")
            if verbosity > 0 and record.get("trace"):
                console.print(console.styled(str(record["trace"]).rstrip(), dim=True))


def _emit_run_markdown(console: ConsoleLike, context: ExecutionContext, pipeline_name: str) -> None:
    console.print(f"# Pipeline `{pipeline_name}`\n")
    rows: list[list[str]] = [[escape_cell(c) for c in _result_row(r)] for r in context.results.values()]
    console.print("## Results\n")
    if rows:
        console.print(
            render_markdown_table(
                ["Key", "Policy", "Priority", "Status", "Provenance"], rows, align={2: "right"}
            )
        )
    else:
        console.print("_No results._\n")
    console.print("## Data\n")
    console.print(f"```json\n{_dump(context.build())}\n```\n")
    errors = context.errors
    if errors:
        console.print("## Errors\n")
        for record in errors:
            console.print(f"- **{record.get('step')}**: {record.get('message')}")
        console.print()


# --- history -----------------------------------------------------------------------


def _run_dict(run: RunRecord) -> dict[str, Any]:
    return {
        "id": run.id,
        "pipeline_name": run.pipeline_name,
        "status": run.status,
        "created_at": run.created_at.isoformat() if run.created_at else None,
        "finished_at": run.finished_at.isoformat() if run.finished_at else None,
        "errors": len(run.meta.get("errors") or []),
    }


def _step_dict(step: StepRecord) -> dict[str, Any]:
    return {
        "id": step.id,
        "step_name": step.step_name,
        "key": step.key,
        "policy": step.policy,
        "status": step.status,
        "duration_ms": step.duration_ms,
    }


def emit_runs(console: ConsoleLike, runs: Sequence[RunRecord], *, fmt: OutputFormat) -> None:
    """Print a list of recorded runs (most recent first)."""
    rows: list[dict[str, Any]] = [_run_dict(run) for run in runs]
    if fmt == OutputFormat.JSON:
        console.print(_dump(rows))
        return
    if fmt == OutputFormat.MARKDOWN:
        console.print("# Pipeline runs\n")
        if not rows:
            console.print("_No runs recorded._\n")
            return
        console.print(
            render_markdown_table(
                ["Id", "Pipeline", "Status", "Errors", "Created", "Finished"],
                [
                    [
                        str(r["id"]),
                        escape_cell(r["pipeline_name"]),
                        r["status"],
                        str(r["errors"]),
                        r["created_at"] or "",
                        r["finished_at"] or "",
                    ]
                    for r in rows
                ],
                align={0: "right", 3: "right"},
            )
        )
        return
    if not rows:
        console.print("No runs recorded.")
        return
    for r in rows:
        status: str = console.styled(
            r["status"], fg="green" if r["status"] == "completed" else "bright_red"
        )
        console.print(
            f"#{r['id']:<5} {r['pipeline_name']:<24} {status:<10} "
            f"errors={r['errors']:<3} {r['created_at'] or ''}"
        )


def emit_steps(console: ConsoleLike, run: RunRecord, steps: Sequence[StepRecord], *, fmt: OutputFormat) -> None:
    """Print the steps of one recorded run."""
    rows: list[dict[str, Any]] = [_step_dict(step) for step in steps]
    if fmt == OutputFormat.JSON:
        console.print(_dump({"run": _run_dict(run), "steps": rows}))
        return
    if fmt == OutputFormat.MARKDOWN:
        console.print(f"# Run {run.id} (`{run.pipeline_name}`, {run.status})\n")
        console.print(
            render_markdown_table(
                ["Step", "Key", "Policy", "Status", "Duration (ms)"],
                [
                    [
                        escape_cell(r["step_name"]),
                        escape_cell(r["key"] or ""),
                        r["policy"] or "",
                        r["status"],
                        f"{r['duration_ms']:.2f}",
                    ]
                    for r in rows
                ],
                align={4: "right"},
            )
        )
        return
    console.print(console.styled(f"Run {run.id} ({run.pipeline_name}, {run.status})", bold=True))
    for r in rows:
        console.print(
            f"  {_status_text(console, r['status']):<8} {r['duration_ms']:>9.2f} ms  "
            f"{r['step_name']} -> {r['key'] or '-'}"
        )
