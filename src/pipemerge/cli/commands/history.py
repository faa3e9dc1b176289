# topmark:header:start
#
#   project      : PipeMerge
#   file         : history.py
#   file_relpath : src/pipemerge/cli/commands/history.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge `history` command: list recorded runs or show one run's steps."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from sqlalchemy.exc import SQLAlchemyError

from pipemerge.cli.cli_types import EnumChoiceParam
from pipemerge.cli.emitters import OutputFormat, emit_runs, emit_steps
from pipemerge.cli.errors import PipemergeCliError, PipemergeFileNotFoundError
from pipemerge.cli.options import get_console
from pipemerge.constants import DEFAULT_DATABASE_URL
from pipemerge.history.recorder import HistoryStore

if TYPE_CHECKING:
    from pipemerge.history.recorder import RunRecord


@click.command(name="history", help="List recorded pipeline runs.")
@click.option(
    "--database-url",
    default=DEFAULT_DATABASE_URL,
    show_default=True,
    help="SQLAlchemy URL of the history database.",
)
@click.option("--pipeline", "pipeline_name", default=None, help="Only runs of this pipeline.")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True, help="Maximum runs.")
@click.option("--run-id", type=int, default=None, help="Show the steps of this run instead.")
@click.option(
    "--format",
    "output_format",
    type=EnumChoiceParam(OutputFormat),
    default=OutputFormat.TEXT.value,
    help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
)
@click.pass_context
def history_command(
    ctx: click.Context,
    *,
    database_url: str,
    pipeline_name: str | None,
    limit: int,
    run_id: int | None,
    output_format: OutputFormat,
) -> None:
    """List recorded runs, most recent first."""
    console = get_console(ctx)
    try:
        store = HistoryStore(database_url)
        store.create_schema()
        if run_id is not None:
            run: RunRecord | None = store.get_run(run_id)
            if run is None:
                raise PipemergeFileNotFoundError(f"No run with id {run_id}")
            emit_steps(console, run, store.get_steps(run_id), fmt=output_format)
            return
        runs: list[RunRecord] = store.list_runs(limit=limit, pipeline_name=pipeline_name)
    except SQLAlchemyError as exc:
        raise PipemergeCliError(f"Cannot read history from {database_url}: {exc}") from exc
    emit_runs(console, runs, fmt=output_format)
