# topmark:header:start
#
#   project      : PipeMerge
#   file         : make_step.py
#   file_relpath : src/pipemerge/cli/commands/make_step.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge `make-step` command: scaffold a new step module."""

from __future__ import annotations

from pathlib import Path

import click

from pipemerge.cli.errors import PipemergeCliError, PipemergeUsageError
from pipemerge.cli.options import get_console
from pipemerge.constants import DEFAULT_PRIORITY
from pipemerge.core.errors import DecodingError
from pipemerge.pipeline.status import ConflictPolicy
from pipemerge.scaffold.generator import StepModulePlan, plan_step_module, write_step_module


@click.command(
    name="make-step",
    help=(
        "Create a new step class. NAME is a class name, optionally prefixed by packages: "
        "EmailFormatterStep, billing/ChargeStep or billing.ChargeStep."
    ),
)
@click.argument("name")
@click.option(
    "--dir",
    "base_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory the step packages are created in.",
)
@click.option(
    "--policy",
    default=ConflictPolicy.MERGE.value,
    show_default=True,
    help=f"Conflict policy ({'|'.join(p.value for p in ConflictPolicy)}).",
)
@click.option("--priority", type=int, default=DEFAULT_PRIORITY, show_default=True, help="Result priority.")
@click.option("--key", default=None, help="Result key (defaults to the snake_case name without 'Step').")
@click.option("--force", is_flag=True, default=False, help="Overwrite the file if it exists.")
@click.pass_context
def make_step_command(
    ctx: click.Context,
    *,
    name: str,
    base_dir: Path,
    policy: str,
    priority: int,
    key: str | None,
    force: bool,
) -> None:
    """Write a new step module from the bundled template."""
    console = get_console(ctx)
    try:
        plan: StepModulePlan = plan_step_module(
            name, base_dir=base_dir, key=key, policy=policy, priority=priority
        )
    except DecodingError as exc:
        raise PipemergeUsageError(str(exc)) from exc

    try:
        path: Path = write_step_module(plan, force=force)
    except FileExistsError as exc:
        raise PipemergeCliError(f"{exc} (use --force to overwrite)") from exc

    console.print(console.styled(f"Step created: {plan.class_name}", fg="green"))
    console.print(f"  Path        : {path}")
    console.print(f"  Import spec : {plan.import_spec}")
