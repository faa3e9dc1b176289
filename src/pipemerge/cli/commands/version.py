# topmark:header:start
#
#   project      : PipeMerge
#   file         : version.py
#   file_relpath : src/pipemerge/cli/commands/version.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge `version` command.

Prints the PipeMerge version as installed in the active Python environment.
"""

from __future__ import annotations

import json

import click

from pipemerge.cli.cli_types import EnumChoiceParam
from pipemerge.cli.emitters import OutputFormat
from pipemerge.cli.options import get_console, get_verbosity
from pipemerge.constants import PIPEMERGE_VERSION


@click.command(name="version", help="Show the current version of PipeMerge.")
@click.option(
    "--format",
    "output_format",
    type=EnumChoiceParam(OutputFormat),
    default=None,
    help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
)
@click.pass_context
def version_command(ctx: click.Context, *, output_format: OutputFormat | None = None) -> None:
    """Show the current version of PipeMerge."""
    console = get_console(ctx)
    fmt: OutputFormat = output_format or OutputFormat.TEXT

    if fmt == OutputFormat.JSON:
        console.print(json.dumps({"version": PIPEMERGE_VERSION}))
    elif fmt == OutputFormat.MARKDOWN:
        console.print("# PipeMerge Version\n")
        console.print(f"**PipeMerge version: {PIPEMERGE_VERSION}**")
    elif get_verbosity(ctx) > 0:
        console.print(console.styled("PipeMerge version:", bold=True, underline=True))
        console.print(f"    {console.styled(PIPEMERGE_VERSION, bold=True)}")
    else:
        console.print(console.styled(PIPEMERGE_VERSION, bold=True))
