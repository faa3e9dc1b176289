# topmark:header:start
#
#   project      : PipeMerge
#   file         : options.py
#   file_relpath : src/pipemerge/cli/options.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Common CLI options (verbosity, color) and their resolution logic."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import click

from pipemerge.cli.cli_types import EnumChoiceParam
from pipemerge.cli.errors import PipemergeUsageError

if TYPE_CHECKING:
    from pipemerge.cli.console import ConsoleLike

P = ParamSpec("P")
R = TypeVar("R")

#: Click context settings shared by the group and its commands.
CONTEXT_SETTINGS: dict[str, list[str]] = {"help_option_names": ["-h", "--help"]}


class ColorMode(str, Enum):
    """User intent for colorized terminal output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def resolve_verbosity(verbose_count: int, quiet_count: int) -> int:
    """Resolve the program-output verbosity from ``-v``/``-q`` counts.

    Args:
        verbose_count (int): Number of ``-v`` flags.
        quiet_count (int): Number of ``-q`` flags.

    Returns:
        int: ``verbose_count`` when verbose, ``-quiet_count`` when quiet, else 0.

    Raises:
        PipemergeUsageError: If both ``-v`` and ``-q`` were given.
    """
    if verbose_count > 0 and quiet_count > 0:
        raise PipemergeUsageError("The '--verbose' and '--quiet' options are mutually exclusive.")
    return verbose_count - quiet_count


def resolve_color_mode(
    *,
    cli_mode: ColorMode | None,
    output_format: str | None,
    stdout_isatty: bool | None = None,
) -> bool:
    """Determine whether color output should be enabled.

    Args:
        cli_mode (ColorMode | None): Explicit color mode from ``--color``.
        output_format (str | None): Output format string, e.g. ``"json"``.
        stdout_isatty (bool | None): Whether stdout is a TTY; if None, auto-detected.

    Returns:
        bool: True if color output should be enabled.

    Behavior:
        Disables color for JSON output. Honors ``--color``/``--no-color``, then
        ``FORCE_COLOR`` and ``NO_COLOR``, and finally whether stdout is a TTY.
    """
    if output_format and output_format.lower() == "json":
        return False
    if cli_mode == ColorMode.ALWAYS:
        return True
    if cli_mode == ColorMode.NEVER:
        return False
    force_color: str | None = os.getenv("FORCE_COLOR")
    if force_color and force_color != "0":
        return True
    if os.getenv("NO_COLOR") is not None:
        return False
    if stdout_isatty is None:
        stdout_isatty = sys.stdout.isatty()
    return bool(stdout_isatty)


def common_verbose_options(f: Callable[P, R]) -> Callable[P, R]:
    """Add counting ``-v/--verbose`` and ``-q/--quiet`` options."""
    f = click.option(
        "-v",
        "--verbose",
        count=True,
        help="Increase program output detail. Repeat for more.",
    )(f)
    f = click.option(
        "-q",
        "--quiet",
        count=True,
        help="Reduce program output. Repeat for less.",
    )(f)
    return f


def common_color_options(f: Callable[P, R]) -> Callable[P, R]:
    """Add ``--color`` (auto, always, never) and ``--no-color`` options."""
    f = click.option(
        "--color",
        "color_mode",
        type=EnumChoiceParam(ColorMode),
        default=None,
        help="Color output: auto (default), always, or never.",
    )(f)
    f = click.option(
        "--no-color",
        "no_color",
        is_flag=True,
        help="Disable color output (equivalent to --color=never).",
    )(f)
    return f


def get_console(ctx: click.Context) -> ConsoleLike:
    """Return the console stored on the context by the ``pipemerge`` group."""
    ctx.ensure_object(dict)
    return ctx.obj["console"]


def get_verbosity(ctx: click.Context) -> int:
    """Return the program-output verbosity stored on the context (0 if unset)."""
    ctx.ensure_object(dict)
    return int(ctx.obj.get("verbosity_level", 0))
