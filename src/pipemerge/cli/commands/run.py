# topmark:header:start
#
#   project      : PipeMerge
#   file         : run.py
#   file_relpath : src/pipemerge/cli/commands/run.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge `run` command.

Loads a pipeline definition, runs it over a JSON payload (or replays a
serialized context snapshot) and prints the merged results. The command exits
with `ExitCode.STEP_ERRORS` when the run collected step errors.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import click

from pipemerge.cli.cli_types import EnumChoiceParam
from pipemerge.cli.emitters import OutputFormat, emit_run
from pipemerge.cli.errors import (
    PipemergeConfigError,
    PipemergeDecodingError,
    PipemergeFileNotFoundError,
    PipemergePipelineError,
    PipemergeUsageError,
)
from pipemerge.cli.exit_codes import ExitCode
from pipemerge.cli.options import get_console, get_verbosity
from pipemerge.config.io import load_pipeline_config
from pipemerge.config.logging import get_logger
from pipemerge.core.errors import ConflictConfigurationError, DecodingError, PipelineConfigError
from pipemerge.pipeline.resolution import ConflictResolver
from pipemerge.services.executor import PipelineExecutor
from pipemerge.services.notifiers import build_notifier

if TYPE_CHECKING:
    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.config.model import PipelineConfig
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import Notifier

logger: PipemergeLogger = get_logger(__name__)


def _read_json(stream: TextIO, what: str) -> Any:
    try:
        return json.load(stream)
    except json.JSONDecodeError as exc:
        raise PipemergeDecodingError(f"Invalid JSON in {what}: {exc}") from exc


def _load_config(config_path: Path) -> PipelineConfig:
    if not config_path.exists():
        raise PipemergeFileNotFoundError(f"Pipeline definition not found: {config_path}")
    try:
        config: PipelineConfig = load_pipeline_config(config_path)
    except PipelineConfigError as exc:
        raise PipemergeConfigError(str(exc)) from exc
    # Step modules next to the definition are importable by their spec.
    if config.source is not None:
        project_dir: str = str(config.source.parent.resolve())
        if project_dir not in sys.path:
            sys.path.insert(0, project_dir)
    return config


@click.command(
    name="run",
    help="Run the pipeline defined in CONFIG (a pipemerge.toml, a pyproject.toml, or a directory).",
)
@click.argument("config_path", metavar="CONFIG", type=click.Path(path_type=Path))
@click.option(
    "--payload",
    "payload_file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="JSON file with the initial payload ('-' reads STDIN). Defaults to {}.",
)
@click.option(
    "--snapshot",
    "snapshot_file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Replay a serialized context (as printed by '--format json') instead of a payload.",
)
@click.option(
    "--format",
    "output_format",
    type=EnumChoiceParam(OutputFormat),
    default=OutputFormat.TEXT.value,
    help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
)
@click.option("--no-history", is_flag=True, default=False, help="Do not record this run.")
@click.pass_context
def run_command(
    ctx: click.Context,
    *,
    config_path: Path,
    payload_file: TextIO | None,
    snapshot_file: TextIO | None,
    output_format: OutputFormat,
    no_history: bool,
) -> None:
    """Run a configured pipeline and print its results."""
    console = get_console(ctx)
    if payload_file is not None and snapshot_file is not None:
        raise PipemergeUsageError("'--payload' and '--snapshot' are mutually exclusive.")

    config: PipelineConfig = _load_config(config_path)
    try:
        steps: list[Any] = config.load_steps()
        resolver = ConflictResolver(config.resolver_registry())
    except (PipelineConfigError, TypeError) as exc:
        raise PipemergeConfigError(str(exc)) from exc

    executor: PipelineExecutor = PipelineExecutor() if no_history else PipelineExecutor.from_config(config)
    notifier: Notifier = build_notifier(config.notifier)

    context: ExecutionContext
    try:
        if snapshot_file is not None:
            record: Any = _read_json(snapshot_file, "snapshot")
            if isinstance(record, dict) and isinstance(record.get("context"), dict):
                record = record["context"]
            context = executor.replay(record, steps, pipeline_name=config.name, resolver=resolver)
        else:
            payload: Any = {} if payload_file is None else _read_json(payload_file, "payload")
            context = executor.run(payload, steps, pipeline_name=config.name, resolver=resolver)
    except ConflictConfigurationError as exc:
        try:
            notifier.notify_failure(exc, pipeline_name=config.name)
        except Exception:
            logger.exception("Failure notification failed for pipeline %s", config.name)
        raise PipemergePipelineError(str(exc)) from exc
    except DecodingError as exc:
        raise PipemergeDecodingError(str(exc)) from exc

    try:
        notifier.notify_success(context, pipeline_name=config.name)
    except Exception:
        logger.exception("Success notification failed for pipeline %s", config.name)
    emit_run(
        console,
        context,
        pipeline_name=config.name,
        fmt=output_format,
        verbosity=get_verbosity(ctx),
    )
    if context.has_errors:
        logger.info("Run of %s collected %d step error(s)", config.name, len(context.errors))
        ctx.exit(ExitCode.STEP_ERRORS)
