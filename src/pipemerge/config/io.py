# topmark:header:start
#
#   project      : PipeMerge
#   file         : io.py
#   file_relpath : src/pipemerge/config/io.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Load pipeline definitions from TOML files.

Sources:
- a dedicated ``pipemerge.toml`` (top-level ``[pipeline]``, ``[history]``,
  ``[notifier]`` and ``[resolvers]`` tables);
- a ``pyproject.toml`` with the same tables nested under ``[tool.pipemerge]``;
- a directory containing either of the above (``pipemerge.toml`` wins).

Parsing is done with `tomlkit` and unwrapped to plain `dict` structures before
validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import tomlkit
from tomlkit.exceptions import ParseError as TomlkitParseError

from pipemerge.config.logging import get_logger
from pipemerge.config.model import HistorySettings, NotifierKind, NotifierSettings, PipelineConfig
from pipemerge.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_NOTIFIER_CHANNEL,
    PIPEMERGE_TOML_NAME,
    PYPROJECT_TOML_NAME,
    PYPROJECT_TOOL_SECTION,
)
from pipemerge.core.errors import DecodingError, PipelineConfigError

if TYPE_CHECKING:
    from pipemerge.config.logging import PipemergeLogger

TomlTable = dict[str, Any]

logger: PipemergeLogger = get_logger(__name__)

_KNOWN_TABLES: frozenset[str] = frozenset({"pipeline", "history", "notifier", "resolvers"})


def load_toml_dict(path: Path) -> TomlTable:
    """Load and parse a TOML file from the filesystem.

    Args:
        path (Path): Path to a TOML document.

    Returns:
        TomlTable: The parsed TOML content.

    Raises:
        PipelineConfigError: If the file cannot be read or is not valid TOML.
    """
    try:
        text: str = path.read_text(encoding="utf-8")
        doc: tomlkit.TOMLDocument = tomlkit.parse(text)
    except OSError as e:
        logger.error("Error loading TOML from %s: %s", path, e)
        raise PipelineConfigError(f"Cannot read {path}: {e}") from e
    except TomlkitParseError as e:
        logger.error("Error decoding TOML from %s: %s", path, e)
        raise PipelineConfigError(f"Invalid TOML in {path}: {e}") from e
    data_any: Any = doc.unwrap()
    return cast("TomlTable", data_any) if isinstance(data_any, dict) else {}


def resolve_config_path(path: Path) -> Path:
    """Return the TOML file to read for ``path``.

    Args:
        path (Path): A TOML file, or a directory holding ``pipemerge.toml`` or
            ``pyproject.toml``.

    Raises:
        PipelineConfigError: If no candidate file exists.
    """
    if path.is_dir():
        for name in (PIPEMERGE_TOML_NAME, PYPROJECT_TOML_NAME):
            candidate: Path = path / name
            if candidate.is_file():
                return candidate
        raise PipelineConfigError(f"No {PIPEMERGE_TOML_NAME} or {PYPROJECT_TOML_NAME} in {path}")
    if not path.is_file():
        raise PipelineConfigError(f"Pipeline definition not found: {path}")
    return path


def _table(data: TomlTable, name: str) -> TomlTable:
    raw: Any = data.get(name, {})
    if not isinstance(raw, dict):
        raise PipelineConfigError(f"[{name}] must be a table")
    return cast("TomlTable", raw)


def _string(table: TomlTable, key: str, where: str, default: str | None = None) -> str:
    raw: Any = table.get(key, default)
    if not isinstance(raw, str) or not raw.strip():
        raise PipelineConfigError(f"{where}.{key} must be a non-empty string")
    return raw


def parse_pipeline_config(data: TomlTable, *, source: Path | None = None) -> PipelineConfig:
    """Validate an unwrapped TOML table and build a `PipelineConfig`.

    Args:
        data (TomlTable): Top-level table holding ``[pipeline]`` and friends.
        source (Path | None): File the table came from (for messages only).

    Returns:
        PipelineConfig: The validated definition.

    Raises:
        PipelineConfigError: On missing or ill-typed entries.
    """
    unknown: list[str] = sorted(set(data) - _KNOWN_TABLES)
    if unknown:
        logger.warning("Ignoring unknown table(s) in %s: %s", source or "<config>", ", ".join(unknown))

    if "pipeline" not in data:
        raise PipelineConfigError(f"Missing [pipeline] table in {source or '<config>'}")
    pipeline: TomlTable = _table(data, "pipeline")
    name: str = _string(pipeline, "name", "pipeline")

    raw_steps: Any = pipeline.get("steps", [])
    if not isinstance(raw_steps, list) or not all(
        isinstance(s, str) and s.strip() for s in cast("list[Any]", raw_steps)
    ):
        raise PipelineConfigError("pipeline.steps must be a list of import specs")
    steps: tuple[str, ...] = tuple(cast("list[str]", raw_steps))
    if not steps:
        logger.warning("Pipeline %r defines no steps", name)

    history_table: TomlTable = _table(data, "history")
    enabled: Any = history_table.get("enabled", True)
    if not isinstance(enabled, bool):
        raise PipelineConfigError("history.enabled must be a boolean")
    history = HistorySettings(
        enabled=enabled,
        database_url=_string(history_table, "database_url", "history", DEFAULT_DATABASE_URL),
    )

    notifier_table: TomlTable = _table(data, "notifier")
    try:
        kind: NotifierKind = NotifierKind.parse(notifier_table.get("kind", NotifierKind.NULL.value))
    except DecodingError as exc:
        raise PipelineConfigError(f"notifier.kind: {exc}") from exc
    notifier = NotifierSettings(
        kind=kind,
        channel=_string(notifier_table, "channel", "notifier", DEFAULT_NOTIFIER_CHANNEL),
    )

    resolvers_table: TomlTable = _table(data, "resolvers")
    resolvers: dict[str, str] = {}
    for rid, spec in resolvers_table.items():
        if not isinstance(spec, str) or not spec.strip():
            raise PipelineConfigError(f"resolvers.{rid} must be an import spec string")
        resolvers[rid] = spec

    return PipelineConfig(
        name=name,
        steps=steps,
        history=history,
        notifier=notifier,
        resolvers=resolvers,
        source=source,
    )


def load_pipeline_config(path: Path | str) -> PipelineConfig:
    """Read and validate the pipeline definition at ``path``.

    Args:
        path (Path | str): A ``pipemerge.toml``, a ``pyproject.toml`` with a
            ``[tool.pipemerge]`` table, or a directory holding one of them.

    Returns:
        PipelineConfig: The validated definition.

    Raises:
        PipelineConfigError: If the file is missing, unreadable, or invalid.
    """
    config_path: Path = resolve_config_path(Path(path))
    data: TomlTable = load_toml_dict(config_path)
    if config_path.name == PYPROJECT_TOML_NAME:
        tool: Any = data.get("tool", {})
        section: Any = tool.get(PYPROJECT_TOOL_SECTION) if isinstance(tool, dict) else None
        if not isinstance(section, dict):
            raise PipelineConfigError(f"No [tool.{PYPROJECT_TOOL_SECTION}] table in {config_path}")
        data = cast("TomlTable", section)
    logger.debug("Loading pipeline definition from %s", config_path)
    return parse_pipeline_config(data, source=config_path)
