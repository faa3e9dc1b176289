# topmark:header:start
#
#   project      : PipeMerge
#   file         : model.py
#   file_relpath : src/pipemerge/config/model.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Immutable pipeline definitions loaded from TOML.

A definition names the pipeline, lists its steps as import specs
(``"package.module:ClassName"``), and configures history and notification:

    [pipeline]
    name = "users"
    steps = ["myapp.steps:EmailFormatterStep", "myapp.steps:EmailValidatorStep"]

    [history]
    enabled = true
    database_url = "sqlite:///pipemerge-history.db"

    [notifier]
    kind = "log"
    channel = "myapp.pipelines"

    [resolvers]
    keep-longest = "myapp.resolvers:KeepLongest"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pipemerge.constants import DEFAULT_DATABASE_URL, DEFAULT_NOTIFIER_CHANNEL
from pipemerge.core.enum_mixins import EnumIntrospectionMixin
from pipemerge.utils.introspection import load_instance

if TYPE_CHECKING:
    from pathlib import Path

    from pipemerge.pipeline.resolution import ResolverRegistry


class NotifierKind(EnumIntrospectionMixin, str, Enum):
    """Built-in notifier implementations selectable from configuration."""

    NULL = "null"
    LOG = "log"


@dataclass(frozen=True)
class HistorySettings:
    """Where and whether to persist run history.

    Attributes:
        enabled (bool): Record runs and steps when True.
        database_url (str): SQLAlchemy database URL.
    """

    enabled: bool = True
    database_url: str = DEFAULT_DATABASE_URL


@dataclass(frozen=True)
class NotifierSettings:
    """Notifier selection.

    Attributes:
        kind (NotifierKind): Which notifier to build.
        channel (str): Logger name used by the ``log`` notifier.
    """

    kind: NotifierKind = NotifierKind.NULL
    channel: str = DEFAULT_NOTIFIER_CHANNEL


@dataclass(frozen=True)
class PipelineConfig:
    """A named, ordered list of steps plus run settings.

    Attributes:
        name (str): Pipeline name, stored with every history record.
        steps (tuple[str, ...]): Import specs of the steps, in execution order.
        history (HistorySettings): History persistence settings.
        notifier (NotifierSettings): Notifier settings.
        resolvers (dict[str, str]): Custom resolver ids mapped to import specs.
        source (Path | None): File the definition was read from, if any.
    """

    name: str
    steps: tuple[str, ...] = ()
    history: HistorySettings = field(default_factory=HistorySettings)
    notifier: NotifierSettings = field(default_factory=NotifierSettings)
    resolvers: dict[str, str] = field(default_factory=dict)
    source: Path | None = None

    def load_steps(self) -> list[Any]:
        """Import and instantiate every configured step.

        Raises:
            PipelineConfigError: If a spec cannot be imported.
        """
        return [load_instance(spec) for spec in self.steps]

    def resolver_registry(self) -> ResolverRegistry:
        """Import every configured custom resolver into a new registry.

        Raises:
            PipelineConfigError: If a spec cannot be imported.
            TypeError: If an imported object has no callable ``resolve``.
        """
        # Imported here: the pipeline package imports this package for logging.
        from pipemerge.pipeline.resolution import ResolverRegistry

        registry = ResolverRegistry()
        for name, spec in self.resolvers.items():
            registry.register(name, load_instance(spec))
        return registry
