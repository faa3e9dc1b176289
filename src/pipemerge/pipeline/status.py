# topmark:header:start
#
#   project      : PipeMerge
#   file         : status.py
#   file_relpath : src/pipemerge/pipeline/status.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Policy and status enums for the PipeMerge pipeline.

Conventions:
  * Values are the serialization keys used in context records and the history
    database (``"merge"``, ``"ok"``, ...). Use `enum_from_value` (strict) when
    decoding records and ``parse()`` (lenient) for user input.
  * Compare members with ``==`` or ``is``; never compare against raw strings in
    engine code.
"""

from __future__ import annotations

from enum import Enum

from yachalk import chalk

from pipemerge.core.enum_mixins import EnumIntrospectionMixin
from pipemerge.rendering.colored_enum import ColoredStrEnum


class ConflictPolicy(EnumIntrospectionMixin, str, Enum):
    """How an incoming result combines with a stored result under the same key."""

    MERGE = "merge"
    OVERWRITE = "overwrite"
    SKIP = "skip"
    CUSTOM = "custom"


class ResultStatus(EnumIntrospectionMixin, ColoredStrEnum):
    """Outcome reported by the step that produced a result.

    The runner reuses these values as the terminal state of each step; a step
    that raised is reported as ``FAILED`` and produces no result.
    """

    # Value format: (serialization key, color_renderer)
    OK = ("ok", chalk.green)
    SKIPPED = ("skipped", chalk.yellow)
    FAILED = ("failed", chalk.red_bright)
