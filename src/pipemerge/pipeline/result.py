# topmark:header:start
#
#   project      : PipeMerge
#   file         : result.py
#   file_relpath : src/pipemerge/pipeline/result.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Immutable result values produced by pipeline steps.

A [`Result`][pipemerge.pipeline.result.Result] is the unit of merging: the
execution context stores at most one result per ``key`` and hands collisions to
the conflict resolver, which always builds a *new* result instead of editing a
stored one.

Serialized record form (see `Result.to_dict` / `Result.from_dict`):

    {
        "key": "email",
        "data": {"value": "john@example.com"},
        "policy": "merge",
        "priority": 10,
        "provenance": "EmailFormatterStep",
        "status": "ok",
        "meta": {}
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from pipemerge.constants import DEFAULT_PRIORITY, DEFAULT_PROVENANCE, RESOLVER_META_KEY
from pipemerge.core.enum_mixins import enum_from_value
from pipemerge.core.errors import DecodingError
from pipemerge.core.values import copy_value, normalize_value
from pipemerge.pipeline.status import ConflictPolicy, ResultStatus

if TYPE_CHECKING:
    from pipemerge.core.values import Value, ValueMap

__all__: list[str] = [
    "Result",
]


@dataclass(frozen=True)
class Result:
    """Named value produced by one step.

    Attributes:
        key (str): Non-empty, stable identifier; the merge unit.
        data (Value): JSON-like payload contributed by the step.
        policy (ConflictPolicy): How this result combines with a prior result
            under the same key (default: ``MERGE``).
        priority (int): Tie-break weight; higher wins on conflict (default: 10).
        provenance (str): Trail of contributing step identifiers.
        status (ResultStatus): Outcome reported by the producing step.
        meta (ValueMap): Policy-specific metadata; ``custom`` results carry a
            ``"resolver"`` entry naming the delegate resolver.

    Notes:
        ``data`` and ``meta`` are copied on construction and the dataclass is
        frozen, but the containers themselves stay mutable. The execution
        context stores and hands out detached copies (`with_changes()` with no
        arguments) so a stored result cannot be edited through any reference.
    """

    key: str
    data: Value = None
    policy: ConflictPolicy = ConflictPolicy.MERGE
    priority: int = DEFAULT_PRIORITY
    provenance: str = DEFAULT_PROVENANCE
    status: ResultStatus = ResultStatus.OK
    meta: ValueMap = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key:
            raise ValueError(f"Result key must be a non-empty string (got {self.key!r})")
        if not isinstance(self.policy, ConflictPolicy):
            raise TypeError(f"policy must be a ConflictPolicy (got {self.policy!r})")
        if not isinstance(self.status, ResultStatus):
            raise TypeError(f"status must be a ResultStatus (got {self.status!r})")
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise TypeError(f"priority must be an int (got {self.priority!r})")
        # Frozen dataclass: detach containers from the caller via object.__setattr__
        object.__setattr__(self, "data", normalize_value(self.data, where=f"{self.key}.data"))
        meta: Value = normalize_value(self.meta, where=f"{self.key}.meta")
        if not isinstance(meta, dict):
            raise TypeError(f"meta must be a mapping (got {type(self.meta).__name__})")
        object.__setattr__(self, "meta", meta)

    @property
    def resolver_id(self) -> str | None:
        """Return the custom resolver identifier from ``meta``, if it is a string."""
        rid: Any = self.meta.get(RESOLVER_META_KEY)
        return rid if isinstance(rid, str) else None

    def with_changes(self, **changes: Any) -> Result:
        """Return a copy of this result with ``changes`` applied.

        Args:
            **changes (Any): Field overrides forwarded to `dataclasses.replace`.

        Returns:
            Result: A new result; ``self`` is unchanged.
        """
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Value]:
        """Return the serialized record form of this result.

        Returns:
            dict[str, Value]: ``{key, data, policy, priority, provenance, status, meta}``
            with enum members rendered as their string values.
        """
        return {
            "key": self.key,
            "data": copy_value(self.data),
            "policy": self.policy.value,
            "priority": self.priority,
            "provenance": self.provenance,
            "status": self.status.value,
            "meta": copy_value(self.meta),
        }

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> Result:
        """Rebuild a result from its record form.

        Only ``key`` is required; absent fields take the constructor defaults.

        Args:
            record (Mapping[str, Any]): Serialized result record.

        Returns:
            Result: The decoded result.

        Raises:
            DecodingError: If ``key`` is missing or empty, a policy/status string
                is unknown, ``priority`` is not an integer, ``provenance`` is not a
                string, or ``data``/``meta`` are not JSON-like.
        """
        if not isinstance(record, Mapping):
            raise DecodingError(f"Result record must be a mapping (got {type(record).__name__})")

        key: Any = record.get("key")
        if not isinstance(key, str) or not key:
            raise DecodingError(f"Result record requires a non-empty 'key' (got {key!r})")

        priority: Any = record.get("priority", DEFAULT_PRIORITY)
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise DecodingError(f"Result {key!r}: 'priority' must be an integer (got {priority!r})")

        provenance: Any = record.get("provenance", DEFAULT_PROVENANCE)
        if not isinstance(provenance, str):
            raise DecodingError(f"Result {key!r}: 'provenance' must be a string")

        meta: Value = normalize_value(record.get("meta") or {}, where=f"{key}.meta")
        if not isinstance(meta, dict):
            raise DecodingError(f"Result {key!r}: 'meta' must be a map")

        return cls(
            key=key,
            data=normalize_value(record.get("data"), where=f"{key}.data"),
            policy=enum_from_value(ConflictPolicy, record.get("policy", ConflictPolicy.MERGE.value)),
            priority=priority,
            provenance=provenance,
            status=enum_from_value(ResultStatus, record.get("status", ResultStatus.OK.value)),
            meta=meta,
        )
