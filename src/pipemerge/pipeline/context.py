# topmark:header:start
#
#   project      : PipeMerge
#   file         : context.py
#   file_relpath : src/pipemerge/pipeline/context.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Execution context for a PipeMerge run.

An [`ExecutionContext`][pipemerge.pipeline.context.ExecutionContext] owns three
things for the duration of one run:

payload
    The run's input. Copied once at construction and never mutated; accessors
    hand out copies.
results
    ``key -> Result`` store. Submitting a result whose key is already present
    invokes the conflict resolver exactly once and stores what it returns.
meta
    Run-scoped metadata with whole-map replace semantics. The reserved
    ``"errors"`` entry is an ordered list of ``{step, message, trace}`` records
    appended when a step fails.

Serialized record form (snapshot/replay):

    {"payload": <Value>, "results": {"<key>": <Result record>, ...}, "meta": {...}}

A context is owned by one `Runner.run()` call at a time; it is not safe to share
between concurrent runs.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pipemerge.config.logging import get_logger
from pipemerge.constants import ERRORS_META_KEY
from pipemerge.core.errors import DecodingError
from pipemerge.core.values import copy_value, get_path, normalize_value
from pipemerge.pipeline.resolution import ConflictResolver
from pipemerge.pipeline.result import Result

if TYPE_CHECKING:
    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.core.values import Value, ValueMap

logger: PipemergeLogger = get_logger(__name__)

__all__: list[str] = [
    "ExecutionContext",
]


class ExecutionContext:
    """Payload, merged results and metadata for one run.

    Args:
        payload (Any): The run's input value (JSON-like). Defaults to ``{}``.
        results (Mapping[str, Result] | Iterable[Result] | None): Results to seed
            the store with (e.g. when replaying a snapshot). Seeded results are
            stored as-is, without conflict resolution.
        meta (Mapping[str, Any] | None): Initial run metadata.
        resolver (ConflictResolver | None): Resolver used on key collisions.
            Defaults to a `ConflictResolver` with an empty custom registry.

    Raises:
        DecodingError: If ``payload`` or ``meta`` are not JSON-like.
        ValueError: If seeded results repeat a key or are filed under a key that
            differs from their own.
    """

    def __init__(
        self,
        payload: Any = None,
        results: Mapping[str, Result] | Iterable[Result] | None = None,
        meta: Mapping[str, Any] | None = None,
        resolver: ConflictResolver | None = None,
    ) -> None:
        self._payload: Value = normalize_value({} if payload is None else payload, where="payload")
        self._results: dict[str, Result] = {}
        self._meta: ValueMap = self._normalize_meta(meta or {})
        self.resolver: ConflictResolver = resolver or ConflictResolver()

        if isinstance(results, Mapping):
            for key, result in results.items():
                if key != result.key:
                    raise ValueError(f"Result {result.key!r} filed under mismatching key {key!r}")
                self._seed(result)
        elif results is not None:
            for result in results:
                self._seed(result)

    @classmethod
    def bootstrap(cls, payload: Any, *, resolver: ConflictResolver | None = None) -> ExecutionContext:
        """Create a fresh context with no results and empty metadata.

        Args:
            payload (Any): The run's input value.
            resolver (ConflictResolver | None): Resolver used on key collisions.

        Returns:
            ExecutionContext: Newly created context instance.
        """
        return cls(payload=payload, resolver=resolver)

    def _seed(self, result: Result) -> None:
        if result.key in self._results:
            raise ValueError(f"Duplicate seeded result for key {result.key!r}")
        self._results[result.key] = result.with_changes()

    @staticmethod
    def _normalize_meta(meta: Mapping[str, Any]) -> ValueMap:
        normalized: Value = normalize_value(meta, where="meta")
        if not isinstance(normalized, dict):
            raise DecodingError("meta must be a map")
        return normalized

    # --- Payload ---------------------------------------------------------------

    @property
    def payload(self) -> Value:
        """Return a copy of the run's input payload."""
        return copy_value(self._payload)

    def get_content(self, path: str, default: Any = None) -> Any:
        """Look up a dot-separated ``path`` inside the payload.

        Args:
            path (str): Path such as ``"user.email"``.
            default (Any): Returned when any segment is absent.

        Returns:
            Any: A copy of the value found, or ``default``.
        """
        found: Any = get_path(self._payload, path, default)
        return default if found is default else copy_value(found)

    # --- Results ---------------------------------------------------------------

    @property
    def results(self) -> Mapping[str, Result]:
        """Return a read-only snapshot of the ``key -> Result`` store.

        The results are detached copies; changing their containers does not
        affect the store.
        """
        detached: dict[str, Result] = {key: r.with_changes() for key, r in self._results.items()}
        return MappingProxyType(detached)

    def set_result(self, result: Result) -> None:
        """Submit ``result``, resolving a collision with a stored result if needed.

        Args:
            result (Result): The result to store.

        Raises:
            TypeError: If ``result`` is not a `Result`.
            ConflictConfigurationError: Propagated from the resolver for
                misconfigured ``custom`` results.
        """
        if not isinstance(result, Result):
            raise TypeError(f"Expected a Result, got {type(result).__name__}")
        # Stored results never share containers with a caller
        incoming: Result = result.with_changes()
        existing: Result | None = self._results.get(incoming.key)
        if existing is None:
            self._results[incoming.key] = incoming
            return
        resolved: Result = self.resolver.resolve(existing.with_changes(), incoming, self)
        logger.debug(
            "Resolved %r (%s): priority %d -> %d",
            result.key,
            result.policy.value,
            existing.priority,
            resolved.priority,
        )
        self._results[incoming.key] = resolved.with_changes()

    def get_result(self, key: str) -> Result | None:
        """Return a detached copy of the result stored under ``key``, or ``None``."""
        stored: Result | None = self._results.get(key)
        return None if stored is None else stored.with_changes()

    def has_result(self, key: str) -> bool:
        """Return True if a result is stored under ``key``."""
        return key in self._results

    def build(self) -> dict[str, Value]:
        """Project the store to ``key -> data``, discarding merge metadata.

        Returns:
            dict[str, Value]: Copies of every result's data, by key.
        """
        return {key: copy_value(result.data) for key, result in self._results.items()}

    # --- Metadata --------------------------------------------------------------

    def get_meta(self) -> ValueMap:
        """Return a copy of the run metadata.

        Callers that want to change metadata must read, modify, and write the
        whole map back with `set_meta`.
        """
        return {k: copy_value(v) for k, v in self._meta.items()}

    def set_meta(self, meta: Mapping[str, Any]) -> None:
        """Replace the run metadata wholesale (no deep merge).

        Args:
            meta (Mapping[str, Any]): The new metadata map.

        Raises:
            DecodingError: If ``meta`` is not a JSON-like map.
        """
        self._meta = self._normalize_meta(meta)

    @property
    def errors(self) -> list[ValueMap]:
        """Return a copy of the accumulated step error records."""
        raw: Value = self._meta.get(ERRORS_META_KEY)
        if not isinstance(raw, list):
            return []
        return [copy_value(item) for item in raw if isinstance(item, dict)]  # type: ignore[misc]

    @property
    def has_errors(self) -> bool:
        """True if at least one step failed during the run."""
        return bool(self._meta.get(ERRORS_META_KEY))

    def add_error(self, step: str, message: str, trace: str = "") -> None:
        """Append a ``{step, message, trace}`` record to ``meta["errors"]``.

        This is a read-modify-write of the whole metadata map.

        Args:
            step (str): Identifier of the failing step.
            message (str): Error message.
            trace (str): Formatted traceback.
        """
        meta: ValueMap = self.get_meta()
        errors: Value = meta.get(ERRORS_META_KEY)
        records: list[Value] = errors if isinstance(errors, list) else []
        records.append({"step": step, "message": message, "trace": trace})
        meta[ERRORS_META_KEY] = records
        self.set_meta(meta)

    # --- Serialization ---------------------------------------------------------

    def to_dict(self) -> dict[str, Value]:
        """Return the serializable record of this context.

        Returns:
            dict[str, Value]: ``{"payload", "results", "meta"}`` where results are
            `Result.to_dict` records keyed by result key.
        """
        return {
            "payload": copy_value(self._payload),
            "results": {key: result.to_dict() for key, result in self._results.items()},
            "meta": self.get_meta(),
        }

    @classmethod
    def from_dict(
        cls,
        record: Mapping[str, Any],
        *,
        resolver: ConflictResolver | None = None,
    ) -> ExecutionContext:
        """Rehydrate a context from its serializable record.

        Args:
            record (Mapping[str, Any]): Record produced by `to_dict` (or read from
                storage). ``payload`` defaults to ``{}``, ``results`` and ``meta``
                to empty maps.
            resolver (ConflictResolver | None): Resolver for the rehydrated context.

        Returns:
            ExecutionContext: The rehydrated context.

        Raises:
            DecodingError: If the record or any nested result record is malformed.
        """
        if not isinstance(record, Mapping):
            raise DecodingError(f"Context record must be a map (got {type(record).__name__})")

        raw_results: Any = record.get("results") or {}
        if not isinstance(raw_results, Mapping):
            raise DecodingError("Context record 'results' must be a map")
        raw_meta: Any = record.get("meta") or {}
        if not isinstance(raw_meta, Mapping):
            raise DecodingError("Context record 'meta' must be a map")

        results: dict[str, Result] = {}
        for key, raw in raw_results.items():
            result: Result = Result.from_dict(raw)
            if result.key != key:
                raise DecodingError(f"Result record {result.key!r} filed under key {key!r}")
            results[key] = result

        return cls(payload=record.get("payload"), results=results, meta=raw_meta, resolver=resolver)

    def to_json(self, *, indent: int | None = None) -> str:
        """Return the serializable record as a JSON document."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str, *, resolver: ConflictResolver | None = None) -> ExecutionContext:
        """Rehydrate a context from a JSON document produced by `to_json`.

        Raises:
            DecodingError: If ``text`` is not valid JSON or not a valid record.
        """
        try:
            record: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodingError(f"Invalid context JSON: {exc}") from exc
        return cls.from_dict(record, resolver=resolver)

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(results={sorted(self._results)!r}, "
            f"errors={len(self.errors)})"
        )
