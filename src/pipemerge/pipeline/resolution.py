# topmark:header:start
#
#   project      : PipeMerge
#   file         : resolution.py
#   file_relpath : src/pipemerge/pipeline/resolution.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Conflict resolution for results that share a key.

`ConflictResolver.resolve(existing, incoming, context)` dispatches on the
*incoming* result's policy:

| policy      | behavior                                                  |
|-------------|-----------------------------------------------------------|
| ``merge``     | recursive, priority-aware deep merge (see `deep_merge`)   |
| ``overwrite`` | return ``incoming`` unchanged                             |
| ``skip``      | return ``existing`` unchanged                             |
| ``custom``    | delegate to the resolver registered under ``meta.resolver`` |

Deep merge rules, for stored data ``A`` (priority ``pA``) and incoming data
``B`` (priority ``pB``):

1. Two maps merge key by key; two lists merge position by position.
   Any other pairing (a scalar on either side, or a list against a map) is
   replaced wholesale: ``B`` if ``pB > pA``, otherwise ``A``.
2. Map keys present on both sides whose values are collections of the same
   kind are merged recursively with the same priorities. Other shared keys are
   contested: the higher priority wins; on a tie the two values are combined
   with `combine_values`. Keys only present in ``B`` are added.
3. List positions present on both sides whose values are collections of the
   same kind are merged recursively; every other item of ``B`` is appended.
   List items are cumulative and never contested.

Custom resolvers are looked up in an explicit `ResolverRegistry` injected at
construction, so resolution never depends on global state.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

from pipemerge.config.logging import get_logger
from pipemerge.constants import PROVENANCE_SEPARATOR, RESOLVER_META_KEY
from pipemerge.core.errors import ConflictConfigurationError
from pipemerge.core.values import (
    contains_value,
    copy_value,
    is_collection,
    is_list,
    is_map,
    values_equal,
)
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.status import ConflictPolicy

if TYPE_CHECKING:
    from pipemerge.config.logging import PipemergeLogger
    from pipemerge.core.values import Value
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import ResolverLike

logger: PipemergeLogger = get_logger(__name__)

__all__: list[str] = [
    "ConflictResolver",
    "ResolverRegistry",
    "combine_values",
    "deep_merge",
    "join_provenance",
    "merge_results",
]


# --- Value-level merge ---------------------------------------------------------


def _same_kind(a: Value, b: Value) -> bool:
    """Return True if both values are maps or both are lists."""
    return (is_map(a) and is_map(b)) or (is_list(a) and is_list(b))


def combine_values(a: Value, b: Value) -> Value:
    """Combine two equally-ranked values into one.

    - Two lists: de-duplicated union, ``a``'s items first, then new items of ``b``.
    - A list and a scalar: the scalar joins the list unless already present.
    - Two equal values: ``a``.
    - Two different values: the pair ``[a, b]``.

    Equality is JSON equality (see `values_equal`): ``true`` and ``1`` differ.

    Args:
        a (Value): Stored value.
        b (Value): Incoming value.

    Returns:
        Value: The combined value (independent of the inputs).
    """
    if is_list(a) and is_list(b):
        union: list[Value] = [copy_value(x) for x in a]
        for item in b:
            if not contains_value(union, item):
                union.append(copy_value(item))
        return union
    if is_list(a) and not is_collection(b):
        return [copy_value(x) for x in a] + ([] if contains_value(a, b) else [b])
    if not is_collection(a) and is_list(b):
        head: list[Value] = [a]
        return head + [copy_value(x) for x in b if not contains_value(head, x)]
    if values_equal(a, b):
        return copy_value(a)
    return [copy_value(a), copy_value(b)]


def _merge_maps(a: dict[str, Value], b: dict[str, Value], pa: int, pb: int) -> dict[str, Value]:
    merged: dict[str, Value] = {k: copy_value(v) for k, v in a.items()}
    for key, b_val in b.items():
        if key not in a:
            merged[key] = copy_value(b_val)
            continue
        a_val: Value = a[key]
        if _same_kind(a_val, b_val):
            merged[key] = deep_merge(a_val, b_val, pa, pb)
        elif pb > pa:
            logger.trace("merge: key %r taken from incoming (%d > %d)", key, pb, pa)
            merged[key] = copy_value(b_val)
        elif pb == pa:
            merged[key] = combine_values(a_val, b_val)
            logger.trace("merge: key %r combined at priority %d", key, pa)
        # pb < pa: keep the stored value
    return merged


def _merge_lists(a: list[Value], b: list[Value], pa: int, pb: int) -> list[Value]:
    merged: list[Value] = [copy_value(v) for v in a]
    for index, b_val in enumerate(b):
        if index < len(a) and _same_kind(a[index], b_val):
            merged[index] = deep_merge(a[index], b_val, pa, pb)
        else:
            merged.append(copy_value(b_val))
    return merged


def deep_merge(a: Value, b: Value, pa: int, pb: int) -> Value:
    """Merge incoming value ``b`` into stored value ``a``.

    Args:
        a (Value): Stored value.
        b (Value): Incoming value.
        pa (int): Priority of the stored result.
        pb (int): Priority of the incoming result.

    Returns:
        Value: A new merged value; neither input is modified.
    """
    if is_map(a) and is_map(b):
        return _merge_maps(a, b, pa, pb)
    if is_list(a) and is_list(b):
        return _merge_lists(a, b, pa, pb)
    # A non-collection (or mismatched collection) never partially merges
    return copy_value(b) if pb > pa else copy_value(a)


def join_provenance(a: str, b: str) -> str:
    """Concatenate two provenance trails with ``" + "``, skipping blank sides."""
    parts: list[str] = [p.strip() for p in (a, b) if p and p.strip()]
    return PROVENANCE_SEPARATOR.join(parts)


def merge_results(existing: Result, incoming: Result) -> Result:
    """Deep-merge two results into a new ``merge``-policy result.

    Args:
        existing (Result): The stored result.
        incoming (Result): The newly submitted result.

    Returns:
        Result: Keyed like ``existing``, carrying the merged data, the higher of
        the two priorities and the joined provenance.
    """
    return Result(
        key=existing.key,
        data=deep_merge(existing.data, incoming.data, existing.priority, incoming.priority),
        policy=ConflictPolicy.MERGE,
        priority=max(existing.priority, incoming.priority),
        provenance=join_provenance(existing.provenance, incoming.provenance),
    )


# --- Resolver registry ---------------------------------------------------------


class ResolverRegistry(Mapping[str, "ResolverLike"]):
    """Explicit name -> resolver mapping used for ``custom`` policy dispatch.

    Resolvers are objects with a ``resolve(existing, incoming, context)``
    method (see `pipemerge.pipeline.contracts.ResolverLike`).
    """

    def __init__(self, resolvers: Mapping[str, ResolverLike] | None = None) -> None:
        self._resolvers: dict[str, ResolverLike] = {}
        for name, resolver in (resolvers or {}).items():
            self.register(name, resolver)

    def register(self, name: str, resolver: ResolverLike) -> ResolverRegistry:
        """Register ``resolver`` under ``name`` (replacing any previous entry).

        Args:
            name (str): Identifier referenced from ``Result.meta["resolver"]``.
            resolver (ResolverLike): Object exposing a callable ``resolve``.

        Returns:
            ResolverRegistry: ``self``, for chaining.

        Raises:
            ValueError: If ``name`` is empty.
            TypeError: If ``resolver`` has no callable ``resolve`` attribute.
        """
        if not name:
            raise ValueError("Resolver name must be a non-empty string")
        if not callable(getattr(resolver, "resolve", None)):
            raise TypeError(f"Resolver {name!r} must define a callable 'resolve' method")
        logger.debug("Registering custom resolver %r: %s", name, type(resolver).__name__)
        self._resolvers[name] = resolver
        return self

    def unregister(self, name: str) -> None:
        """Remove ``name`` from the registry; unknown names are ignored."""
        self._resolvers.pop(name, None)

    def names(self) -> tuple[str, ...]:
        """Return all registered resolver names (sorted)."""
        return tuple(sorted(self._resolvers))

    def __getitem__(self, name: str) -> ResolverLike:
        return self._resolvers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolvers)

    def __len__(self) -> int:
        return len(self._resolvers)


# --- Dispatcher ----------------------------------------------------------------


class ConflictResolver:
    """Resolve a key collision between a stored and an incoming result.

    Args:
        registry (Mapping[str, ResolverLike] | None): Custom resolvers available
            to results with the ``custom`` policy. A plain mapping is wrapped in a
            `ResolverRegistry`.
    """

    def __init__(self, registry: Mapping[str, ResolverLike] | None = None) -> None:
        if isinstance(registry, ResolverRegistry):
            self.registry: ResolverRegistry = registry
        else:
            self.registry = ResolverRegistry(registry)

    def resolve(self, existing: Result, incoming: Result, context: ExecutionContext) -> Result:
        """Return the result that replaces ``existing`` under its key.

        Args:
            existing (Result): Result currently stored under the key.
            incoming (Result): Newly submitted result for the same key.
            context (ExecutionContext): The context being updated; passed through to
                custom resolvers.

        Returns:
            Result: ``incoming`` for ``overwrite``, ``existing`` for ``skip``, a new
            merged result for ``merge``, or whatever the custom resolver returns.

        Raises:
            ConflictConfigurationError: For ``custom`` results whose resolver is
                missing, unregistered, or returns something other than a `Result`.
        """
        policy: ConflictPolicy = incoming.policy
        logger.trace("resolve %r with policy %s", incoming.key, policy.value)
        if policy is ConflictPolicy.OVERWRITE:
            return incoming
        if policy is ConflictPolicy.SKIP:
            return existing
        if policy is ConflictPolicy.CUSTOM:
            return self._custom(existing, incoming, context)
        return merge_results(existing, incoming)

    def _custom(self, existing: Result, incoming: Result, context: ExecutionContext) -> Result:
        raw_id: Value = incoming.meta.get(RESOLVER_META_KEY)
        if not isinstance(raw_id, str) or not raw_id:
            raise ConflictConfigurationError(
                f"Custom resolver not provided for result {incoming.key!r} "
                f"(meta[{RESOLVER_META_KEY!r}] = {raw_id!r})"
            )
        resolver: ResolverLike | None = self.registry.get(raw_id)
        if resolver is None:
            known: str = ", ".join(self.registry.names()) or "none"
            raise ConflictConfigurationError(
                f"Custom resolver {raw_id!r} for result {incoming.key!r} is not registered "
                f"(known: {known})"
            )
        resolved: object = resolver.resolve(existing, incoming, context)
        if not isinstance(resolved, Result):
            raise ConflictConfigurationError(
                f"Custom resolver {raw_id!r} returned {type(resolved).__name__}, expected Result"
            )
        return resolved
