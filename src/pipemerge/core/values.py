# topmark:header:start
#
#   project      : PipeMerge
#   file         : values.py
#   file_relpath : src/pipemerge/core/values.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""JSON-like value model used for payloads and result data.

A `Value` is one of ``None``, ``bool``, ``int``, ``float``, ``str``, a ``list`` of
values (positional, cumulative on merge) or a ``dict`` with ``str`` keys (semantic
keys, contested on merge). The list/dict split is the tag the merge algorithm
dispatches on; tuples are accepted on input and normalized to lists.

Helpers in this module never mutate their inputs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias, TypeGuard, Union

from pipemerge.core.errors import DecodingError

Scalar: TypeAlias = Union[None, bool, int, float, str]
Value: TypeAlias = Union[Scalar, list["Value"], dict[str, "Value"]]
ValueMap: TypeAlias = dict[str, Value]

_MISSING: Any = object()


def is_map(value: object) -> TypeGuard[dict[str, Value]]:
    """Return True if ``value`` is a keyed (map) collection."""
    return isinstance(value, dict)


def is_list(value: object) -> TypeGuard[list[Value]]:
    """Return True if ``value`` is a positional (list) collection."""
    return isinstance(value, list)


def is_collection(value: object) -> bool:
    """Return True if ``value`` is a map or a list."""
    return isinstance(value, (dict, list))


def copy_value(value: Value) -> Value:
    """Return a structural copy of a JSON-like value.

    Scalars are returned as-is (they are immutable); containers are rebuilt so
    that callers never share mutable state with the source.

    Args:
        value (Value): The value to copy.

    Returns:
        Value: An independent copy.
    """
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(v) for v in value]
    return value


def values_equal(a: Value, b: Value) -> bool:
    """Return True if two values are equal under JSON semantics.

    Unlike ``==``, booleans never equal numbers: ``true`` and ``1`` (or
    ``false`` and ``0``) are different values, at any nesting depth.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(values_equal(v, b[k]) for k, v in a.items())
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


def contains_value(items: list[Value], value: Value) -> bool:
    """Return True if ``items`` holds an element `values_equal` to ``value``."""
    return any(values_equal(item, value) for item in items)


def normalize_value(value: object, *, where: str = "value") -> Value:
    """Validate ``value`` as JSON-like and return a normalized copy.

    Tuples become lists and mapping types become plain dicts. Used when
    decoding records and when steps hand arbitrary Python data to a `Result`.

    Args:
        value (object): Candidate value.
        where (str): Location used in error messages (e.g. ``"results.email.data"``).

    Returns:
        Value: A normalized, independent copy.

    Raises:
        DecodingError: If ``value`` (or a nested item) is not JSON-like, or a
            map key is not a string.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        out: dict[str, Value] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise DecodingError(f"{where}: map keys must be strings (got {k!r})")
            out[k] = normalize_value(v, where=f"{where}.{k}")
        return out
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [normalize_value(v, where=f"{where}[{i}]") for i, v in enumerate(value)]
    raise DecodingError(f"{where}: unsupported value type {type(value).__name__}")


def get_path(value: Value, path: str, default: Any = None) -> Any:
    """Look up a dot-separated path inside a nested value.

    ``"user.email"`` reaches ``value["user"]["email"]``; numeric segments index
    into lists (``"tags.0"``). An empty path returns ``value`` itself.

    Args:
        value (Value): Root value.
        path (str): Dot-separated path.
        default (Any): Returned when any segment is absent.

    Returns:
        Any: The value found at ``path`` or ``default``.
    """
    if path == "":
        return value
    current: Any = value
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment, _MISSING)
        elif isinstance(current, list) and segment.isdigit():
            index: int = int(segment)
            current = current[index] if index < len(current) else _MISSING
        else:
            return default
        if current is _MISSING:
            return default
    return current
