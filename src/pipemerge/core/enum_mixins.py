# topmark:header:start
#
#   project      : PipeMerge
#   file         : enum_mixins.py
#   file_relpath : src/pipemerge/core/enum_mixins.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Generic Enum utilities for PipeMerge (typing-friendly, UI-agnostic).

Enums are the API-level representation of policies and statuses; strings only
appear at the serialization boundary. The helpers here convert between the two.

Provided:
    - ``enum_from_value(enum_cls, raw)``:
        Strict lookup by ``.value``; raises `DecodingError` on miss.
    - ``EnumIntrospectionMixin``:
        Adds ``.value_length`` (cached) for aligned CLI output, plus a
        ``parse()`` classmethod that accepts values and member names.

Example:
    ```python
    from enum import Enum
    from pipemerge.core.enum_mixins import EnumIntrospectionMixin

    class Mode(EnumIntrospectionMixin, str, Enum):
        A = "alpha"
        B = "beta"

    assert Mode.A.value_length == 5
    assert Mode.parse("B") is Mode.B
    ```
"""

from __future__ import annotations

from enum import Enum
from functools import cached_property
from typing import TypeVar

from pipemerge.core.errors import DecodingError

_E = TypeVar("_E", bound=Enum)


def _norm_token(s: str) -> str:
    """Normalize an identifier-like string for case/separator-insensitive matching."""
    return s.strip().lower().replace("-", "_").replace(" ", "_")


def enum_from_value(enum_cls: type[_E], raw: object) -> _E:
    """Return the member of ``enum_cls`` whose ``.value`` equals ``raw``.

    Args:
        enum_cls (type[_E]): The Enum class to search.
        raw (object): Serialized value (normally a lowercase string).

    Returns:
        _E: The matching enum member.

    Raises:
        DecodingError: If ``raw`` is not the value of any member.
    """
    for member in enum_cls:
        if member.value == raw:
            return member
    allowed: str = ", ".join(repr(m.value) for m in enum_cls)
    raise DecodingError(f"Unknown {enum_cls.__name__} value {raw!r} (expected one of {allowed})")


class EnumIntrospectionMixin:
    """Small, UI-agnostic mixin that adds introspection conveniences to string Enums."""

    @cached_property
    def value_length(self) -> int:
        """Maximum length of the enum's ``.value`` strings.

        Returns:
            int: The maximum length among all member ``.value`` strings of the
            enum class that this member belongs to.
        """
        # Pyright doesn't know 'self' is an Enum member; runtime guarantees it.
        return max(len(member.value) for member in type(self))  # type: ignore[attr-defined]

    @classmethod
    def parse(cls: type[_E], raw: object) -> _E:
        """Parse a user-supplied token into an enum member.

        Matching is case-insensitive against both ``.value`` and ``.name``, and
        treats ``-`` and spaces like ``_``.

        Args:
            raw (object): Token to parse (e.g. ``"MERGE"``, ``"overwrite"``).

        Returns:
            _E: The matching enum member.

        Raises:
            DecodingError: If no member matches.
        """
        token: str = _norm_token(str(raw))
        for member in cls:
            if token in (_norm_token(str(member.value)), _norm_token(member.name)):
                return member
        allowed: str = "|".join(str(m.value) for m in cls)
        raise DecodingError(f"Invalid {cls.__name__} {raw!r}: use {allowed}")
