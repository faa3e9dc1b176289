# topmark:header:start
#
#   project      : PipeMerge
#   file         : markdown.py
#   file_relpath : src/pipemerge/rendering/markdown.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Markdown rendering helpers (Click-free)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def escape_cell(text: str) -> str:
    """Escape pipes and newlines so ``text`` fits in one table cell."""
    return text.replace("|", "\\|").replace("\n", " ")


def render_markdown_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    align: Mapping[int, str] | None = None,
) -> str:
    """Render a GitHub-flavoured Markdown table with padded columns.

    Args:
        headers (Sequence[str]): Column headers.
        rows (Sequence[Sequence[str]]): Rows, each as long as ``headers``.
        align (Mapping[int, str] | None): Column index to ``"left"`` (default),
            ``"right"`` or ``"center"``.

    Returns:
        str: The table, ending with a newline (empty when there are no headers).

    Raises:
        ValueError: If any row length differs from the number of headers.
    """
    if not headers:
        return ""
    ncols: int = len(headers)
    if any(len(r) != ncols for r in rows):
        raise ValueError("All rows must have the same number of columns as headers")

    widths: list[int] = [len(h) for h in headers]
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))

    def _sep_for(i: int) -> str:
        style: str = (align or {}).get(i, "left").lower()
        w: int = max(3, widths[i])
        if style == "right":
            return "-" * (w - 1) + ":"
        if style == "center":
            return ":" + "-" * (w - 2) + ":"
        return "-" * w

    def _line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(f"{cell:<{max(3, widths[i])}}" for i, cell in enumerate(cells)) + " |"

    lines: list[str] = [_line(headers), "| " + " | ".join(_sep_for(i) for i in range(ncols)) + " |"]
    lines.extend(_line(r) for r in rows)
    return "\n".join(lines) + "\n"
