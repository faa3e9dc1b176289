# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/core/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Core primitives shared across PipeMerge (errors, enum helpers, JSON-like values)."""

from __future__ import annotations
