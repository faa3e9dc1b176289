# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/config/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Configuration layer for PipeMerge (logging setup and TOML pipeline definitions)."""

from __future__ import annotations

from pipemerge.config.model import HistorySettings, NotifierSettings, PipelineConfig

__all__: list[str] = [
    "HistorySettings",
    "NotifierSettings",
    "PipelineConfig",
]
