# topmark:header:start
#
#   project      : PipeMerge
#   file         : constants.py
#   file_relpath : src/pipemerge/constants.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge Constants."""

from __future__ import annotations

from importlib.metadata import version as get_version

PIPEMERGE_VERSION: str = get_version("pipemerge")

# Defaults applied to a `Result` when the producing step does not set them
DEFAULT_PRIORITY: int = 10
DEFAULT_PROVENANCE: str = ""

# Reserved keys
ERRORS_META_KEY: str = "errors"
RESOLVER_META_KEY: str = "resolver"
RUN_ID_META_KEY: str = "run_id"

PROVENANCE_SEPARATOR: str = " + "

# Pipeline configuration
PIPEMERGE_TOML_NAME: str = "pipemerge.toml"
PYPROJECT_TOML_NAME: str = "pyproject.toml"
PYPROJECT_TOOL_SECTION: str = "pipemerge"
DEFAULT_DATABASE_URL: str = "sqlite:///pipemerge-history.db"
DEFAULT_NOTIFIER_CHANNEL: str = "pipemerge.notify"

VALUE_NOT_SET: str = "<not set>"
