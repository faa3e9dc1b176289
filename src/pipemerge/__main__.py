# topmark:header:start
#
#   project      : PipeMerge
#   file         : __main__.py
#   file_relpath : src/pipemerge/__main__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Module entry point for running PipeMerge via ``python -m pipemerge``.

Delegates to :func:`pipemerge.cli.main.cli`, the same entry point used by the
``pipemerge`` console script.

Examples:
    Run a configured pipeline using the module interface::

        python -m pipemerge run pipemerge.toml --payload input.json
"""

from __future__ import annotations

from pipemerge.cli.main import cli

if __name__ == "__main__":
    cli()
