# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge package.

PipeMerge runs an ordered sequence of steps over a shared execution context.
Each step contributes a keyed `Result`; results that share a key are combined
by a pluggable conflict resolver (merge, overwrite, skip or custom), so that
independent stages can build up one final structured record.
"""

from __future__ import annotations
