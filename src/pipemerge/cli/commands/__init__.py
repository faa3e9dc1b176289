# topmark:header:start
#
#   project      : PipeMerge
#   file         : __init__.py
#   file_relpath : src/pipemerge/cli/commands/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PipeMerge CLI subcommands."""
