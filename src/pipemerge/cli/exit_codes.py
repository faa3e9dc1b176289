# topmark:header:start
#
#   project      : PipeMerge
#   file         : exit_codes.py
#   file_relpath : src/pipemerge/cli/exit_codes.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exit codes for the PipeMerge CLI.

PipeMerge aligns with the BSD `sysexits` convention where practical. The one
deliberate divergence is `STEP_ERRORS=2`: the pipeline ran to completion but at
least one step failed and was recorded in ``meta["errors"]``. Click also uses
2 for its own usage errors, so tests must assert ``result.exception`` to tell
the two apart.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Standardized exit codes for the PipeMerge CLI.

    Attributes:
        SUCCESS: The run finished without step errors.
        FAILURE: Generic failure (non-specific error).
        STEP_ERRORS: The run finished but collected step errors.
        USAGE_ERROR: Command-line invocation error. Mirrors BSD ``EX_USAGE (64)``.
        DECODING_ERROR: Malformed payload, snapshot or result record.
            Mirrors BSD ``EX_DATAERR (65)``.
        FILE_NOT_FOUND: Input path does not exist. Mirrors BSD ``EX_NOINPUT (66)``.
        PIPELINE_ERROR: The run was aborted (e.g. a custom-policy result without
            a usable resolver). Mirrors BSD ``EX_SOFTWARE (70)``.
        CONFIG_ERROR: Invalid pipeline definition. Mirrors BSD ``EX_CONFIG (78)``.
    """

    SUCCESS = 0
    FAILURE = 1
    STEP_ERRORS = 2  # deliberate divergence from sysexits; see module docstring

    USAGE_ERROR = 64  # EX_USAGE
    DECODING_ERROR = 65  # EX_DATAERR
    FILE_NOT_FOUND = 66  # EX_NOINPUT
    PIPELINE_ERROR = 70  # EX_SOFTWARE
    CONFIG_ERROR = 78  # EX_CONFIG
