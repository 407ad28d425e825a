"""Standard exit codes for sqlbridge.

Exit codes follow Unix conventions; values 0-7 match the usual CLI layout
and the engine-specific failures get their own codes above that.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for sqlbridge commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    OUTPUT_ERROR = 4
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    QUERY_ERROR = 8
    VALIDATION_ERROR = 9
    UNSUPPORTED_ENGINE = 10
    CANCELLED = 11
