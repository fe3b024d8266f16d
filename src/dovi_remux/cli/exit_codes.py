"""Exit codes for dovi-remux CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Configuration errors
    30-39: Tool/dependency errors
    40-49: Operation errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for dovi-remux CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    INTERRUPTED = 2  # SIGINT/SIGTERM cancelled the batch

    # Configuration errors (10-19)
    CONFIG_ERROR = 11

    # Tool/dependency errors (30-39)
    FFPROBE_NOT_FOUND = 32

    # Operation errors (40-49)
    OPERATION_FAILED = 40  # at least one item failed
    CATALOG_ERROR = 42
