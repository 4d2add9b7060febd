"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors (config, input)
    20-29: Target/file errors
    30-39: Tool/dependency errors
    40-49: Operation errors
    50-59: Analysis errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for chunkcode CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2  # Ctrl+C / SIGINT (conventionally 130, but we use 2 for simplicity)

    # Validation errors (10-19)
    CONFIG_ERROR = 11
    UNSUPPORTED_FORMAT = 12

    # Target/file errors (20-29)
    TARGET_NOT_FOUND = 20
    OUTPUT_EXISTS = 21

    # Tool/dependency errors (30-39)
    TOOL_NOT_AVAILABLE = 30

    # Operation errors (40-49)
    SEGMENT_FAILURE = 40
    CONCAT_FAILURE = 41

    # Analysis errors (50-59)
    PROBE_FAILURE = 50
