"""Structured logging module for chunkcode.

Provides configurable logging with JSON format support and file rotation.
Includes slot context support for the parallel worker pool.
"""

from chunkcode.logging.config import build_formatter, configure_logging
from chunkcode.logging.context import (
    WorkerContextFilter,
    clear_slot_context,
    get_slot_context,
    set_slot_context,
    slot_context,
)
from chunkcode.logging.handlers import JSONFormatter, SlotTextFormatter

__all__ = [
    "JSONFormatter",
    "SlotTextFormatter",
    "WorkerContextFilter",
    "build_formatter",
    "clear_slot_context",
    "configure_logging",
    "get_slot_context",
    "set_slot_context",
    "slot_context",
]
