"""Slot context for structured logging.

Provides context propagation for pool slot threads using contextvars,
enabling automatic injection of slot_id, job_id and segment_index into log
records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

# Context variables for slot identification
_slot_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "slot_id", default=None
)
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_segment_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "segment_index", default=None
)


def set_slot_context(
    slot_id: int | None,
    job_id: str | None = None,
    segment_index: int | None = None,
) -> None:
    """Set the current slot context.

    Args:
        slot_id: Pool slot number, or None outside the pool.
        job_id: ID of the job being processed.
        segment_index: Index of the segment being processed.
    """
    _slot_id.set(slot_id)
    _job_id.set(job_id)
    _segment_index.set(segment_index)


def clear_slot_context() -> None:
    """Clear the current slot context."""
    _slot_id.set(None)
    _job_id.set(None)
    _segment_index.set(None)


@contextmanager
def slot_context(
    slot_id: int | None,
    job_id: str | None = None,
    segment_index: int | None = None,
) -> Generator[None, None, None]:
    """Context manager for slot processing context.

    Sets the context on entry and restores the previous one on exit.

    Example:
        with slot_context(1, "a1b2c3", 3):
            logger.info("Transcoding")  # Includes [S01:a1b2c3:seg0003]
    """
    old_slot_id = _slot_id.get()
    old_job_id = _job_id.get()
    old_segment_index = _segment_index.get()
    try:
        set_slot_context(slot_id, job_id, segment_index)
        yield
    finally:
        _slot_id.set(old_slot_id)
        _job_id.set(old_job_id)
        _segment_index.set(old_segment_index)


def get_slot_context() -> tuple[int | None, str | None, int | None]:
    """Get current slot context.

    Returns:
        Tuple of (slot_id, job_id, segment_index), any may be None.
    """
    return _slot_id.get(), _job_id.get(), _segment_index.get()


def format_worker_tag(
    slot_id: int | None, job_id: str | None, segment_index: int | None
) -> str:
    """Build the compact text-format tag, e.g. "[S01:a1b2c3:seg0003] "."""
    parts = []
    if slot_id is not None:
        parts.append(f"S{slot_id:02d}")
    if job_id:
        parts.append(job_id)
    if segment_index is not None:
        parts.append(f"seg{segment_index:04d}")
    return f"[{':'.join(parts)}] " if parts else ""


class WorkerContextFilter(logging.Filter):
    """Logging filter that injects slot context into log records.

    Adds slot_id, job_id and segment_index attributes to LogRecord from
    contextvars, plus a formatted worker_tag for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        slot_id, job_id, segment_index = get_slot_context()

        record.slot_id = slot_id
        record.job_id = job_id
        record.segment_index = segment_index
        record.worker_tag = format_worker_tag(slot_id, job_id, segment_index)

        return True  # Never filter out records
