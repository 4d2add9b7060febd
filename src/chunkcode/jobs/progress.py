"""Progress reporting for conversion jobs.

The orchestrator reports segment progress through a ProgressReporter; the
CLI shows it on stderr and tests use the null reporter.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Protocol for progress reporting during a conversion job.

    Items are segments, identified by their index.
    """

    def on_start(self, total: int, message: str = "") -> None:
        """Initialize progress tracking with the segment count.

        Args:
            total: Number of segments the job was split into.
            message: Optional description of the job.
        """
        ...

    def on_item_start(self, index: int) -> None:
        """Signal that a segment was dispatched to a pool slot."""
        ...

    def on_item_complete(self, index: int, success: bool) -> None:
        """Signal that a segment settled.

        Args:
            index: Index of the settled segment.
            success: Whether the segment transcoded successfully.
        """
        ...

    def on_complete(self, success: bool = True) -> None:
        """Signal that the job settled."""
        ...


class StderrProgressReporter:
    """Progress reporter that writes to stderr with in-place updates.

    Safe to call from pool slot threads.
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialize stderr progress reporter.

        Args:
            enabled: If False, suppresses output (for JSON mode or tests).
        """
        self.enabled = enabled
        self.label = ""
        self.total = 0
        self.completed = 0
        self.active = 0
        self.failed = 0
        self._lock = threading.Lock()

    def on_start(self, total: int, message: str = "") -> None:
        """Initialize with the segment count."""
        with self._lock:
            self.label = message
            self.total = total
            self.completed = 0
            self.active = 0
            self.failed = 0
        self._update_display()

    def on_item_start(self, index: int) -> None:
        """Mark a segment as transcoding."""
        with self._lock:
            self.active += 1
        self._update_display()

    def on_item_complete(self, index: int, success: bool) -> None:
        """Mark a segment as settled."""
        with self._lock:
            if self.active < 1:
                logger.warning(
                    "Progress tracking: segment %d completed without starting "
                    "(completed=%d, total=%d)",
                    index,
                    self.completed,
                    self.total,
                )
            else:
                self.active -= 1

            self.completed += 1
            if not success:
                self.failed += 1
        self._update_display()

    def on_complete(self, success: bool = True) -> None:
        """Complete progress display with newline."""
        if self.enabled:
            sys.stderr.write("\n")
            sys.stderr.flush()

    def _update_display(self) -> None:
        """Update progress display on stderr."""
        if not self.enabled:
            return

        with self._lock:
            prefix = f"{self.label}: " if self.label else ""
            msg = (
                f"\r{prefix}segments {self.completed}/{self.total} "
                f"[{self.active} active"
            )
            if self.failed:
                msg += f", {self.failed} failed"
            msg += "]"

        sys.stderr.write(msg)
        sys.stderr.flush()


class NullProgressReporter:
    """No-op progress reporter for library use and tests."""

    def on_start(self, total: int, message: str = "") -> None:
        """No-op."""
        pass

    def on_item_start(self, index: int) -> None:
        """No-op."""
        pass

    def on_item_complete(self, index: int, success: bool) -> None:
        """No-op."""
        pass

    def on_complete(self, success: bool = True) -> None:
        """No-op."""
        pass
