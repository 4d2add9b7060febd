"""Exception taxonomy for conversion jobs.

This module provides specific exception types for each stage of the chunked
transcoding pipeline, enabling callers to handle different failure modes
appropriately. A job rejects with exactly one of these.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for conversion pipeline errors.

    All job-related exceptions inherit from this class, allowing callers
    to catch all job errors with a single except clause if desired.

    Attributes:
        job_id: The ID of the job that failed, when known.
    """

    def __init__(self, message: str, job_id: str | None = None) -> None:
        self.job_id = job_id
        super().__init__(message)


class UnsupportedFormat(PipelineError):
    """Raised when no codec strategy is registered for the requested target.

    Detected before any segment work is scheduled.

    Attributes:
        target: The requested target format.
        supported: Target formats that are registered.
    """

    def __init__(
        self,
        target: str,
        supported: list[str] | None = None,
        job_id: str | None = None,
    ) -> None:
        self.target = target
        self.supported = supported or []
        message = f"Unsupported target format: {target!r}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message, job_id)


class ProbeFailure(PipelineError):
    """Raised when the duration or metadata of the source is unavailable.

    Attributes:
        reason: Why probing failed.
    """

    def __init__(self, reason: str, job_id: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"Cannot probe source media: {reason}", job_id)


class SegmentFailure(PipelineError):
    """Raised when the codec engine failed while transcoding a segment.

    Attributes:
        index: Index of the failed segment.
        cause: Description of the engine failure.
    """

    def __init__(self, index: int, cause: str, job_id: str | None = None) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"Segment {index} failed: {cause}", job_id)


class ConcatFailure(PipelineError):
    """Raised when the final stream-copy join failed.

    Only reachable after every segment succeeded.

    Attributes:
        cause: Description of the concat failure.
    """

    def __init__(self, cause: str, job_id: str | None = None) -> None:
        self.cause = cause
        super().__init__(f"Concatenation failed: {cause}", job_id)


class JobCancelled(PipelineError):
    """Raised when a running job was cancelled before it settled."""

    def __init__(self, job_id: str | None = None) -> None:
        super().__init__(f"Job {job_id} was cancelled", job_id)


class PoolTerminated(Exception):
    """Resolves futures abandoned by WorkerPool.terminate_all()."""
