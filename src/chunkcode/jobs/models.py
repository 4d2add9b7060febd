"""Data models for conversion jobs.

The boundary contract with the upload collaborator is ConversionRequest in,
JobResult out. Everything else lives for the duration of a single job.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from chunkcode.core.codecs import normalize_format, resolve_source_format


class SegmentStatus(Enum):
    """Lifecycle status of a segment."""

    PENDING = "pending"
    TRANSCODING = "transcoding"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionRequest:
    """Input contract from the upload collaborator."""

    file_bytes: bytes
    file_name: str
    declared_mime_type: str | None
    target_format: str
    source_format: str | None = None
    """Optional explicit source format, overriding name/mime detection."""


@dataclass
class MediaJob:
    """A conversion job; owns every entity created downstream."""

    source_bytes: bytes
    source_format: str
    target_format: str
    mime_type: str | None
    file_name: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @classmethod
    def from_request(cls, request: ConversionRequest) -> MediaJob:
        """Create a job from a conversion request.

        Args:
            request: The incoming request.

        Returns:
            New MediaJob with normalized source and target formats.
        """
        return cls(
            source_bytes=request.file_bytes,
            source_format=resolve_source_format(
                request.file_name,
                request.declared_mime_type,
                request.source_format,
            ),
            target_format=normalize_format(request.target_format),
            mime_type=request.declared_mime_type,
            file_name=request.file_name,
        )


@dataclass(frozen=True)
class SegmentPlan:
    """Time bounds of one segment, before any bytes are cut."""

    index: int
    start_seconds: float
    duration_seconds: float


@dataclass
class Segment:
    """A contiguous time-bounded slice of the source media.

    Ordering by index is load-bearing for reassembly and is never inferred
    from completion time.
    """

    index: int
    start_seconds: float
    duration_seconds: float
    payload: bytes
    status: SegmentStatus = SegmentStatus.PENDING

    @property
    def end_seconds(self) -> float:
        """End of the segment on the source timeline."""
        return self.start_seconds + self.duration_seconds


@dataclass(frozen=True)
class SegmentOk:
    """A segment transcoded successfully."""

    index: int
    output_bytes: bytes


@dataclass(frozen=True)
class SegmentErr:
    """A segment failed in the codec engine."""

    index: int
    cause: str


SegmentResult = SegmentOk | SegmentErr


@dataclass(frozen=True)
class JobResult:
    """Output contract on success."""

    output_bytes: bytes
    output_name: str
    mime_type: str
    segment_count: int = 0
    duration_seconds: float = 0.0
