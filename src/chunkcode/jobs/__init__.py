"""Conversion jobs: segmenting, the worker pool and reassembly."""

from chunkcode.jobs.models import (
    ConversionRequest,
    JobResult,
    MediaJob,
    Segment,
    SegmentErr,
    SegmentOk,
    SegmentPlan,
    SegmentResult,
    SegmentStatus,
)
from chunkcode.jobs.orchestrator import JobOrchestrator, convert
from chunkcode.jobs.pool import PoolSlot, WorkerPool
from chunkcode.jobs.progress import (
    NullProgressReporter,
    ProgressReporter,
    StderrProgressReporter,
)
from chunkcode.jobs.reassembler import Reassembler
from chunkcode.jobs.segmenter import Segmenter, plan_segments, resolve_chunk_seconds
from chunkcode.jobs.transcoder import SegmentTranscoder

__all__ = [
    "ConversionRequest",
    "JobOrchestrator",
    "JobResult",
    "MediaJob",
    "NullProgressReporter",
    "PoolSlot",
    "ProgressReporter",
    "Reassembler",
    "Segment",
    "SegmentErr",
    "SegmentOk",
    "SegmentPlan",
    "SegmentResult",
    "SegmentStatus",
    "SegmentTranscoder",
    "Segmenter",
    "StderrProgressReporter",
    "WorkerPool",
    "convert",
    "plan_segments",
    "resolve_chunk_seconds",
]
