"""Segmenter: split a probed source into time-bounded segments.

Container sources are cut on timestamps with the engine's stream-copy
demux/mux (no re-encode). Raw elementary streams carry no timestamps to cut
on, so they are sliced into equally sized byte ranges instead.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from chunkcode.core.codecs import BYTE_SLICED_FORMATS, normalize_format
from chunkcode.exceptions import PipelineError
from chunkcode.executor.command import build_segment_cut_command
from chunkcode.executor.interface import Engine
from chunkcode.jobs.models import Segment, SegmentPlan

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SECONDS = 5.0

# Decimal places kept before taking the ceiling, so D / (D / k) gives k
_COUNT_PRECISION = 9

# Containers used for cut segments when the source extension names a muxer
# that cannot hold the source streams (or is unknown)
_CUT_CONTAINERS: dict[str, str] = {
    "": "mkv",
    "m4v": "mp4",
    "mp4v": "mp4",
}


def resolve_chunk_seconds(
    total_seconds: float,
    chunk_seconds: float = DEFAULT_CHUNK_SECONDS,
    chunk_divisor: int | None = None,
) -> float:
    """Pick the chunk duration for a job.

    Args:
        total_seconds: Probed source duration.
        chunk_seconds: Fixed chunk duration.
        chunk_divisor: When set, the source is split into this many equal
            chunks instead (C = D / k).

    Returns:
        Chunk duration in seconds.

    Raises:
        ValueError: If any value is out of range.
    """
    if total_seconds <= 0:
        raise ValueError(f"total_seconds must be positive, got {total_seconds}")
    if chunk_divisor is not None:
        if chunk_divisor < 1:
            raise ValueError(f"chunk_divisor must be >= 1, got {chunk_divisor}")
        return total_seconds / chunk_divisor
    if chunk_seconds <= 0:
        raise ValueError(f"chunk_seconds must be positive, got {chunk_seconds}")
    return chunk_seconds


def plan_segments(total_seconds: float, chunk_seconds: float) -> list[SegmentPlan]:
    """Compute segment bounds for a source.

    N = ceil(D / C). Every segment but the last is exactly C long; the last
    one is D - (N - 1) * C.

    Args:
        total_seconds: Source duration D.
        chunk_seconds: Chunk duration C.

    Returns:
        Plans with contiguous indexes 0..N-1.

    Raises:
        ValueError: If either duration is not positive.

    Example:
        >>> [p.duration_seconds for p in plan_segments(32, 5)]
        [5, 5, 5, 5, 5, 5, 2]
    """
    if total_seconds <= 0:
        raise ValueError(f"total_seconds must be positive, got {total_seconds}")
    if chunk_seconds <= 0:
        raise ValueError(f"chunk_seconds must be positive, got {chunk_seconds}")

    count = max(1, math.ceil(round(total_seconds / chunk_seconds, _COUNT_PRECISION)))
    plans = [
        SegmentPlan(
            index=i, start_seconds=i * chunk_seconds, duration_seconds=chunk_seconds
        )
        for i in range(count - 1)
    ]
    last_start = (count - 1) * chunk_seconds
    plans.append(
        SegmentPlan(
            index=count - 1,
            start_seconds=last_start,
            duration_seconds=total_seconds - last_start,
        )
    )
    return plans


def cut_extension(source_format: str) -> str:
    """Get the file extension used for segments cut from a source."""
    normalized = normalize_format(source_format)
    return _CUT_CONTAINERS.get(normalized, normalized)


def uses_byte_slicing(source_format: str) -> bool:
    """Check if a source format is sliced by bytes instead of timestamps."""
    return normalize_format(source_format) in BYTE_SLICED_FORMATS


def slice_bytes(data: bytes, count: int) -> list[bytes]:
    """Split data into count contiguous slices of near-equal size.

    The remainder bytes go to the last slice; no slice is dropped even when
    data is shorter than count.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    size = len(data) // count
    slices = [data[i * size : (i + 1) * size] for i in range(count - 1)]
    slices.append(data[(count - 1) * size :])
    return slices


class Segmenter:
    """Cuts a source that lives in the job workspace into segments.

    The engine is the job's own engine handle, never a pool slot.
    """

    def __init__(self, engine: Engine, job_id: str | None = None) -> None:
        self.engine = engine
        self.job_id = job_id

    def split(
        self,
        source_name: str,
        source_format: str,
        plans: Sequence[SegmentPlan],
    ) -> list[Segment]:
        """Split the source entry into segments, then delete the source entry.

        Args:
            source_name: Workspace entry holding the full source.
            source_format: Normalized source format.
            plans: Segment bounds from plan_segments().

        Returns:
            Segments in index order, each holding its payload bytes.

        Raises:
            PipelineError: If the engine cannot cut a segment.
            EngineTerminated: If the engine was terminated mid-split.
        """
        if uses_byte_slicing(source_format):
            segments = self._split_bytes(source_name, plans)
        else:
            segments = self._split_time(source_name, source_format, plans)

        self.engine.workspace.discard(source_name)
        logger.debug(
            "Split %s into %d segments",
            source_name,
            len(segments),
        )
        return segments

    def _split_time(
        self,
        source_name: str,
        source_format: str,
        plans: Sequence[SegmentPlan],
    ) -> list[Segment]:
        workspace = self.engine.workspace
        extension = cut_extension(source_format)
        segments = []
        for plan in plans:
            cut_name = f"cut_{plan.index:04d}.{extension}"
            with workspace.scoped(cut_name):
                run = self.engine.exec(
                    build_segment_cut_command(
                        source_name, cut_name, plan.start_seconds, plan.duration_seconds
                    )
                )
                if not run.success:
                    raise PipelineError(
                        f"Cannot cut segment {plan.index}: {run.describe_failure()}",
                        self.job_id,
                    )
                payload = workspace.read_file(cut_name)
            segments.append(
                Segment(
                    index=plan.index,
                    start_seconds=plan.start_seconds,
                    duration_seconds=plan.duration_seconds,
                    payload=payload,
                )
            )
        return segments

    def _split_bytes(
        self, source_name: str, plans: Sequence[SegmentPlan]
    ) -> list[Segment]:
        data = self.engine.workspace.read_file(source_name)
        slices = slice_bytes(data, len(plans))
        return [
            Segment(
                index=plan.index,
                start_seconds=plan.start_seconds,
                duration_seconds=plan.duration_seconds,
                payload=payload,
            )
            for plan, payload in zip(plans, slices)
        ]
