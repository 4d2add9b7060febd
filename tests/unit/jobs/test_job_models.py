"""Tests for conversion job data models."""

import pytest

from chunkcode.jobs.models import (
    ConversionRequest,
    JobResult,
    MediaJob,
    Segment,
    SegmentErr,
    SegmentOk,
    SegmentStatus,
)


class TestMediaJobFromRequest:
    """Tests for MediaJob.from_request."""

    def test_normalizes_formats(self) -> None:
        request = ConversionRequest(
            file_bytes=b"data",
            file_name="Clip.MOV",
            declared_mime_type="video/quicktime",
            target_format=".MKV",
        )

        job = MediaJob.from_request(request)

        assert job.source_format == "mov"
        assert job.target_format == "mkv"
        assert job.source_bytes == b"data"
        assert job.file_name == "Clip.MOV"

    def test_mime_type_used_without_known_extension(self) -> None:
        request = ConversionRequest(
            file_bytes=b"data",
            file_name="upload",
            declared_mime_type="video/webm",
            target_format="mp4",
        )

        assert MediaJob.from_request(request).source_format == "webm"

    def test_explicit_source_format_wins(self) -> None:
        request = ConversionRequest(
            file_bytes=b"data",
            file_name="clip.bin",
            declared_mime_type=None,
            target_format="mp4",
            source_format="H264",
        )

        assert MediaJob.from_request(request).source_format == "h264"

    def test_unique_ids(self) -> None:
        request = ConversionRequest(b"", "a.mp4", None, "webm")
        ids = {MediaJob.from_request(request).id for _ in range(20)}
        assert len(ids) == 20


class TestSegment:
    """Tests for Segment."""

    def test_defaults_to_pending(self) -> None:
        segment = Segment(index=0, start_seconds=0.0, duration_seconds=5.0, payload=b"")
        assert segment.status is SegmentStatus.PENDING

    def test_end_seconds(self) -> None:
        segment = Segment(
            index=2, start_seconds=10.0, duration_seconds=2.5, payload=b""
        )
        assert segment.end_seconds == 12.5


class TestResults:
    """Tests for the tagged result types and JobResult."""

    def test_results_are_frozen(self) -> None:
        ok = SegmentOk(index=0, output_bytes=b"x")
        err = SegmentErr(index=1, cause="boom")
        with pytest.raises(AttributeError):
            ok.index = 5  # type: ignore[misc]
        with pytest.raises(AttributeError):
            err.cause = "other"  # type: ignore[misc]

    def test_job_result_defaults(self) -> None:
        result = JobResult(b"out", "clip.webm", "video/webm")
        assert result.segment_count == 0
        assert result.duration_seconds == 0.0
