"""Tests for the pipeline exception taxonomy."""

import pytest

from chunkcode.exceptions import (
    ConcatFailure,
    JobCancelled,
    PipelineError,
    PoolTerminated,
    ProbeFailure,
    SegmentFailure,
    UnsupportedFormat,
)


@pytest.mark.parametrize(
    "error",
    [
        UnsupportedFormat("xyz"),
        ProbeFailure("no duration"),
        SegmentFailure(3, "engine exited with code 1"),
        ConcatFailure("engine exited with code 1"),
        JobCancelled("job1"),
    ],
)
def test_job_errors_share_a_base(error) -> None:
    assert isinstance(error, PipelineError)


def test_pool_terminated_is_not_a_job_error() -> None:
    assert not issubclass(PoolTerminated, PipelineError)


def test_unsupported_format_lists_targets() -> None:
    error = UnsupportedFormat("xyz", ["mkv", "mp4"], job_id="job1")

    assert error.target == "xyz"
    assert error.supported == ["mkv", "mp4"]
    assert error.job_id == "job1"
    assert str(error) == "Unsupported target format: 'xyz' (supported: mkv, mp4)"


def test_segment_failure_fields() -> None:
    error = SegmentFailure(3, "engine timed out")

    assert error.index == 3
    assert error.cause == "engine timed out"
    assert error.job_id is None
    assert str(error) == "Segment 3 failed: engine timed out"


def test_messages() -> None:
    assert str(ProbeFailure("empty file")) == "Cannot probe source media: empty file"
    assert str(ConcatFailure("x")) == "Concatenation failed: x"
    assert str(JobCancelled("job1")) == "Job job1 was cancelled"
