"""Unit tests for ffprobe output parsing."""

import pytest

from chunkcode.exceptions import ProbeFailure
from chunkcode.introspector.parsers import (
    parse_duration,
    parse_ffprobe_output,
    parse_int,
)


def _ffprobe_output(duration: str | None = "32.040000", **format_fields) -> dict:
    format_info = {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", **format_fields}
    if duration is not None:
        format_info["duration"] = duration
    return {
        "streams": [
            {"index": 0, "codec_type": "video", "codec_name": "h264"},
            {"index": 1, "codec_type": "audio", "codec_name": "aac"},
            {
                "index": 2,
                "codec_type": "video",
                "codec_name": "mjpeg",
                "disposition": {"attached_pic": 1},
            },
        ],
        "format": format_info,
    }


class TestParseDuration:
    """Tests for parse_duration and parse_int."""

    @pytest.mark.parametrize(
        "value,expected",
        [("3600.000", 3600.0), (12.5, 12.5), ("N/A", None), (None, None)],
    )
    def test_parse_duration(self, value, expected) -> None:
        assert parse_duration(value) == expected

    def test_parse_int(self) -> None:
        assert parse_int("128000") == 128000
        assert parse_int("N/A") is None
        assert parse_int(None) is None


class TestParseFfprobeOutput:
    """Tests for parse_ffprobe_output."""

    def test_reads_general_duration(self) -> None:
        """Duration comes from the format (general) section."""
        metadata = parse_ffprobe_output(_ffprobe_output(bit_rate="1048576"))

        assert metadata.duration_seconds == pytest.approx(32.04)
        assert metadata.format_name == "mov,mp4,m4a,3gp,3g2,mj2"
        assert metadata.bit_rate == 1048576

    def test_counts_streams_without_cover_art(self) -> None:
        """Attached pictures are not counted as video streams."""
        metadata = parse_ffprobe_output(_ffprobe_output())

        assert metadata.video_streams == 1
        assert metadata.audio_streams == 1
        assert metadata.has_video

    def test_missing_general_track(self) -> None:
        with pytest.raises(ProbeFailure, match="no general track"):
            parse_ffprobe_output({"streams": []}, "clip.mp4")

    def test_missing_duration(self) -> None:
        with pytest.raises(ProbeFailure, match="no duration field"):
            parse_ffprobe_output(_ffprobe_output(duration=None))

    def test_unparseable_duration(self) -> None:
        with pytest.raises(ProbeFailure, match="no duration field"):
            parse_ffprobe_output(_ffprobe_output(duration="N/A"))

    def test_zero_duration(self) -> None:
        with pytest.raises(ProbeFailure, match="non-positive duration"):
            parse_ffprobe_output(_ffprobe_output(duration="0.000000"))
