"""Unit tests for FFprobeIntrospector."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from chunkcode.exceptions import ProbeFailure
from chunkcode.executor.interface import ToolNotAvailableError
from chunkcode.introspector.ffprobe import FFprobeIntrospector

FFPROBE = Path("/usr/bin/ffprobe")
PROBE_JSON = json.dumps({"streams": [], "format": {"duration": "30.000000"}})


@pytest.fixture
def introspector():
    with patch("chunkcode.introspector.ffprobe.find_tool", return_value=FFPROBE):
        yield FFprobeIntrospector()


@pytest.fixture
def media_file(temp_dir: Path) -> Path:
    path = temp_dir / "clip.mp4"
    path.write_bytes(b"\x00" * 16)
    return path


class TestFFprobeIntrospector:
    """Tests for FFprobeIntrospector.probe_file."""

    def test_unavailable_tool(self) -> None:
        with patch("chunkcode.introspector.ffprobe.find_tool", return_value=None):
            with pytest.raises(ToolNotAvailableError):
                FFprobeIntrospector()

    def test_probe_file(self, introspector, media_file: Path) -> None:
        result = MagicMock(stdout=PROBE_JSON)
        with patch(
            "chunkcode.introspector.ffprobe.subprocess.run", return_value=result
        ) as mock_run:
            metadata = introspector.probe_file(media_file)

        assert metadata.duration_seconds == 30.0
        cmd = mock_run.call_args.args[0]
        assert cmd[0] == str(FFPROBE)
        assert "-show_format" in cmd
        assert cmd[-1] == str(media_file)
        assert "-f" not in cmd

    def test_raw_source_forces_demuxer(self, introspector, media_file: Path) -> None:
        result = MagicMock(stdout=PROBE_JSON)
        with patch(
            "chunkcode.introspector.ffprobe.subprocess.run", return_value=result
        ) as mock_run:
            introspector.probe_file(media_file, "264")

        cmd = mock_run.call_args.args[0]
        assert cmd[cmd.index("-f") + 1] == "h264"

    def test_missing_file(self, introspector, temp_dir: Path) -> None:
        with pytest.raises(ProbeFailure, match="file not found"):
            introspector.probe_file(temp_dir / "missing.mp4")

    def test_ffprobe_error(self, introspector, media_file: Path) -> None:
        error = subprocess.CalledProcessError(
            1, "ffprobe", stderr="moov atom not found"
        )
        with patch("chunkcode.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(ProbeFailure, match="moov atom not found"):
                introspector.probe_file(media_file)

    def test_ffprobe_timeout(self, introspector, media_file: Path) -> None:
        error = subprocess.TimeoutExpired("ffprobe", 60)
        with patch("chunkcode.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(ProbeFailure, match="timed out"):
                introspector.probe_file(media_file)

    def test_invalid_json(self, introspector, media_file: Path) -> None:
        result = MagicMock(stdout="not json")
        target = "chunkcode.introspector.ffprobe.subprocess.run"
        with patch(target, return_value=result):
            with pytest.raises(ProbeFailure, match="invalid ffprobe output"):
                introspector.probe_file(media_file)
