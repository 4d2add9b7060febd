"""FFprobe-based implementation of the DurationProber protocol."""

import json
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from chunkcode.exceptions import ProbeFailure
from chunkcode.executor.command import input_format_args
from chunkcode.executor.interface import ToolNotAvailableError, find_tool
from chunkcode.introspector.interface import MediaMetadata
from chunkcode.introspector.parsers import parse_ffprobe_output


class FFprobeIntrospector:
    """ffprobe-based implementation of the DurationProber protocol.

    Reads container metadata with a single ffprobe invocation; nothing is
    decoded and no throwaway ffmpeg run is needed.
    """

    DEFAULT_TIMEOUT: int = 60

    def __init__(
        self, ffprobe_path: Path | None = None, timeout: int | None = None
    ) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not provided,
                ffprobe is looked up in PATH.
            timeout: Probe timeout in seconds. None uses DEFAULT_TIMEOUT.

        Raises:
            ToolNotAvailableError: If ffprobe is not available.
        """
        resolved = find_tool("ffprobe", ffprobe_path)
        if resolved is None:
            raise ToolNotAvailableError("ffprobe")
        self._ffprobe_path = resolved
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    def probe_file(self, path: Path, source_format: str = "") -> MediaMetadata:
        """Extract container metadata from a media file.

        Args:
            path: Path to the media file.
            source_format: Source format hint for raw elementary streams.

        Returns:
            MediaMetadata with the total duration.

        Raises:
            ProbeFailure: If the file cannot be probed or has no duration.
        """
        if not path.exists():
            raise ProbeFailure(f"file not found: {path}")

        try:
            data = self._run_ffprobe(path, source_format)
        except subprocess.TimeoutExpired as e:
            raise ProbeFailure(f"ffprobe timed out after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
            raise ProbeFailure(f"ffprobe failed: {detail}") from e
        except json.JSONDecodeError as e:
            raise ProbeFailure(f"invalid ffprobe output: {e}") from e

        return parse_ffprobe_output(data, path.name)

    def _run_ffprobe(self, path: Path, source_format: str) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            json.JSONDecodeError: If output is not valid JSON.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path is validated
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                *input_format_args(source_format),
                "-print_format",
                "json",
                "-show_format",
                "-show_streams",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",  # Handle non-UTF8 characters by replacing them
            check=True,
            timeout=self._timeout,  # Prevent hangs on corrupted files
        )
        return json.loads(result.stdout)
