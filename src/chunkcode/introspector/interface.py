"""DurationProber interface for source media metadata extraction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class MediaMetadata:
    """Container-level metadata of a media file.

    Duration comes from the container's general section, never from an
    individual stream.
    """

    duration_seconds: float
    format_name: str | None = None
    bit_rate: int | None = None
    video_streams: int = 0
    audio_streams: int = 0

    @property
    def has_video(self) -> bool:
        return self.video_streams > 0


class DurationProber(Protocol):
    """Protocol for duration probing implementations.

    Implementations inspect container/track structures of a media file
    without decoding it.
    """

    def probe_file(self, path: Path, source_format: str = "") -> MediaMetadata:
        """Extract container metadata from a media file.

        Args:
            path: Path to the media file.
            source_format: Source format hint, for inputs that need an
                explicit demuxer.

        Returns:
            MediaMetadata with the total duration.

        Raises:
            ProbeFailure: If the duration cannot be determined.
        """
        ...
