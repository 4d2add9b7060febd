"""Configuration data models.

This module defines dataclasses for chunkcode configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path

VALID_MKV_AUDIO_CODECS = frozenset({"aac", "mp3"})
VALID_RAW_VIDEO_CODECS = frozenset({"h264", "hevc"})


@dataclass
class PipelineConfig:
    """Configuration for the chunked transcoding pipeline."""

    # Number of pool slots (isolated engine handles)
    workers: int = 3

    # Fixed chunk duration in seconds
    chunk_seconds: float = 5.0

    # When set, split the source into this many equal chunks instead
    chunk_divisor: int | None = None

    # Per-invocation engine timeout in seconds (None = no limit)
    engine_timeout: float | None = None

    # Parent directory for workspaces (None = system temp)
    temp_directory: Path | None = None

    # Audio codec for Matroska targets: aac or mp3
    mkv_audio_codec: str = "aac"

    # Force the encoder for raw elementary stream targets: h264 or hevc
    raw_video_codec: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.chunk_seconds <= 0:
            raise ValueError(
                f"chunk_seconds must be positive, got {self.chunk_seconds}"
            )
        if self.chunk_divisor is not None and self.chunk_divisor < 1:
            raise ValueError(
                f"chunk_divisor must be at least 1, got {self.chunk_divisor}"
            )
        if self.engine_timeout is not None and self.engine_timeout <= 0:
            raise ValueError(
                f"engine_timeout must be positive, got {self.engine_timeout}"
            )
        if self.mkv_audio_codec not in VALID_MKV_AUDIO_CODECS:
            raise ValueError(
                f"mkv_audio_codec must be one of {sorted(VALID_MKV_AUDIO_CODECS)}, "
                f"got {self.mkv_audio_codec}"
            )
        if (
            self.raw_video_codec is not None
            and self.raw_video_codec not in VALID_RAW_VIDEO_CODECS
        ):
            raise ValueError(
                f"raw_video_codec must be one of {sorted(VALID_RAW_VIDEO_CODECS)}, "
                f"got {self.raw_video_codec}"
            )


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ChunkcodeConfig:
    """Main configuration container for chunkcode.

    Aggregates all configuration sections.
    """

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Get configured path for a tool.

        Args:
            tool_name: Name of the tool (ffmpeg, ffprobe).

        Returns:
            Configured path or None if not configured.
        """
        return getattr(self.tools, tool_name.lower(), None)
