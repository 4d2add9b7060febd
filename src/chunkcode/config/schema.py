"""Pydantic models for validating the TOML config file.

The file is user-edited, so unknown keys are rejected instead of ignored.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PipelineFileModel(BaseModel):
    """[pipeline] section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    workers: int | None = Field(default=None, ge=1)
    chunk_seconds: float | None = Field(default=None, gt=0)
    chunk_divisor: int | None = Field(default=None, ge=1)
    engine_timeout: float | None = Field(default=None, gt=0)
    temp_directory: Path | None = None
    mkv_audio_codec: Literal["aac", "mp3"] | None = None
    raw_video_codec: Literal["h264", "hevc"] | None = None

    @field_validator("mkv_audio_codec", "raw_video_codec", mode="before")
    @classmethod
    def casefold_codec(cls, v: str | None) -> str | None:
        """Casefold codec names for case-insensitive matching."""
        if isinstance(v, str):
            return v.casefold()
        return v


class ToolsFileModel(BaseModel):
    """[tools] section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


class LoggingFileModel(BaseModel):
    """[logging] section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    level: Literal["debug", "info", "warning", "error"] | None = None
    file: Path | None = None
    format: Literal["text", "json"] | None = None
    include_stderr: bool | None = None
    max_bytes: int | None = Field(default=None, ge=1)
    backup_count: int | None = Field(default=None, ge=0)

    @field_validator("level", "format", mode="before")
    @classmethod
    def casefold_choice(cls, v: str | None) -> str | None:
        """Casefold choices for case-insensitive matching."""
        if isinstance(v, str):
            return v.casefold()
        return v


class ConfigFileModel(BaseModel):
    """Top-level config file layout."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pipeline: PipelineFileModel = Field(default_factory=PipelineFileModel)
    tools: ToolsFileModel = Field(default_factory=ToolsFileModel)
    logging: LoggingFileModel = Field(default_factory=LoggingFileModel)


def format_validation_errors(errors: list[dict]) -> str:
    """Format pydantic error dicts as "section.key: message" lines."""
    lines = []
    for error in errors:
        loc = error.get("loc", ())
        field_path = ".".join(str(part) for part in loc) if loc else "root"
        lines.append(f"{field_path}: {error.get('msg', 'Validation error')}")
    return "; ".join(lines)
