"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (CHUNKCODE_*)
3. Config file (~/.chunkcode/config.toml)
4. Default values

Environment variables:
- CHUNKCODE_CONFIG_PATH: Path to config file (overrides default location)
- CHUNKCODE_WORKERS: Worker pool size
- CHUNKCODE_CHUNK_SECONDS: Fixed chunk duration in seconds
- CHUNKCODE_CHUNK_DIVISOR: Split into this many equal chunks instead
- CHUNKCODE_ENGINE_TIMEOUT: Per-invocation engine timeout in seconds
- CHUNKCODE_TEMP_DIR: Parent directory for workspaces
- CHUNKCODE_MKV_AUDIO_CODEC: aac or mp3
- CHUNKCODE_RAW_VIDEO_CODEC: h264 or hevc
- CHUNKCODE_FFMPEG_PATH: Path to ffmpeg executable
- CHUNKCODE_FFPROBE_PATH: Path to ffprobe executable
- CHUNKCODE_LOG_LEVEL / CHUNKCODE_LOG_FILE / CHUNKCODE_LOG_FORMAT
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from chunkcode.config.env import EnvReader
from chunkcode.config.models import (
    ChunkcodeConfig,
    LoggingConfig,
    PipelineConfig,
    ToolPathsConfig,
)
from chunkcode.config.schema import ConfigFileModel, format_validation_errors

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default config location
DEFAULT_CONFIG_DIR = Path.home() / ".chunkcode"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid.

    Attributes:
        path: The offending config file.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


def _first(*values: T | None) -> T | None:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def get_default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Get the default config file path.

    Can be overridden by CHUNKCODE_CONFIG_PATH environment variable.

    Returns:
        Path to config file.
    """
    env_path = EnvReader(env).get_path("CHUNKCODE_CONFIG_PATH", must_exist=False)
    return env_path if env_path is not None else DEFAULT_CONFIG_FILE


def load_config_file(
    path: Path | None = None, env: Mapping[str, str] | None = None
) -> ConfigFileModel:
    """Load and validate the TOML config file.

    A missing file at the default location is not an error.

    Args:
        path: Path to config file. If None, uses default location.
        env: Environment mapping (None = os.environ).

    Returns:
        Validated file contents. All fields None if no file exists.

    Raises:
        ConfigError: If the file cannot be read, parsed, or validated, or an
            explicitly given path does not exist.
    """
    explicit = path is not None
    if path is None:
        path = get_default_config_path(env)
    path = path.expanduser()

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}", path)
        logger.debug("Config file not found: %s", path)
        return ConfigFileModel()

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", path) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", path) from e

    try:
        model = ConfigFileModel.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid config file {path}: {format_validation_errors(e.errors())}", path
        ) from e

    logger.debug("Loaded config from %s", path)
    return model


def get_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    # CLI overrides (highest precedence)
    workers: int | None = None,
    chunk_seconds: float | None = None,
    chunk_divisor: int | None = None,
    mkv_audio_codec: str | None = None,
    raw_video_codec: str | None = None,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
) -> ChunkcodeConfig:
    """Get chunkcode configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides CHUNKCODE_CONFIG_PATH).
        env: Environment mapping (None = os.environ).
        workers: CLI override for the worker pool size.
        chunk_seconds: CLI override for the fixed chunk duration.
        chunk_divisor: CLI override for the chunk divisor.
        mkv_audio_codec: CLI override for the Matroska audio codec.
        raw_video_codec: CLI override for the raw stream encoder.
        ffmpeg_path: CLI override for ffmpeg path.
        ffprobe_path: CLI override for ffprobe path.

    Returns:
        ChunkcodeConfig with merged configuration.

    Raises:
        ConfigError: If the config file or a merged value is invalid.
    """
    reader = EnvReader(env)
    file_config = load_config_file(config_path, env)
    pipeline_file = file_config.pipeline
    tools_file = file_config.tools
    logging_file = file_config.logging
    defaults = ChunkcodeConfig()

    # A fixed chunk duration given on the command line beats a divisor from
    # anywhere else
    env_divisor = reader.get_int("CHUNKCODE_CHUNK_DIVISOR")
    if chunk_seconds is not None and chunk_divisor is None:
        resolved_divisor = None
    else:
        resolved_divisor = _first(
            chunk_divisor, env_divisor, pipeline_file.chunk_divisor
        )

    try:
        pipeline = PipelineConfig(
            workers=_first(
                workers,
                reader.get_int("CHUNKCODE_WORKERS"),
                pipeline_file.workers,
                defaults.pipeline.workers,
            ),
            chunk_seconds=_first(
                chunk_seconds,
                reader.get_float("CHUNKCODE_CHUNK_SECONDS"),
                pipeline_file.chunk_seconds,
                defaults.pipeline.chunk_seconds,
            ),
            chunk_divisor=resolved_divisor,
            engine_timeout=_first(
                reader.get_float("CHUNKCODE_ENGINE_TIMEOUT"),
                pipeline_file.engine_timeout,
            ),
            temp_directory=_first(
                reader.get_path("CHUNKCODE_TEMP_DIR", must_exist=False),
                pipeline_file.temp_directory,
            ),
            mkv_audio_codec=_first(
                mkv_audio_codec,
                reader.get_str("CHUNKCODE_MKV_AUDIO_CODEC"),
                pipeline_file.mkv_audio_codec,
                defaults.pipeline.mkv_audio_codec,
            ),
            raw_video_codec=_first(
                raw_video_codec,
                reader.get_str("CHUNKCODE_RAW_VIDEO_CODEC"),
                pipeline_file.raw_video_codec,
            ),
        )
        tools = ToolPathsConfig(
            ffmpeg=_first(
                ffmpeg_path,
                reader.get_path("CHUNKCODE_FFMPEG_PATH"),
                tools_file.ffmpeg,
            ),
            ffprobe=_first(
                ffprobe_path,
                reader.get_path("CHUNKCODE_FFPROBE_PATH"),
                tools_file.ffprobe,
            ),
        )
        logging_config = LoggingConfig(
            level=_first(
                reader.get_str("CHUNKCODE_LOG_LEVEL"),
                logging_file.level,
                defaults.logging.level,
            ),
            file=_first(
                reader.get_path("CHUNKCODE_LOG_FILE", must_exist=False),
                logging_file.file,
            ),
            format=_first(
                reader.get_str("CHUNKCODE_LOG_FORMAT"),
                logging_file.format,
                defaults.logging.format,
            ),
            include_stderr=_first(
                logging_file.include_stderr, defaults.logging.include_stderr
            ),
            max_bytes=_first(logging_file.max_bytes, defaults.logging.max_bytes),
            backup_count=_first(
                logging_file.backup_count, defaults.logging.backup_count
            ),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    return ChunkcodeConfig(pipeline=pipeline, tools=tools, logging=logging_config)


def apply_logging_overrides(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    json_format: bool = False,
) -> LoggingConfig:
    """Layer the --log-level, --log-file and --log-json flags over a config.

    The flags sit above every other source, so any flag that was given wins
    over the env and file values already merged into ``base``.

    Raises:
        ConfigError: If the resulting logging config is invalid.
    """
    try:
        return replace(
            base,
            level=_first(level, base.level),
            file=_first(file, base.file),
            format="json" if json_format else base.format,
        )
    except ValueError as e:
        raise ConfigError(f"Invalid logging option: {e}") from e


def config_summary(config: ChunkcodeConfig) -> dict[str, Any]:
    """Flatten the effective configuration for display."""
    pipeline = config.pipeline
    return {
        "workers": pipeline.workers,
        "chunk_seconds": pipeline.chunk_seconds,
        "chunk_divisor": pipeline.chunk_divisor,
        "engine_timeout": pipeline.engine_timeout,
        "mkv_audio_codec": pipeline.mkv_audio_codec,
        "raw_video_codec": pipeline.raw_video_codec,
        "ffmpeg": str(config.tools.ffmpeg) if config.tools.ffmpeg else None,
        "ffprobe": str(config.tools.ffprobe) if config.tools.ffprobe else None,
    }
