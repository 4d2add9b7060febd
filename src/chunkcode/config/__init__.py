"""Configuration module for chunkcode.

Provides layered configuration with precedence: CLI > env > file > defaults.
"""

from chunkcode.config.env import EnvReader
from chunkcode.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    apply_logging_overrides,
    config_summary,
    get_config,
    get_default_config_path,
    load_config_file,
)
from chunkcode.config.models import (
    ChunkcodeConfig,
    LoggingConfig,
    PipelineConfig,
    ToolPathsConfig,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ChunkcodeConfig",
    "ConfigError",
    "EnvReader",
    "LoggingConfig",
    "PipelineConfig",
    "ToolPathsConfig",
    "apply_logging_overrides",
    "config_summary",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
