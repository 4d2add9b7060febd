"""Core utilities package.

Pure functions and data with no external dependencies: the codec registry
and file naming helpers.
"""

from chunkcode.core.codecs import (
    BYTE_SLICED_FORMATS,
    CODEC_GROUPS,
    STREAM_COPY,
    TARGET_STRATEGIES,
    EncodeStrategy,
    codec_group_of,
    get_target_strategy,
    is_audio_format,
    is_same_codec_group,
    mime_type_for,
    normalize_format,
    output_extension,
    resolve_source_format,
    supported_targets,
)
from chunkcode.core.naming import (
    compress_file_name,
    derive_output_name,
    file_extension,
    strip_extension,
)

__all__ = [
    # Codecs
    "BYTE_SLICED_FORMATS",
    "CODEC_GROUPS",
    "STREAM_COPY",
    "TARGET_STRATEGIES",
    "EncodeStrategy",
    "codec_group_of",
    "get_target_strategy",
    "is_audio_format",
    "is_same_codec_group",
    "mime_type_for",
    "normalize_format",
    "output_extension",
    "resolve_source_format",
    "supported_targets",
    # Naming
    "compress_file_name",
    "derive_output_name",
    "file_extension",
    "strip_extension",
]
