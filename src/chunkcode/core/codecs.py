"""Centralized codec registry.

This module is the single source of truth for format knowledge throughout
chunkcode, including:
- Codec groups (formats that share compatible audio/video codecs)
- Encode strategies registered per target format
- Output extensions and mime types for targets
- Source format resolution from file names and declared mime types

Everything here is pure data and lookup functions. Argument assembly and
validation live in chunkcode.executor.command.
"""

from __future__ import annotations

from dataclasses import dataclass

# =============================================================================
# Codec Groups
# =============================================================================
# Formats in the same group can be converted into one another by stream copy.

CODEC_GROUPS: dict[str, frozenset[str]] = {
    # Video containers
    "h264_aac": frozenset({"mp4", "m4v", "mp4v", "mov", "3gp", "3g2"}),
    "xvid_mp3": frozenset({"avi"}),
    "vp8_vorbis": frozenset({"webm"}),
    "h264_aac_mp3": frozenset({"mkv"}),
    "wmv": frozenset({"wmv"}),
    "flv": frozenset({"flv"}),
    "theora_vorbis": frozenset({"ogv"}),
    # Raw elementary streams (no container). h264 and hevc stay in separate groups
    # because copying an h264 stream into an hevc target yields an unplayable file.
    "raw_h264": frozenset({"h264", "264"}),
    "raw_hevc": frozenset({"hevc", "265"}),
    # Audio-only formats
    "mp3": frozenset({"mp3"}),
    "pcm": frozenset({"wav"}),
    "vorbis": frozenset({"ogg"}),
    "aac": frozenset({"aac", "m4a"}),
    "wma": frozenset({"wma"}),
    "flac": frozenset({"flac"}),
}

RAW_VIDEO_GROUPS: frozenset[str] = frozenset({"raw_h264", "raw_hevc"})

AUDIO_GROUPS: frozenset[str] = frozenset({"mp3", "pcm", "vorbis", "aac", "wma", "flac"})

# Raw elementary streams have no timestamps to cut on, so they are sliced by bytes
BYTE_SLICED_FORMATS: frozenset[str] = frozenset(
    fmt for group in RAW_VIDEO_GROUPS for fmt in CODEC_GROUPS[group]
)


# =============================================================================
# Encode Strategies
# =============================================================================


@dataclass(frozen=True)
class EncodeStrategy:
    """Concrete encode settings registered for a target format."""

    name: str
    video_args: tuple[str, ...]
    audio_args: tuple[str, ...]
    extra_args: tuple[str, ...] = ()


STREAM_COPY = EncodeStrategy(
    name="stream_copy",
    video_args=("-c:v", "copy"),
    audio_args=("-c:a", "copy"),
)

H264_AAC = EncodeStrategy("h264_aac", ("-c:v", "libx264"), ("-c:a", "aac"))
MPEG4_AAC = EncodeStrategy("mpeg4_aac", ("-c:v", "mpeg4"), ("-c:a", "aac"))
XVID_MP3 = EncodeStrategy(
    "xvid_mp3", ("-c:v", "mpeg4", "-vtag", "xvid"), ("-c:a", "libmp3lame")
)
VP8_VORBIS = EncodeStrategy("vp8_vorbis", ("-c:v", "libvpx"), ("-c:a", "libvorbis"))
H264_AAC_MKV = EncodeStrategy("h264_aac_mkv", ("-c:v", "libx264"), ("-c:a", "aac"))
WMV2_WMA = EncodeStrategy("wmv2_wma", ("-c:v", "wmv2"), ("-c:a", "wmav2"))
FLV_MP3 = EncodeStrategy("flv_mp3", ("-c:v", "flv"), ("-c:a", "libmp3lame"))
THEORA_VORBIS = EncodeStrategy(
    "theora_vorbis", ("-c:v", "libtheora"), ("-c:a", "libvorbis")
)
RAW_H264 = EncodeStrategy("raw_h264", ("-c:v", "libx264"), ("-an",))
RAW_HEVC = EncodeStrategy("raw_hevc", ("-c:v", "libx265"), ("-an",))

# Low-bandwidth profile for 3GPP phones
MOBILE_H264_AAC = EncodeStrategy(
    "mobile_h264_aac",
    ("-c:v", "libx264", "-r", "20", "-s", "352x288", "-b:v", "400k"),
    ("-c:a", "aac", "-ac", "1", "-ar", "8000", "-b:a", "24k"),
)


def _audio_only(name: str, encoder: str) -> EncodeStrategy:
    return EncodeStrategy(name, ("-vn",), ("-c:a", encoder))


TARGET_STRATEGIES: dict[str, EncodeStrategy] = {
    "mp4": H264_AAC,
    "m4v": H264_AAC,
    "mov": H264_AAC,
    "mp4v": MPEG4_AAC,
    "3gp": MOBILE_H264_AAC,
    "3g2": MOBILE_H264_AAC,
    "avi": XVID_MP3,
    "webm": VP8_VORBIS,
    "mkv": H264_AAC_MKV,
    "wmv": WMV2_WMA,
    "flv": FLV_MP3,
    "ogv": THEORA_VORBIS,
    "h264": RAW_H264,
    "264": RAW_H264,
    "hevc": RAW_HEVC,
    "265": RAW_HEVC,
    "mp3": _audio_only("mp3", "libmp3lame"),
    "wav": _audio_only("wav", "pcm_s16le"),
    "ogg": _audio_only("ogg", "libvorbis"),
    "aac": _audio_only("aac", "aac"),
    "m4a": _audio_only("m4a", "aac"),
    "wma": _audio_only("wma", "wmav2"),
    "flac": _audio_only("flac", "flac"),
}

# Raw video encoders selectable by name
RAW_VIDEO_ENCODERS: dict[str, tuple[str, ...]] = {
    "h264": ("-c:v", "libx264"),
    "hevc": ("-c:v", "libx265"),
}


# =============================================================================
# Output Naming
# =============================================================================

# Targets whose file extension differs from the format name
OUTPUT_EXTENSIONS: dict[str, str] = {
    "mp4v": "mp4",
}

TARGET_MIME_TYPES: dict[str, str] = {
    "mp4": "video/mp4",
    "m4v": "video/x-m4v",
    "mp4v": "video/mp4",
    "mov": "video/quicktime",
    "3gp": "video/3gpp",
    "3g2": "video/3gpp2",
    "avi": "video/x-msvideo",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "ogv": "video/ogg",
    "h264": "video/h264",
    "264": "video/h264",
    "hevc": "video/h265",
    "265": "video/h265",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "wma": "audio/x-ms-wma",
    "flac": "audio/flac",
}

# Declared mime types that map to a source format
MIME_TYPE_FORMATS: dict[str, str] = {
    "video/mp4": "mp4",
    "video/x-m4v": "m4v",
    "video/quicktime": "mov",
    "video/3gpp": "3gp",
    "video/3gpp2": "3g2",
    "video/x-msvideo": "avi",
    "video/avi": "avi",
    "video/webm": "webm",
    "video/x-matroska": "mkv",
    "video/x-ms-wmv": "wmv",
    "video/x-flv": "flv",
    "video/ogg": "ogv",
    "video/h264": "h264",
    "video/h265": "hevc",
    "video/hevc": "hevc",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/ogg": "ogg",
    "audio/aac": "aac",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/x-ms-wma": "wma",
    "audio/flac": "flac",
    "audio/x-flac": "flac",
}

# Demuxer names ffmpeg needs when a raw stream cannot be autodetected
RAW_DEMUXERS: dict[str, str] = {
    "h264": "h264",
    "264": "h264",
    "hevc": "hevc",
    "265": "hevc",
}


# =============================================================================
# Lookup Functions
# =============================================================================


def normalize_format(fmt: str | None) -> str:
    """Normalize a format name or file extension for comparison.

    Args:
        fmt: Format name (e.g. "MKV", ".mp4") or None.

    Returns:
        Lowercase format name without a leading dot.
    """
    if fmt is None:
        return ""
    return fmt.strip().lstrip(".").casefold()


def codec_group_of(fmt: str | None) -> str | None:
    """Get the codec group a format belongs to.

    Args:
        fmt: Format name.

    Returns:
        Group name, or None if the format belongs to no group.
    """
    normalized = normalize_format(fmt)
    for group, members in CODEC_GROUPS.items():
        if normalized in members:
            return group
    return None


def is_same_codec_group(source: str | None, target: str | None) -> bool:
    """Check if both formats belong to the same codec group."""
    source_group = codec_group_of(source)
    return source_group is not None and source_group == codec_group_of(target)


def is_audio_format(fmt: str | None) -> bool:
    """Check if a format is audio-only."""
    return codec_group_of(fmt) in AUDIO_GROUPS


def get_target_strategy(target: str | None) -> EncodeStrategy | None:
    """Get the encode strategy registered for a target format."""
    return TARGET_STRATEGIES.get(normalize_format(target))


def supported_targets() -> list[str]:
    """Get all registered target formats, sorted."""
    return sorted(TARGET_STRATEGIES)


def output_extension(target: str) -> str:
    """Get the file extension written for a target format."""
    normalized = normalize_format(target)
    return OUTPUT_EXTENSIONS.get(normalized, normalized)


def mime_type_for(target: str) -> str:
    """Get the mime type of output produced for a target format."""
    normalized = normalize_format(target)
    if normalized in TARGET_MIME_TYPES:
        return TARGET_MIME_TYPES[normalized]
    prefix = "audio" if is_audio_format(normalized) else "video"
    return f"{prefix}/{normalized}"


def resolve_source_format(
    file_name: str,
    declared_mime_type: str | None = None,
    hint: str | None = None,
) -> str:
    """Determine the source format of an input file.

    Precedence: explicit hint, file extension (when it is a known format),
    declared mime type, then the raw file extension.

    Args:
        file_name: Name of the input file.
        declared_mime_type: Mime type declared by the uploader.
        hint: Explicit source format hint.

    Returns:
        Normalized source format, or "" if nothing is known.
    """
    if hint:
        return normalize_format(hint)

    extension = ""
    if "." in file_name:
        extension = normalize_format(file_name.rsplit(".", 1)[1])
    if codec_group_of(extension) is not None:
        return extension

    if declared_mime_type:
        mime = declared_mime_type.split(";", 1)[0].strip().casefold()
        if mime in MIME_TYPE_FORMATS:
            return MIME_TYPE_FORMATS[mime]

    return extension
