"""Parsers for ffprobe JSON output."""

from __future__ import annotations

import logging

from chunkcode.exceptions import ProbeFailure
from chunkcode.introspector.interface import MediaMetadata

logger = logging.getLogger(__name__)


def parse_duration(value: str | float | None) -> float | None:
    """Parse a duration value from ffprobe into seconds.

    Args:
        value: Duration from ffprobe (e.g., "3600.000", "N/A") or None.

    Returns:
        Duration in seconds as float, or None if parsing fails.
    """
    if value is None:
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def parse_int(value: str | int | None) -> int | None:
    """Parse an optional integer field from ffprobe."""
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def parse_ffprobe_output(data: dict, label: str = "source") -> MediaMetadata:
    """Parse ffprobe JSON output into MediaMetadata.

    The duration is read from the "format" section, ffprobe's equivalent of
    the General track.

    Args:
        data: Parsed ffprobe JSON output.
        label: Name of the probed input, for error messages.

    Returns:
        MediaMetadata with the container duration.

    Raises:
        ProbeFailure: If there is no format section or no usable duration.
    """
    format_info = data.get("format")
    if not isinstance(format_info, dict):
        raise ProbeFailure(f"no general track found in {label}")

    raw_duration = format_info.get("duration")
    duration = parse_duration(raw_duration)
    if duration is None:
        raise ProbeFailure(f"no duration field in general track of {label}")
    if duration <= 0:
        raise ProbeFailure(f"non-positive duration {raw_duration!r} in {label}")

    streams = data.get("streams") or []
    video_streams = sum(
        1
        for s in streams
        if s.get("codec_type") == "video"
        and not s.get("disposition", {}).get("attached_pic")
    )
    audio_streams = sum(1 for s in streams if s.get("codec_type") == "audio")

    metadata = MediaMetadata(
        duration_seconds=duration,
        format_name=format_info.get("format_name"),
        bit_rate=parse_int(format_info.get("bit_rate")),
        video_streams=video_streams,
        audio_streams=audio_streams,
    )
    logger.debug(
        "Probed %s: duration=%.3fs format=%s",
        label,
        metadata.duration_seconds,
        metadata.format_name,
    )
    return metadata
