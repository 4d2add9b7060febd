"""Introspector module: duration probing of source media."""

from chunkcode.introspector.ffprobe import FFprobeIntrospector
from chunkcode.introspector.interface import DurationProber, MediaMetadata
from chunkcode.introspector.parsers import parse_duration, parse_ffprobe_output

__all__ = [
    "DurationProber",
    "FFprobeIntrospector",
    "MediaMetadata",
    "parse_duration",
    "parse_ffprobe_output",
]
