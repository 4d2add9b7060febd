"""FFmpeg command building for chunked transcoding.

This module provides the codec command builder (source/target format to
codec arguments) and the argument lists for the three engine operations a
job performs: cutting a segment, transcoding a segment, and joining the
transcoded segments.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from chunkcode.core.codecs import (
    RAW_DEMUXERS,
    RAW_VIDEO_ENCODERS,
    STREAM_COPY,
    get_target_strategy,
    is_same_codec_group,
    normalize_format,
    supported_targets,
)
from chunkcode.exceptions import UnsupportedFormat

logger = logging.getLogger(__name__)

MKV_AUDIO_CODECS: dict[str, tuple[str, ...]] = {
    "aac": ("-c:a", "aac"),
    "mp3": ("-c:a", "libmp3lame"),
}


@dataclass(frozen=True)
class CodecArgs:
    """Audio and video codec arguments for one conversion.

    Immutable once built; every segment of a job shares one instance.
    """

    video_args: tuple[str, ...]
    audio_args: tuple[str, ...]
    extra_args: tuple[str, ...] = ()
    strategy: str = ""
    stream_copy: bool = False

    def as_args(self) -> list[str]:
        """Flatten into engine arguments (video, then audio, then extras)."""
        return [*self.video_args, *self.audio_args, *self.extra_args]


class CodecCommandBuilder:
    """Maps (source format, target format) to codec arguments.

    Same-group conversions stream-copy both audio and video. Cross-group
    conversions use the concrete strategy registered for the target.
    """

    def __init__(
        self,
        mkv_audio_codec: str = "aac",
        raw_video_codec: str | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            mkv_audio_codec: Audio codec for Matroska targets ("aac" or "mp3").
            raw_video_codec: Force the encoder for raw elementary stream
                targets ("h264" or "hevc"). None picks it from the target.

        Raises:
            ValueError: If an option names an unknown codec.
        """
        if mkv_audio_codec not in MKV_AUDIO_CODECS:
            raise ValueError(
                f"mkv_audio_codec must be one of {sorted(MKV_AUDIO_CODECS)}, "
                f"got {mkv_audio_codec}"
            )
        if raw_video_codec is not None and raw_video_codec not in RAW_VIDEO_ENCODERS:
            raise ValueError(
                f"raw_video_codec must be one of {sorted(RAW_VIDEO_ENCODERS)}, "
                f"got {raw_video_codec}"
            )
        self.mkv_audio_codec = mkv_audio_codec
        self.raw_video_codec = raw_video_codec

    def validate_target(self, target: str) -> str:
        """Check that a strategy is registered for the target.

        Args:
            target: Requested target format.

        Returns:
            The normalized target format.

        Raises:
            UnsupportedFormat: If no strategy is registered.
        """
        normalized = normalize_format(target)
        if get_target_strategy(normalized) is None:
            raise UnsupportedFormat(target, supported_targets())
        return normalized

    def build(self, source: str, target: str) -> CodecArgs:
        """Build codec arguments for converting source into target.

        Args:
            source: Source format (may be unknown/empty).
            target: Target format.

        Returns:
            CodecArgs for the conversion.

        Raises:
            UnsupportedFormat: If no strategy is registered for the target.
        """
        target = self.validate_target(target)

        if is_same_codec_group(source, target):
            logger.debug("%s -> %s: same codec group, stream copy", source, target)
            return CodecArgs(
                video_args=STREAM_COPY.video_args,
                audio_args=STREAM_COPY.audio_args,
                strategy=STREAM_COPY.name,
                stream_copy=True,
            )

        strategy = get_target_strategy(target)
        assert strategy is not None  # validate_target guarantees it

        video_args = strategy.video_args
        audio_args = strategy.audio_args
        if target == "mkv":
            audio_args = MKV_AUDIO_CODECS[self.mkv_audio_codec]
        elif self.raw_video_codec is not None and strategy.name.startswith("raw_"):
            video_args = RAW_VIDEO_ENCODERS[self.raw_video_codec]

        logger.debug("%s -> %s: encode with %s", source or "?", target, strategy.name)
        return CodecArgs(
            video_args=video_args,
            audio_args=audio_args,
            extra_args=strategy.extra_args,
            strategy=strategy.name,
        )


def format_seconds(value: float) -> str:
    """Format a timestamp for ffmpeg (-ss/-t) with microsecond precision."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def input_format_args(source_format: str) -> list[str]:
    """Demuxer arguments for inputs ffmpeg cannot autodetect."""
    demuxer = RAW_DEMUXERS.get(normalize_format(source_format))
    return ["-f", demuxer] if demuxer else []


def build_segment_cut_command(
    input_name: str,
    output_name: str,
    start_seconds: float,
    duration_seconds: float,
) -> list[str]:
    """Build the stream-copy command that cuts one segment by timestamp.

    Args:
        input_name: Workspace entry of the full source.
        output_name: Workspace entry for the cut segment.
        start_seconds: Segment start on the source timeline.
        duration_seconds: Segment length.

    Returns:
        List of engine arguments.
    """
    return [
        "-ss",
        format_seconds(start_seconds),
        "-t",
        format_seconds(duration_seconds),
        "-i",
        input_name,
        "-map",
        "0",
        "-map_metadata",
        "0",
        "-c",
        "copy",
        "-avoid_negative_ts",
        "make_zero",
        output_name,
    ]


def build_transcode_command(
    input_name: str,
    output_name: str,
    codec_args: CodecArgs,
    source_format: str = "",
) -> list[str]:
    """Build the command that transcodes one segment.

    Args:
        input_name: Workspace entry holding the segment payload.
        output_name: Workspace entry for the transcoded segment.
        codec_args: Codec arguments for the job.
        source_format: Source format, used to force a demuxer for raw streams.

    Returns:
        List of engine arguments.
    """
    return [
        *input_format_args(source_format),
        "-i",
        input_name,
        *codec_args.as_args(),
        output_name,
    ]


def build_concat_manifest(entry_names: Sequence[str]) -> str:
    """Build a concat-demuxer manifest listing entries in the given order.

    Single quotes in names are escaped the way the concat demuxer expects.
    """
    lines = []
    for name in entry_names:
        escaped = name.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


def build_concat_command(manifest_name: str, output_name: str) -> list[str]:
    """Build the stream-copy concat command.

    Args:
        manifest_name: Workspace entry of the concat manifest.
        output_name: Workspace entry for the joined output.

    Returns:
        List of engine arguments.
    """
    return [
        "-f",
        "concat",
        "-safe",
        "0",
        "-i",
        manifest_name,
        "-c",
        "copy",
        output_name,
    ]
