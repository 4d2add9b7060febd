"""File naming helpers for job inputs and outputs."""

from __future__ import annotations

from chunkcode.core.codecs import output_extension

# Maximum length of a compressed display name
MAX_DISPLAY_NAME_LENGTH = 18


def strip_extension(file_name: str) -> str:
    """Remove the last extension from a file name.

    Args:
        file_name: File name such as "clip.final.mov".

    Returns:
        Name without its last extension ("clip.final").
    """
    last_dot = file_name.rfind(".")
    if last_dot <= 0:
        return file_name
    return file_name[:last_dot]


def file_extension(file_name: str) -> str:
    """Get the last extension of a file name, without the dot."""
    last_dot = file_name.rfind(".")
    if last_dot <= 0 or last_dot == len(file_name) - 1:
        return ""
    return file_name[last_dot + 1 :]


def derive_output_name(file_name: str, target_format: str) -> str:
    """Build the output file name for a converted file.

    Args:
        file_name: Original input file name.
        target_format: Target format (e.g. "mkv", "mp4v").

    Returns:
        Input name with its extension replaced by the target's extension.
    """
    return f"{strip_extension(file_name)}.{output_extension(target_format)}"


def compress_file_name(
    file_name: str, max_length: int = MAX_DISPLAY_NAME_LENGTH
) -> str:
    """Shorten a file name for display by eliding its middle.

    The extension is always kept. Names within the limit are returned trimmed
    but otherwise unchanged.

    Example:
        >>> compress_file_name("a_really_long_holiday_video.mp4")
        'a_rea..._video.mp4'
    """
    trimmed = file_name.strip()
    if len(trimmed) <= max_length:
        return trimmed

    parts = trimmed.split(".")
    extension = parts.pop() if len(parts) > 1 else ""
    stem = ".".join(parts)

    # 3 characters for the ellipsis, 1 more for the dot before the extension
    reserved = len(extension) + 4 if extension else 3
    remaining = max(max_length - reserved, 2)
    start_length = remaining // 2
    end_length = remaining - start_length

    compressed = f"{stem[:start_length]}...{stem[-end_length:]}"
    return f"{compressed}.{extension}" if extension else compressed
