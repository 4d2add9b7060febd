"""CLI convert command."""

import logging
import mimetypes
import sys
from pathlib import Path

import click

from chunkcode.cli.exit_codes import ExitCode
from chunkcode.cli.output import CLIResult, error_exit, success_output
from chunkcode.config import ConfigError, get_config
from chunkcode.core.naming import derive_output_name
from chunkcode.exceptions import (
    ConcatFailure,
    JobCancelled,
    PipelineError,
    ProbeFailure,
    SegmentFailure,
    UnsupportedFormat,
)
from chunkcode.executor.command import CodecCommandBuilder
from chunkcode.executor.interface import ToolNotAvailableError
from chunkcode.jobs import ConversionRequest, StderrProgressReporter, convert

logger = logging.getLogger(__name__)

# Most specific first
_ERROR_EXIT_CODES: list[tuple[type[Exception], ExitCode]] = [
    (UnsupportedFormat, ExitCode.UNSUPPORTED_FORMAT),
    (ProbeFailure, ExitCode.PROBE_FAILURE),
    (SegmentFailure, ExitCode.SEGMENT_FAILURE),
    (ConcatFailure, ExitCode.CONCAT_FAILURE),
    (JobCancelled, ExitCode.INTERRUPTED),
    (PipelineError, ExitCode.GENERAL_ERROR),
]


def exit_code_for(error: Exception) -> ExitCode:
    """Map a pipeline error to its CLI exit code."""
    for error_type, code in _ERROR_EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return ExitCode.GENERAL_ERROR


@click.command("convert")
@click.argument("input_file", type=click.Path(path_type=Path, dir_okay=False))
@click.option(
    "--to",
    "-t",
    "target_format",
    required=True,
    help="Target format (see 'chunkcode formats').",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Output file (default: input name with the target extension).",
)
@click.option(
    "--source-format",
    default=None,
    help="Source format, when the file name and mime type are misleading.",
)
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None)
@click.option(
    "--chunk-seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Fixed segment duration in seconds (default: 5).",
)
@click.option(
    "--chunk-divisor",
    type=click.IntRange(min=1),
    default=None,
    help="Split into this many equal segments instead of fixed durations.",
)
@click.option(
    "--mkv-audio",
    type=click.Choice(["aac", "mp3"], case_sensitive=False),
    default=None,
    help="Audio codec for Matroska targets (default: aac).",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing output file.")
@click.option("--json", "json_output", is_flag=True, help="Output result as JSON.")
@click.pass_context
def convert_command(
    ctx: click.Context,
    input_file: Path,
    target_format: str,
    output_path: Path | None,
    source_format: str | None,
    workers: int | None,
    chunk_seconds: float | None,
    chunk_divisor: int | None,
    mkv_audio: str | None,
    force: bool,
    json_output: bool,
) -> None:
    """Convert INPUT_FILE into another container/codec.

    The file is split into segments that are transcoded in parallel and
    joined back in order. Conversions within one codec group only re-mux.
    """
    if chunk_seconds is not None and chunk_divisor is not None:
        error_exit(
            "--chunk-seconds and --chunk-divisor are mutually exclusive",
            ExitCode.GENERAL_ERROR,
            json_output,
        )

    if not input_file.is_file():
        error_exit(
            f"File not found: {input_file}",
            ExitCode.TARGET_NOT_FOUND,
            json_output,
        )

    # Reject unknown targets before reading the input
    try:
        target = CodecCommandBuilder().validate_target(target_format)
    except UnsupportedFormat as e:
        error_exit(str(e), ExitCode.UNSUPPORTED_FORMAT, json_output)

    if output_path is None:
        output_path = input_file.with_name(derive_output_name(input_file.name, target))
    if output_path.resolve() == input_file.resolve():
        error_exit(
            "Output would overwrite the input file",
            ExitCode.OUTPUT_EXISTS,
            json_output,
        )
    if output_path.exists() and not force:
        error_exit(
            f"Output file exists: {output_path} (use --force to overwrite)",
            ExitCode.OUTPUT_EXISTS,
            json_output,
        )

    config_path = (ctx.obj or {}).get("config_path")
    try:
        config = get_config(
            config_path,
            workers=workers,
            chunk_seconds=chunk_seconds,
            chunk_divisor=chunk_divisor,
            mkv_audio_codec=mkv_audio.casefold() if mkv_audio else None,
        )
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)

    try:
        file_bytes = input_file.read_bytes()
    except OSError as e:
        error_exit(
            f"Cannot read {input_file}: {e}",
            ExitCode.TARGET_NOT_FOUND,
            json_output,
        )

    request = ConversionRequest(
        file_bytes=file_bytes,
        file_name=input_file.name,
        declared_mime_type=mimetypes.guess_type(input_file.name)[0],
        target_format=target,
        source_format=source_format,
    )
    reporter = StderrProgressReporter(enabled=not json_output and sys.stderr.isatty())

    try:
        result = convert(request, config, reporter)
    except ToolNotAvailableError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)
    except PipelineError as e:
        logger.debug("Conversion of %s failed", input_file, exc_info=True)
        error_exit(str(e), exit_code_for(e), json_output)
    except KeyboardInterrupt:
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)

    try:
        output_path.write_bytes(result.output_bytes)
    except OSError as e:
        error_exit(
            f"Cannot write {output_path}: {e}",
            ExitCode.GENERAL_ERROR,
            json_output,
        )

    success_output(
        CLIResult(
            success=True,
            message=f"Converted {input_file.name} -> {output_path}",
            data={
                "input": str(input_file),
                "output": str(output_path),
                "mime_type": result.mime_type,
                "segments": result.segment_count,
                "duration_seconds": result.duration_seconds,
                "bytes": len(result.output_bytes),
            },
        ),
        json_output,
    )
