"""CLI probe command."""

import json
import mimetypes
from pathlib import Path

import click

from chunkcode.cli.exit_codes import ExitCode
from chunkcode.cli.output import error_exit
from chunkcode.config import ConfigError, get_config
from chunkcode.core.codecs import codec_group_of, resolve_source_format
from chunkcode.exceptions import ProbeFailure
from chunkcode.executor.interface import ToolNotAvailableError
from chunkcode.introspector import FFprobeIntrospector


@click.command("probe")
@click.argument("input_file", type=click.Path(path_type=Path, dir_okay=False))
@click.option("--source-format", default=None, help="Source format override.")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def probe_command(
    ctx: click.Context,
    input_file: Path,
    source_format: str | None,
    json_output: bool,
) -> None:
    """Show the duration and container format of INPUT_FILE."""
    if not input_file.is_file():
        error_exit(
            f"File not found: {input_file}",
            ExitCode.TARGET_NOT_FOUND,
            json_output,
        )

    try:
        config = get_config((ctx.obj or {}).get("config_path"))
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)

    detected = resolve_source_format(
        input_file.name, mimetypes.guess_type(input_file.name)[0], source_format
    )
    try:
        metadata = FFprobeIntrospector(config.tools.ffprobe).probe_file(
            input_file, detected
        )
    except ToolNotAvailableError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)
    except ProbeFailure as e:
        error_exit(str(e), ExitCode.PROBE_FAILURE, json_output)

    info = {
        "file": str(input_file),
        "source_format": detected or None,
        "codec_group": codec_group_of(detected),
        "duration_seconds": metadata.duration_seconds,
        "container": metadata.format_name,
        "bit_rate": metadata.bit_rate,
        "video_streams": metadata.video_streams,
        "audio_streams": metadata.audio_streams,
    }
    if json_output:
        click.echo(json.dumps(info, indent=2))
        return

    click.echo(f"File:      {input_file}")
    group = info["codec_group"] or "no group"
    click.echo(f"Format:    {detected or 'unknown'} ({group})")
    click.echo(f"Container: {metadata.format_name or 'unknown'}")
    click.echo(f"Duration:  {metadata.duration_seconds:.3f}s")
    click.echo(
        f"Streams:   {metadata.video_streams} video, {metadata.audio_streams} audio"
    )
