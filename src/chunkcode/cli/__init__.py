"""CLI module for chunkcode."""

import logging
from pathlib import Path

import click

from chunkcode.cli.exit_codes import ExitCode
from chunkcode.cli.output import error_exit

logger = logging.getLogger(__name__)


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options layered over the loaded config.

    Args:
        config_path: Explicit config file, or None for the default location.
        log_level: Override log level (debug, info, warning, error).
        log_file: Override log file path.
        log_json: Use JSON log format.
    """
    from chunkcode.config import apply_logging_overrides, get_config
    from chunkcode.logging import configure_logging

    config = get_config(config_path)
    final_config = apply_logging_overrides(
        config.logging, level=log_level, file=log_file, json_format=log_json
    )
    configure_logging(final_config)


@click.group()
@click.version_option(package_name="chunkcode")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.chunkcode/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """chunkcode - Convert media files with a chunked parallel transcoder."""
    from chunkcode.config import ConfigError

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    try:
        _configure_logging(config_path, log_level, log_file, log_json)
    except (ConfigError, ValueError) as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)


# Defer import to avoid circular dependency
def _register_commands():
    from chunkcode.cli.convert import convert_command
    from chunkcode.cli.formats import formats_command
    from chunkcode.cli.probe import probe_command

    main.add_command(convert_command)
    main.add_command(formats_command)
    main.add_command(probe_command)


_register_commands()
