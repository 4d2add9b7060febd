"""CLI formats command."""

import json

import click

from chunkcode.core.codecs import (
    codec_group_of,
    get_target_strategy,
    mime_type_for,
    output_extension,
    supported_targets,
)


@click.command("formats")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def formats_command(json_output: bool) -> None:
    """List the target formats that can be converted to."""
    rows = []
    for target in supported_targets():
        strategy = get_target_strategy(target)
        rows.append(
            {
                "format": target,
                "group": codec_group_of(target),
                "strategy": strategy.name if strategy else None,
                "extension": output_extension(target),
                "mime_type": mime_type_for(target),
            }
        )

    if json_output:
        click.echo(json.dumps(rows, indent=2))
        return

    click.echo(f"{'FORMAT':<8} {'GROUP':<14} {'ENCODE':<16} MIME TYPE")
    for row in rows:
        click.echo(
            f"{row['format']:<8} {row['group'] or '-':<14} "
            f"{row['strategy']:<16} {row['mime_type']}"
        )
