"""``trackmix inspect``: show what ffprobe finds in one file."""

import logging
import sys
from pathlib import Path

import click

from trackmix.cli.exit_codes import ExitCode
from trackmix.errors import ImportSourcesError
from trackmix.introspector import (
    FFprobeIntrospector,
    MediaIntrospectionError,
    format_human,
    format_json,
)
from trackmix.session import Session

logger = logging.getLogger(__name__)


@click.command("inspect")
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    show_default=True,
    help="How to print the result.",
)
@click.pass_context
def inspect_command(ctx: click.Context, file: Path, output_format: str) -> None:
    """List the tracks, chapters and probe warnings of FILE."""
    if not file.exists():
        click.echo(f"Error: File not found: {file}", err=True)
        sys.exit(ExitCode.TARGET_NOT_FOUND)

    introspector = ctx.obj.get("introspector")
    if introspector is None and not FFprobeIntrospector.is_available():
        click.echo(
            "Error: ffprobe is not installed or not in PATH.\n"
            "Install ffmpeg, or set TRACKMIX_FFPROBE_PATH.",
            err=True,
        )
        sys.exit(ExitCode.FFPROBE_NOT_FOUND)

    session = Session(introspector=introspector, config=ctx.obj.get("config"))
    try:
        (source,) = session.import_sources([file])
    except (ImportSourcesError, MediaIntrospectionError) as e:
        logger.debug("inspect failed for %s", file, exc_info=True)
        click.echo(f"Error: Could not inspect {file}: {e}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)

    render = format_json if output_format == "json" else format_human
    click.echo(render(source, source.probe.warnings))
