"""CLI capabilities command for trackmix."""

import json
import sys

import click

from trackmix.cli.exit_codes import ExitCode
from trackmix.domain.enums import CONVERTIBLE_AUDIO_CODECS
from trackmix.session import Session
from trackmix.tools import FFmpegCapabilities


def _to_dict(caps: FFmpegCapabilities) -> dict:
    return {
        "path": str(caps.path) if caps.path else None,
        "version": caps.version,
        "status": caps.status.value,
        "status_message": caps.status_message,
        "encoders": len(caps.encoders),
        "decoders": len(caps.decoders),
        "muxers": len(caps.muxers),
        "demuxers": len(caps.demuxers),
        "filters": len(caps.filters),
        "conversions": {
            codec: caps.can_convert_to(codec)
            for codec in sorted(CONVERTIBLE_AUDIO_CODECS)
        },
    }


@click.command("capabilities")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def capabilities_command(ctx: click.Context, json_output: bool) -> None:
    """Show what the installed ffmpeg can mux and encode."""
    caps = Session(config=ctx.obj.get("config")).capabilities()

    if json_output:
        click.echo(json.dumps(_to_dict(caps), indent=2))
    else:
        version = caps.version or "unknown version"
        click.echo(f"ffmpeg: {caps.status.value} ({version})")
        if caps.path:
            click.echo(f"  Path: {caps.path}")
        if caps.status_message:
            click.echo(f"  {caps.status_message}")
        if caps.is_available():
            click.echo(f"  Encoders: {len(caps.encoders)}")
            click.echo(f"  Decoders: {len(caps.decoders)}")
            click.echo(f"  Muxers: {len(caps.muxers)}")
            click.echo(f"  Demuxers: {len(caps.demuxers)}")
            click.echo(f"  Filters: {len(caps.filters)}")
            for codec in sorted(CONVERTIBLE_AUDIO_CODECS):
                mark = "yes" if caps.can_convert_to(codec) else "no"
                click.echo(f"  Convert to {codec}: {mark}")

    if not caps.is_available():
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)
