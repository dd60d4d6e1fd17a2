"""CLI module for trackmix."""

import logging
import sys
from pathlib import Path

import click

from trackmix.cli.exit_codes import ExitCode

logger = logging.getLogger(__name__)


def _load_config(
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
):
    """Load configuration with CLI overrides and configure logging."""
    from trackmix.config import ConfigFileError, get_config
    from trackmix.logging import configure_logging

    try:
        config = get_config(
            log_level=log_level,
            log_file=log_file,
            log_format="json" if log_json else None,
            strict=True,
        )
    except (ConfigFileError, ValueError) as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    configure_logging(config.logging)
    return config


@click.group()
@click.version_option(package_name="trackmix")
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
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """trackmix - Inspect media files and remux their tracks with ffmpeg."""
    ctx.ensure_object(dict)
    # Preserve a config injected by tests
    if "config" not in ctx.obj:
        ctx.obj["config"] = _load_config(log_level, log_file, log_json)


# Defer import to avoid circular dependency
def _register_commands():
    from trackmix.cli.capabilities import capabilities_command
    from trackmix.cli.inspect import inspect_command
    from trackmix.cli.mix import mix_command

    main.add_command(inspect_command)
    main.add_command(mix_command)
    main.add_command(capabilities_command)


_register_commands()
