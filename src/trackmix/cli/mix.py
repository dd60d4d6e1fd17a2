"""CLI mix command for trackmix."""

import logging
import sys
import threading
from pathlib import Path

import click

from trackmix.cli.exit_codes import ExitCode
from trackmix.domain.enums import MixState
from trackmix.errors import (
    ConversionError,
    ImportSourcesError,
    MixError,
    NotStartedError,
)
from trackmix.executor.status import MixStatus
from trackmix.introspector import MediaIntrospectionError
from trackmix.session import Session

logger = logging.getLogger(__name__)

# Seconds to wait for ffmpeg to exit after a cancel
CANCEL_GRACE_PERIOD = 10.0


def parse_track_spec(spec: str) -> tuple[str, int, float | None]:
    """Parse ``PATH:INDEX[@DELAY]``.

    An ``@`` suffix is only taken as a delay when it parses as a number,
    so paths containing ``@`` still work.

    Raises:
        click.BadParameter: The track spec has no index or the index is not an int.
    """
    body, delay = spec, None
    head, sep, tail = spec.rpartition("@")
    if sep and ":" in head:
        try:
            delay = float(tail)
            body = head
        except ValueError:
            pass

    path, sep, index = body.rpartition(":")
    if not sep or not path:
        raise click.BadParameter(
            f"expected PATH:INDEX[@DELAY], got {spec!r}", param_hint="--track"
        )
    try:
        return path, int(index), delay
    except ValueError:
        raise click.BadParameter(
            f"stream index must be an integer, got {index!r}", param_hint="--track"
        ) from None


def parse_tag(value: str) -> tuple[str, str | None]:
    """Parse ``key=value``; ``key=`` clears the tag."""
    key, sep, tag_value = value.partition("=")
    if not sep or not key:
        raise click.BadParameter(
            f"expected key=value, got {value!r}", param_hint="--tag"
        )
    return key, tag_value or None


class _StatusPrinter:
    """Echo status transitions and whole-percent progress steps."""

    def __init__(self) -> None:
        self.finished = threading.Event()
        self._state: MixState | None = None
        self._command_shown = False
        self._percent = -1

    def __call__(self, status: MixStatus) -> None:
        if status.state is not self._state:
            self._state = status.state
            click.echo(f"Status: {status.state.value}")
        if status.command and not self._command_shown:
            self._command_shown = True
            click.echo(f"Running: {status.command}")
        progress = status.progress
        if progress is not None and progress.percent is not None:
            percent = int(progress.percent)
            if percent > self._percent:
                self._percent = percent
                click.echo(f"  {percent}% ({progress.timemark})")
        if status.state.is_terminal:
            self.finished.set()


@click.command("mix")
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(path_type=Path),
    help="File to write.",
)
@click.option(
    "--track",
    "-t",
    "track_specs",
    multiple=True,
    required=True,
    help="Track to include as PATH:INDEX[@DELAY]; repeat in output order.",
)
@click.option(
    "--tag",
    "tags",
    multiple=True,
    help="Container tag as key=value; key= clears it.",
)
@click.option(
    "--chapters",
    "chapters_from",
    type=str,
    default=None,
    help="Copy chapters from this file.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the ffmpeg command without running it.",
)
@click.pass_context
def mix_command(
    ctx: click.Context,
    output_path: Path,
    track_specs: tuple[str, ...],
    tags: tuple[str, ...],
    chapters_from: str | None,
    dry_run: bool,
) -> None:
    """Mix tracks from one or more files into a new file.

    Tracks are written in the order given. A track listed twice is
    written twice. A delay works on video, audio and subtitle tracks;
    attachments and data streams cannot be delayed.
    """
    specs = [parse_track_spec(spec) for spec in track_specs]
    container_tags = dict(parse_tag(tag) for tag in tags)

    session = Session(
        introspector=ctx.obj.get("introspector"),
        runner_factory=ctx.obj.get("runner_factory"),
        config=ctx.obj.get("config"),
    )

    paths = list(dict.fromkeys(path for path, _, _ in specs))
    if chapters_from is not None and chapters_from not in paths:
        paths.append(chapters_from)
    try:
        sources = dict(zip(paths, session.import_sources(paths)))
    except ImportSourcesError as e:
        for error in e.errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.TARGET_NOT_FOUND)
    except MediaIntrospectionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.FFPROBE_NOT_FOUND)

    selected = []
    for path, index, delay in specs:
        track = next(
            (t for t in sources[path].original_tracks if t.index == index), None
        )
        if track is None:
            click.echo(f"Error: {path} has no stream {index}", err=True)
            sys.exit(ExitCode.NO_TRACKS_FOUND)
        if any(t is track for t in selected):
            track = session.copy_track(track.id)
        if delay is not None:
            try:
                track.delay = delay
            except AttributeError as e:
                raise click.BadParameter(str(e), param_hint="--track") from e
        selected.append(track)

    chapter_list_id = None
    if chapters_from is not None:
        chapters = sources[chapters_from].chapters
        if chapters is None:
            click.echo(f"Warning: {chapters_from} has no chapters", err=True)
        else:
            chapter_list_id = chapters.id

    (output,) = session.create_outputs([output_path])
    session.update_output(
        output.id,
        tags=container_tags,
        track_ids=[t.id for t in selected],
        chapter_list_id=chapter_list_id,
    )

    if dry_run:
        try:
            command = output.build_command()
        except (MixError, ConversionError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(ExitCode.INVALID_MIX)
        click.echo(command.render())
        return

    printer = _StatusPrinter()
    try:
        session.mix_output(output.id, on_status=printer)
    except (MixError, ConversionError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_MIX)

    try:
        printer.finished.wait()
    except KeyboardInterrupt:
        try:
            session.cancel_output(output.id)
        except NotStartedError:
            logger.debug("Mix finished before it could be canceled")
        printer.finished.wait(CANCEL_GRACE_PERIOD)
        sys.exit(ExitCode.INTERRUPTED)

    final = output.status
    if final.state is not MixState.DONE:
        click.echo(f"Error: {final.error}", err=True)
        sys.exit(ExitCode.OPERATION_FAILED)
