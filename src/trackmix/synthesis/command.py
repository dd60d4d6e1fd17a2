"""Synthesis of one ffmpeg invocation per output container.

Input 0 is always the chapter metadata, piped to ffmpeg on stdin. Real
inputs follow, one per distinct (path, delay) pair. Per-track options are
ordered by output stream index, because ffmpeg numbers output streams in
the order their -map arguments appear.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from trackmix.domain.chapters import FFMETADATA_HEADER
from trackmix.errors import InvalidOutputError, NoIngredientsError, NoOutputError
from trackmix.synthesis.options import format_number, metadata_args

if TYPE_CHECKING:
    from trackmix.domain.containers import OutputContainer
    from trackmix.domain.tracks import Track

logger = logging.getLogger(__name__)

# Sort key of -map_chapters, placing it before every track's options
CHAPTERS_SENTINEL = -1

METADATA_INPUT = "pipe:0"


@dataclass
class InputGroup:
    """One ffmpeg input: a file read at a given delay.

    Attributes:
        path: Source file path.
        delay: Input offset in seconds (-itsoffset).
        entries: (output_index, track) pairs read from this input, in
            output container order.
    """

    path: str
    delay: float
    entries: list[tuple[int, Track]] = field(default_factory=list)

    @property
    def track_ids(self) -> list[int]:
        return [track.id for _, track in self.entries]


def group_inputs(tracks: Sequence[Track]) -> list[InputGroup]:
    """Group tracks into the minimum set of ffmpeg inputs.

    Tracks from the same file share an input only if they share a delay.
    Groups of one file are adjacent, files in order of first appearance,
    delays within a file in order of first appearance. A track listed
    twice is read once.

    Args:
        tracks: Tracks in output order.

    Returns:
        Ordered input groups.
    """
    by_path: dict[str, dict[float, InputGroup]] = {}
    for output_index, track in enumerate(tracks):
        delay = float(track.delay)
        groups = by_path.setdefault(track.source_path, {})
        group = groups.get(delay)
        if group is None:
            group = groups[delay] = InputGroup(track.source_path, delay)
        if track.id not in group.track_ids:
            group.entries.append((output_index, track))
    return [group for groups in by_path.values() for group in groups.values()]


def _same_path(a: str, b: str) -> bool:
    return os.path.abspath(a) == os.path.abspath(b)


def check_output_collision(
    container_id: int, output_path: str, tracks: Iterable[Track]
) -> None:
    """Reject an output path that is also read as an input.

    Raises:
        InvalidOutputError: Naming every track read from the output path.
    """
    colliding = [
        track.id for track in tracks if _same_path(track.source_path, output_path)
    ]
    if colliding:
        raise InvalidOutputError(container_id, output_path, colliding)


@dataclass(frozen=True)
class MixCommand:
    """A synthesized ffmpeg invocation.

    Attributes:
        metadata_text: FFMETADATA text fed to input 0.
        input_args: Input declarations (-itsoffset, -i) for inputs 1..n.
        option_args: Mapping, codec, metadata and disposition arguments.
        output_path: File ffmpeg writes.
    """

    metadata_text: str
    input_args: tuple[str, ...]
    option_args: tuple[str, ...]
    output_path: str

    @property
    def args(self) -> list[str]:
        """Input declarations followed by options."""
        return [*self.input_args, *self.option_args]

    def to_ffmpeg_argv(
        self, ffmpeg_path: str | os.PathLike[str] = "ffmpeg"
    ) -> list[str]:
        """Return the complete argv, metadata input and output included."""
        return [
            str(ffmpeg_path),
            "-hide_banner",
            "-f",
            "ffmetadata",
            "-i",
            METADATA_INPUT,
            *self.args,
            "-y",
            self.output_path,
        ]

    def render(self, ffmpeg_path: str | os.PathLike[str] = "ffmpeg") -> str:
        """Return the argv as a shell-quoted command line."""
        return shlex.join(self.to_ffmpeg_argv(ffmpeg_path))


def build_mix_command(output: OutputContainer) -> MixCommand:
    """Synthesize the ffmpeg invocation for an output container.

    Raises:
        NoOutputError: The container has no output path.
        NoIngredientsError: The container has no tracks.
        InvalidOutputError: The output path is also an input.
        UnsupportedCodecError: A pinned audio codec has no encoder.
    """
    if not output.output:
        raise NoOutputError(output.id)
    tracks = output.tracks
    if not tracks:
        raise NoIngredientsError(output.id)

    groups = group_inputs(tracks)
    check_output_collision(output.id, output.output, tracks)

    chapters = output.chapters
    custom_chapters = chapters.build_chapters_text() if chapters is not None else None
    metadata_text = (
        custom_chapters if custom_chapters is not None else FFMETADATA_HEADER
    )

    input_args: list[str] = []
    tagged: list[tuple[int, list[str]]] = []
    for input_index, group in enumerate(groups, start=1):
        if group.delay != 0:
            input_args.extend(["-itsoffset", format_number(group.delay)])
        elif (
            chapters is not None
            and custom_chapters is None
            and chapters.source_path == group.path
        ):
            tagged.append((CHAPTERS_SENTINEL, ["-map_chapters", str(input_index)]))

        input_args.extend(["-i", group.path])

        for output_index, track in group.entries:
            tagged.append(
                (output_index, track.build_options(input_index, output_index))
            )

    # Stable: ties keep input order
    tagged.sort(key=lambda item: item[0])
    option_args = [arg for _, args in tagged for arg in args]

    if output.tags:
        option_args.extend(metadata_args("-metadata", output.tags))

    logger.debug(
        "Synthesized %d inputs for output container %d",
        len(groups) + 1,
        output.id,
        extra={"container_id": output.id, "output_path": output.output},
    )
    return MixCommand(
        metadata_text=metadata_text,
        input_args=tuple(input_args),
        option_args=tuple(option_args),
        output_path=output.output,
    )
