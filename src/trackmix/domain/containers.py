"""Source and output containers.

A container holds references to tracks; it never owns them. The same
track may sit in a source container and any number of output containers,
and removing it from one leaves the others untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING

from trackmix.domain.chapters import ChapterList
from trackmix.domain.enums import TrackType
from trackmix.domain.ids import DEFAULT_ALLOCATOR, IdAllocator
from trackmix.domain.probe import ProbeResult
from trackmix.domain.tracks import (
    AttachmentTrack,
    AudioTrack,
    DataTrack,
    SubtitleTrack,
    Track,
    VideoTrack,
    create_track,
)
from trackmix.errors import (
    MixAlreadyRunningError,
    MixError,
    NotStartedError,
    PauseNotSupportedError,
)

if TYPE_CHECKING:
    from trackmix.executor.ffmpeg import MixRunner
    from trackmix.executor.mixer import MixExecution
    from trackmix.executor.status import MixStatus
    from trackmix.synthesis.command import MixCommand

logger = logging.getLogger(__name__)


class Container:
    """Ordered collection of track references.

    Attributes:
        id: Unique id issued by the allocator.
        chapters: Chapter list, if any.
        removed: Tombstone flag; removed containers are hidden from
            enumeration but stay valid for anything still holding them.
    """

    def __init__(
        self,
        path: str,
        *,
        tracks: Iterable[Track] = (),
        chapters: ChapterList | None = None,
        allocator: IdAllocator | None = None,
    ) -> None:
        self.id = (allocator or DEFAULT_ALLOCATOR).next_id()
        self._path = path
        self._tracks: list[Track] = list(tracks)
        self.chapters = chapters
        self.removed = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id}, path={self._path!r}, "
            f"tracks={len(self._tracks)})"
        )

    @property
    def path(self) -> str:
        return self._path

    @property
    def file_name(self) -> str:
        return os.path.basename(self._path)

    @property
    def tracks(self) -> list[Track]:
        """Tracks in container order (a new list of the same references)."""
        return list(self._tracks)

    @property
    def tags(self) -> Mapping[str, str | None]:
        return {}

    def get_track(self, track_id: int) -> Track | None:
        for track in self._tracks:
            if track.id == track_id:
                return track
        return None

    def has_track(self, track: Track) -> bool:
        return any(t is track for t in self._tracks)

    def _of_type(self, track_type: TrackType) -> list[Track]:
        return [t for t in self._tracks if t.track_type is track_type]

    @property
    def video_tracks(self) -> list[VideoTrack]:
        return self._of_type(TrackType.VIDEO)  # type: ignore[return-value]

    @property
    def audio_tracks(self) -> list[AudioTrack]:
        return self._of_type(TrackType.AUDIO)  # type: ignore[return-value]

    @property
    def subtitle_tracks(self) -> list[SubtitleTrack]:
        return self._of_type(TrackType.SUBTITLE)  # type: ignore[return-value]

    @property
    def attachment_tracks(self) -> list[AttachmentTrack]:
        return self._of_type(TrackType.ATTACHMENT)  # type: ignore[return-value]

    @property
    def data_tracks(self) -> list[DataTrack]:
        return self._of_type(TrackType.DATA)  # type: ignore[return-value]


class SourceContainer(Container):
    """A probed input file.

    The original tracks and chapters come from the probe and never change.
    Copies of its tracks may be registered here so they can be found by
    source; only copies can be added or removed.
    """

    def __init__(
        self,
        probe: ProbeResult,
        *,
        tracks: Iterable[Track] = (),
        chapters: ChapterList | None = None,
        allocator: IdAllocator | None = None,
    ) -> None:
        super().__init__(
            probe.file_path, tracks=tracks, chapters=chapters, allocator=allocator
        )
        self._probe = probe

    @classmethod
    def from_probe(
        cls, result: ProbeResult, allocator: IdAllocator | None = None
    ) -> SourceContainer:
        """Build a source container with original tracks and chapters."""
        tracks = [
            create_track(result.file_path, stream, allocator)
            for stream in result.streams
        ]
        chapters = None
        if result.chapters:
            chapters = ChapterList.from_probe(
                result.file_path, result.chapters, allocator
            )
        container = cls(result, tracks=tracks, chapters=chapters, allocator=allocator)
        logger.debug(
            "Created source container %d from %s with %d tracks",
            container.id,
            result.file_path,
            len(tracks),
            extra={"container_id": container.id, "file_path": result.file_path},
        )
        return container

    @property
    def probe(self) -> ProbeResult:
        return self._probe

    @property
    def format_name(self) -> str | None:
        return self._probe.format.format_name

    @property
    def duration(self) -> float | None:
        return self._probe.format.duration

    @property
    def bitrate(self) -> int | None:
        return self._probe.format.bit_rate

    @property
    def size(self) -> int | None:
        return self._probe.format.size

    @property
    def tags(self) -> Mapping[str, str | None]:
        """Probed container tags."""
        return dict(self._probe.format.tags)

    @property
    def original_tracks(self) -> list[Track]:
        return [t for t in self._tracks if t.is_original]

    @property
    def copied_tracks(self) -> list[Track]:
        return [t for t in self._tracks if not t.is_original]

    def add_copied_track(self, track: Track) -> None:
        """Register a copy of one of this container's tracks.

        Original tracks and tracks already present are ignored with a
        warning.
        """
        if track.is_original:
            logger.warning(
                "Refusing to add original track %d to source container %d",
                track.id,
                self.id,
            )
            return
        if self.has_track(track):
            logger.warning(
                "Track %d is already in source container %d", track.id, self.id
            )
            return
        self._tracks.append(track)

    def remove_copied_track(self, track: Track) -> None:
        """Unregister a copied track.

        Original tracks and tracks not present are ignored with a warning.
        """
        if track.is_original:
            logger.warning(
                "Refusing to remove original track %d from source container %d",
                track.id,
                self.id,
            )
            return
        if not self.has_track(track):
            logger.warning(
                "Track %d is not in source container %d", track.id, self.id
            )
            return
        self._tracks = [t for t in self._tracks if t is not track]


class OutputContainer(Container):
    """A file to be produced by mixing tracks from source containers.

    Track order is the output stream order. The status log starts with a
    single ``idle`` entry and grows by one snapshot per transition.
    """

    def __init__(
        self,
        output_path: str = "",
        *,
        allocator: IdAllocator | None = None,
    ) -> None:
        from trackmix.executor.status import StatusLog

        super().__init__(output_path, allocator=allocator)
        self._tags: dict[str, str | None] = {}
        self._log = StatusLog()
        self._execution: MixExecution | None = None
        self._runner: MixRunner | None = None

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @property
    def output(self) -> str:
        """Path of the file to write ("" when not set yet)."""
        return self._path

    @output.setter
    def output(self, path: str) -> None:
        self._path = path

    @property
    def tags(self) -> dict[str, str | None]:
        """Container tags to write; None values clear the key."""
        return dict(self._tags)

    @tags.setter
    def tags(self, tags: Mapping[str, str | None]) -> None:
        self._tags = dict(tags)

    def set_tag(self, name: str, value: str | None) -> None:
        self._tags[name] = value

    # -------------------------------------------------------------------------
    # Track selection
    # -------------------------------------------------------------------------

    def add_track(self, track: Track, position: int | None = None) -> None:
        """Select a track, appending it or inserting it at ``position``.

        A track that is already selected is left where it is.
        """
        if self.has_track(track):
            logger.warning(
                "Track %d is already in output container %d", track.id, self.id
            )
            return
        if position is None:
            self._tracks.append(track)
        else:
            self._tracks.insert(position, track)

    def remove_track(self, track: Track) -> None:
        """Deselect a track. The track itself is not affected."""
        if not self.has_track(track):
            logger.warning(
                "Track %d is not in output container %d", track.id, self.id
            )
            return
        self._tracks = [t for t in self._tracks if t is not track]

    def move_track(self, track: Track, position: int) -> None:
        """Move a selected track to a new output position.

        Raises:
            ValueError: If the track is not selected.
        """
        if not self.has_track(track):
            raise ValueError(
                f"Track {track.id} is not in output container {self.id}"
            )
        remaining = [t for t in self._tracks if t is not track]
        remaining.insert(position, track)
        self._tracks = remaining

    def set_tracks(self, tracks: Iterable[Track]) -> None:
        """Replace the selection, keeping the given order."""
        selected: list[Track] = []
        for track in tracks:
            if any(t is track for t in selected):
                logger.warning(
                    "Ignoring duplicate track %d for output container %d",
                    track.id,
                    self.id,
                )
                continue
            selected.append(track)
        self._tracks = selected

    def remove_tracks_from(self, path: str) -> list[Track]:
        """Deselect every track read from ``path``; return what was removed."""
        removed = [t for t in self._tracks if t.source_path == path]
        if removed:
            self._tracks = [t for t in self._tracks if t.source_path != path]
        return removed

    # -------------------------------------------------------------------------
    # Mixing
    # -------------------------------------------------------------------------

    @property
    def status_log(self) -> tuple[MixStatus, ...]:
        """Every status snapshot, oldest first."""
        return self._log.entries

    @property
    def status(self) -> MixStatus:
        """The current status."""
        return self._log.latest

    def build_command(self) -> MixCommand:
        """Synthesize the ffmpeg invocation without running it."""
        from trackmix.synthesis import build_mix_command

        return build_mix_command(self)

    def mix(
        self,
        runner: MixRunner | None = None,
        on_status: Callable[[MixStatus], None] | None = None,
    ) -> MixCommand:
        """Start mixing this container.

        Precondition failures raise and leave the status unchanged. Once
        the mix has started, failures are only recorded in the status log.

        Args:
            runner: Process runner; defaults to a new FFmpegRunner.
            on_status: Called with every new status snapshot.

        Returns:
            The synthesized command.

        Raises:
            NoOutputError: No output path is set.
            NoIngredientsError: No track is selected.
            InvalidOutputError: The output path is also an input.
            MixAlreadyRunningError: A mix of this container is running.
            UnsupportedCodecError: A pinned audio codec has no encoder.
        """
        from trackmix.executor.events import ErrorEvent
        from trackmix.executor.ffmpeg import FFmpegRunner
        from trackmix.executor.mixer import MixExecution
        from trackmix.logging import mix_context

        if self.status.state.is_active:
            raise MixAlreadyRunningError(self.id)

        try:
            command = self.build_command()
        except MixError as e:
            logger.error(
                "Cannot mix output container %d: %s",
                self.id,
                e,
                extra={"container_id": self.id, "output_path": self.output},
            )
            raise

        execution = MixExecution(self.id, self._log, on_status)
        runner = runner if runner is not None else FFmpegRunner()
        self._execution, self._runner = execution, runner

        with mix_context(self.id, self.output):
            execution.begin()
            output_dir = os.path.dirname(os.path.abspath(self.output))
            try:
                os.makedirs(output_dir, exist_ok=True)
            except OSError as e:
                execution.handle(
                    ErrorEvent(f"Cannot create output directory {output_dir}: {e}")
                )
                return command
            runner.start(command, execution.handle)
        return command

    def cancel(self) -> None:
        """Cancel a running mix.

        The ``canceled`` snapshot is recorded before the process exits;
        the process's own termination error is then suppressed.

        Raises:
            NotStartedError: The container is not mixing.
        """
        state = self.status.state
        execution, runner = self._execution, self._runner
        if not state.is_active or execution is None or execution.finished:
            raise NotStartedError(self.id, state.value)
        execution.cancel()
        if runner is not None:
            runner.terminate()

    def pause(self) -> None:
        """Always raises; ffmpeg cannot suspend a running mix."""
        raise PauseNotSupportedError(self.id)

    def resume(self) -> None:
        """Always raises; ffmpeg cannot suspend a running mix."""
        raise PauseNotSupportedError(self.id)
