"""Session facade: the caller-facing API over the container model.

A Session owns the registries of source and output containers. Removed
containers are tombstoned rather than dropped, so references held by a
running mix or a caller stay valid while lookups and enumeration skip them.

Usage:
    session = Session()
    source, = session.import_sources(["movie.mkv"])
    output, = session.create_outputs(["out/movie.mkv"])
    session.update_output(output.id, track_ids=[t.id for t in source.tracks])
    session.mix_output(output.id, on_status=print)
"""

from __future__ import annotations

import itertools
import logging
import os
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

from trackmix.config import TrackmixConfig, get_config
from trackmix.domain.chapters import ChapterList
from trackmix.domain.containers import OutputContainer, SourceContainer
from trackmix.domain.ids import DEFAULT_ALLOCATOR, IdAllocator
from trackmix.domain.probe import ProbeResult
from trackmix.domain.tracks import AudioTrack, Track
from trackmix.errors import (
    EntityKind,
    ImportSourcesError,
    NotFoundError,
    NotStartedError,
    SourceAccessError,
    SourceFileTypeError,
    SourceImportError,
    SourceProbeError,
    UnsupportedCodecError,
)
from trackmix.executor.ffmpeg import FFmpegRunner, MixRunner
from trackmix.executor.status import MixStatus
from trackmix.introspector import (
    FFprobeIntrospector,
    MediaIntrospectionError,
    MediaIntrospector,
)
from trackmix.synthesis.command import MixCommand
from trackmix.tools import FFmpegCapabilities, detect_ffmpeg_capabilities, find_tool

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[], MixRunner]

# Distinguishes "leave unchanged" from an explicit None
_UNSET: Any = object()


class Session:
    """In-memory editing session.

    Args:
        introspector: Probe implementation; defaults to FFprobeIntrospector,
            created on first import.
        runner_factory: Returns a fresh runner per mix; defaults to
            FFmpegRunner with the configured ffmpeg.
        config: Configuration; defaults to ``get_config()``.
        allocator: Id allocator for every container, track and chapter list.
    """

    def __init__(
        self,
        introspector: MediaIntrospector | None = None,
        runner_factory: RunnerFactory | None = None,
        config: TrackmixConfig | None = None,
        allocator: IdAllocator | None = None,
    ) -> None:
        self._config = config
        self._introspector = introspector
        self._runner_factory = runner_factory or self._default_runner
        self._allocator = allocator or DEFAULT_ALLOCATOR
        self._sources: dict[int, SourceContainer] = {}
        self._outputs: dict[int, OutputContainer] = {}
        self._lock = threading.RLock()
        self._capabilities: FFmpegCapabilities | None = None
        self._command_ids = itertools.count(1)

    @property
    def config(self) -> TrackmixConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def introspector(self) -> MediaIntrospector:
        if self._introspector is None:
            ffprobe = find_tool("ffprobe", self.config.get_tool_path("ffprobe"))
            self._introspector = FFprobeIntrospector(
                ffprobe_path=ffprobe,
                timeout=self.config.imports.probe_timeout,
            )
        return self._introspector

    def _default_runner(self) -> MixRunner:
        return FFmpegRunner(find_tool("ffmpeg", self.config.get_tool_path("ffmpeg")))

    def _command(self, operation: str, **context: object) -> int:
        command_id = next(self._command_ids)
        logger.debug(
            "%s %s",
            operation,
            " ".join(f"{k}={v!r}" for k, v in context.items()),
            extra={"command_id": command_id, "operation": operation, **context},
        )
        return command_id

    # -------------------------------------------------------------------------
    # Enumeration and lookup
    # -------------------------------------------------------------------------

    @property
    def source_containers(self) -> list[SourceContainer]:
        """Live source containers in import order."""
        with self._lock:
            return [c for c in self._sources.values() if not c.removed]

    @property
    def output_containers(self) -> list[OutputContainer]:
        """Live output containers in creation order."""
        with self._lock:
            return [c for c in self._outputs.values() if not c.removed]

    @property
    def tracks(self) -> list[Track]:
        """Every track of every live source container, copies included."""
        return [t for source in self.source_containers for t in source.tracks]

    def get_source(self, source_id: int) -> SourceContainer:
        with self._lock:
            source = self._sources.get(source_id)
        if source is None or source.removed:
            raise NotFoundError(EntityKind.SOURCE_CONTAINER, source_id)
        return source

    def get_output(self, output_id: int) -> OutputContainer:
        with self._lock:
            output = self._outputs.get(output_id)
        if output is None or output.removed:
            raise NotFoundError(EntityKind.OUTPUT_CONTAINER, output_id)
        return output

    def get_track(self, track_id: int) -> Track:
        for source in self.source_containers:
            track = source.get_track(track_id)
            if track is not None:
                return track
        raise NotFoundError(EntityKind.TRACK, track_id)

    def get_chapter_list(self, chapter_list_id: int) -> ChapterList:
        for source in self.source_containers:
            if source.chapters is not None and source.chapters.id == chapter_list_id:
                return source.chapters
        raise NotFoundError(EntityKind.CHAPTER_LIST, chapter_list_id)

    def _owner_of(self, track: Track) -> SourceContainer:
        for source in self.source_containers:
            if source.has_track(track):
                return source
        raise NotFoundError(EntityKind.TRACK, track.id)

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    @staticmethod
    def _probe_source(introspector: MediaIntrospector, path: str) -> ProbeResult:
        """Check and probe one file. Thread-safe worker function."""
        if not os.access(path, os.R_OK):
            raise SourceAccessError(path)
        if not os.path.isfile(path):
            raise SourceFileTypeError(path)
        try:
            return introspector.get_file_info(Path(path))
        except MediaIntrospectionError as e:
            raise SourceProbeError(path, e) from e

    def import_sources(
        self, paths: Iterable[str | os.PathLike[str]]
    ) -> list[SourceContainer]:
        """Probe files in parallel and register them as source containers.

        All or nothing: if any file fails, nothing is registered.

        Returns:
            The new source containers, in the order of ``paths``.

        Raises:
            ImportSourcesError: One or more files could not be imported.
            MediaIntrospectionError: ffprobe is not available.
        """
        path_list = [os.fspath(p) for p in paths]
        self._command("import_sources", paths=path_list)
        if not path_list:
            return []

        # Resolve before fanning out so a missing ffprobe fails once
        introspector = self.introspector

        results: list[ProbeResult | None] = [None] * len(path_list)
        errors: list[SourceImportError | None] = [None] * len(path_list)
        workers = min(self.config.imports.max_workers, len(path_list))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._probe_source, introspector, path): position
                for position, path in enumerate(path_list)
            }
            for future in as_completed(futures):
                position = futures[future]
                try:
                    results[position] = future.result()
                except SourceImportError as e:
                    errors[position] = e

        failures = [e for e in errors if e is not None]
        if failures:
            logger.error(
                "Failed to import %d of %d source files",
                len(failures),
                len(path_list),
                extra={"paths": [e.path for e in failures]},
            )
            raise ImportSourcesError(failures)

        containers: list[SourceContainer] = []
        for result in results:
            assert result is not None
            for warning in result.warnings:
                logger.warning("%s: %s", result.file_path, warning)
            containers.append(SourceContainer.from_probe(result, self._allocator))

        with self._lock:
            for container in containers:
                self._sources[container.id] = container
        logger.info("Imported %d source file(s)", len(containers))
        return containers

    def remove_source(self, source_id: int) -> None:
        """Tombstone a source container and deselect its tracks everywhere."""
        self._command("remove_source", source_id=source_id)
        source = self.get_source(source_id)
        source.removed = True
        for output in self.output_containers:
            for track in source.tracks:
                if output.has_track(track):
                    output.remove_track(track)
            if source.chapters is not None and output.chapters is source.chapters:
                output.chapters = None

    # -------------------------------------------------------------------------
    # Outputs
    # -------------------------------------------------------------------------

    def create_outputs(
        self, paths: Iterable[str | os.PathLike[str]]
    ) -> list[OutputContainer]:
        """Create one output container per path ("" leaves it unset)."""
        path_list = [os.fspath(p) for p in paths]
        self._command("create_outputs", paths=path_list)
        outputs = [OutputContainer(p, allocator=self._allocator) for p in path_list]
        with self._lock:
            for output in outputs:
                self._outputs[output.id] = output
        return outputs

    def update_output(
        self,
        output_id: int,
        *,
        output: str | os.PathLike[str] | None = None,
        tags: Mapping[str, str | None] | None = None,
        track_ids: Sequence[int] | None = None,
        chapter_list_id: int | None = _UNSET,
    ) -> OutputContainer:
        """Change an output container's settings.

        ``track_ids`` replaces the selection in the given order.
        ``chapter_list_id=None`` detaches the chapter list. Every id is
        resolved before anything changes.

        Raises:
            NotFoundError: An id does not resolve.
        """
        self._command(
            "update_output",
            output_id=output_id,
            track_ids=list(track_ids) if track_ids is not None else None,
        )
        container = self.get_output(output_id)
        selection = (
            [self.get_track(i) for i in track_ids] if track_ids is not None else None
        )
        chapters = container.chapters
        if chapter_list_id is not _UNSET:
            chapters = (
                self.get_chapter_list(chapter_list_id)
                if chapter_list_id is not None
                else None
            )

        if output is not None:
            container.output = os.fspath(output)
        if tags is not None:
            container.tags = tags
        if selection is not None:
            container.set_tracks(selection)
        container.chapters = chapters
        return container

    def remove_output(self, output_id: int) -> None:
        """Cancel any running mix, then tombstone the output container."""
        self._command("remove_output", output_id=output_id)
        output = self.get_output(output_id)
        if output.status.state.is_active:
            try:
                output.cancel()
            except NotStartedError:
                logger.debug("Output container %d finished before removal", output_id)
        output.removed = True

    def add_track_to_output(self, output_id: int, track_id: int) -> None:
        self._command("add_track_to_output", output_id=output_id, track_id=track_id)
        output = self.get_output(output_id)
        output.add_track(self.get_track(track_id))

    def remove_track_from_output(self, output_id: int, track_id: int) -> None:
        self._command(
            "remove_track_from_output", output_id=output_id, track_id=track_id
        )
        output = self.get_output(output_id)
        output.remove_track(self.get_track(track_id))

    # -------------------------------------------------------------------------
    # Tracks
    # -------------------------------------------------------------------------

    def update_track(
        self,
        track_id: int,
        *,
        tags: Mapping[str, str | None] | None = None,
        dispositions: Mapping[str, bool] | None = None,
    ) -> Track:
        """Record tag and disposition changes on a track."""
        self._command("update_track", track_id=track_id)
        track = self.get_track(track_id)
        if tags is not None:
            track.update_tags(tags)
        if dispositions is not None:
            track.set_dispositions(dispositions)
        return track

    def copy_track(self, track_id: int) -> Track:
        """Copy a track and register the copy with its source container."""
        self._command("copy_track", track_id=track_id)
        track = self.get_track(track_id)
        source = self._owner_of(track)
        duplicate = track.copy(self._allocator)
        source.add_copied_track(duplicate)
        return duplicate

    def convert_track(self, track_id: int, options: Mapping[str, Any]) -> AudioTrack:
        """Request a conversion of an audio track.

        Raises:
            NotFoundError: The track id does not resolve.
            UnsupportedCodecError: The track is not audio, or the codec has
                no conversion path.
            InvalidConversionOptionsError: The options fail validation.
        """
        self._command("convert_track", track_id=track_id, codec=options.get("codec"))
        track = self.get_track(track_id)
        if not isinstance(track, AudioTrack):
            logger.error(
                "Track %d is %s; only audio tracks can be converted",
                track.id,
                track.track_type.value,
            )
            raise UnsupportedCodecError(options.get("codec"))
        track.convert(options)
        return track

    # -------------------------------------------------------------------------
    # Mixing
    # -------------------------------------------------------------------------

    def mix_output(
        self,
        output_id: int,
        on_status: Callable[[MixStatus], None] | None = None,
    ) -> MixCommand:
        """Start mixing an output container with a fresh runner."""
        command_id = self._command("mix_output", output_id=output_id)
        output = self.get_output(output_id)
        command = output.mix(self._runner_factory(), on_status)
        logger.debug(
            "Mix command for output container %d: %s",
            output_id,
            command.render(),
            extra={"command_id": command_id},
        )
        return command

    def cancel_output(self, output_id: int) -> None:
        self._command("cancel_output", output_id=output_id)
        self.get_output(output_id).cancel()

    def capabilities(self, refresh: bool = False) -> FFmpegCapabilities:
        """Return the detected ffmpeg capabilities, cached after first use."""
        with self._lock:
            if self._capabilities is None or refresh:
                self._capabilities = detect_ffmpeg_capabilities(
                    self.config.get_tool_path("ffmpeg")
                )
            return self._capabilities
