"""Shared test fixtures for trackmix."""

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path

import pytest

from trackmix.config import TrackmixConfig, clear_config_cache
from trackmix.domain import (
    IdAllocator,
    ProbedChapter,
    ProbedFormat,
    ProbedStream,
    ProbeResult,
    SourceContainer,
)
from trackmix.executor.events import MixEvent
from trackmix.introspector import StubIntrospector
from trackmix.synthesis.command import MixCommand


def load_ffprobe_fixture(name: str) -> dict:
    """Load an ffprobe JSON fixture by name.

    Args:
        name: Name of the fixture file (without .json extension).

    Returns:
        Parsed JSON data from the fixture.
    """
    fixture_path = Path(__file__).parent / "fixtures" / "ffprobe" / f"{name}.json"
    return json.loads(fixture_path.read_text())


def make_probe(
    path: str,
    streams: list[ProbedStream],
    chapters: tuple[ProbedChapter, ...] = (),
    format_name: str = "matroska,webm",
    tags: dict[str, str] | None = None,
) -> ProbeResult:
    """Build a ProbeResult for a file without running ffprobe."""
    return ProbeResult(
        file_path=path,
        format=ProbedFormat(
            format_name=format_name,
            duration=3600.0,
            bit_rate=5_000_000,
            size=2_250_000_000,
            tags=tags or {},
        ),
        streams=tuple(streams),
        chapters=chapters,
    )


class FakeRunner:
    """MixRunner double that records calls and lets tests publish events."""

    def __init__(self) -> None:
        self.command: MixCommand | None = None
        self.on_event: Callable[[MixEvent], None] | None = None
        self.terminated = False

    def start(self, command: MixCommand, on_event: Callable[[MixEvent], None]) -> None:
        self.command = command
        self.on_event = on_event

    def terminate(self) -> None:
        self.terminated = True

    def emit(self, event: MixEvent) -> None:
        assert self.on_event is not None, "runner was never started"
        self.on_event(event)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep tests away from the user's config file and TRACKMIX_* variables."""
    for name in list(os.environ):
        if name.startswith("TRACKMIX_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("TRACKMIX_CONFIG_PATH", str(tmp_path / "no-config.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees trackmix records."""
    yield
    package_logger = logging.getLogger("trackmix")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def allocator() -> IdAllocator:
    """Fresh allocator so ids are reproducible within a test."""
    return IdAllocator()


@pytest.fixture
def config() -> TrackmixConfig:
    return TrackmixConfig()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def movie_path(tmp_path: Path) -> str:
    """An existing file standing in for a Matroska movie."""
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return str(path)


@pytest.fixture
def commentary_path(tmp_path: Path) -> str:
    """An existing file standing in for an external audio/subtitle file."""
    path = tmp_path / "commentary.mka"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return str(path)


@pytest.fixture
def movie_probe(movie_path: str) -> ProbeResult:
    """Video, audio and subtitle streams plus two chapters."""
    return make_probe(
        movie_path,
        [
            ProbedStream(
                index=0,
                codec_type="video",
                codec_name="h264",
                width=1920,
                height=1080,
                avg_frame_rate="24000/1001",
                tags={"DURATION": "01:00:00.000000000", "language": "eng"},
                disposition={"default": 1, "forced": 0},
            ),
            ProbedStream(
                index=1,
                codec_type="audio",
                codec_name="aac",
                bit_rate="256000",
                sample_rate="48000",
                channels=6,
                tags={"language": "eng", "title": "Surround"},
                disposition={"default": 1},
            ),
            ProbedStream(
                index=2,
                codec_type="subtitle",
                codec_name="subrip",
                tags={"language": "eng"},
            ),
        ],
        chapters=(
            ProbedChapter(
                id=0, time_base="1/1000", start=0, end=600000, title="Opening"
            ),
            ProbedChapter(
                id=1, time_base="1/1000", start=600000, end=3600000, title="Finale"
            ),
        ),
    )


@pytest.fixture
def commentary_probe(commentary_path: str) -> ProbeResult:
    """An audio stream and a subtitle stream, no chapters."""
    return make_probe(
        commentary_path,
        [
            ProbedStream(
                index=0,
                codec_type="audio",
                codec_name="ac3",
                bit_rate="192000",
                channels=2,
                tags={"language": "eng", "title": "Director Commentary"},
            ),
            ProbedStream(
                index=1,
                codec_type="subtitle",
                codec_name="ass",
                tags={"language": "eng"},
            ),
        ],
    )


@pytest.fixture
def movie_source(movie_probe: ProbeResult, allocator: IdAllocator) -> SourceContainer:
    return SourceContainer.from_probe(movie_probe, allocator)


@pytest.fixture
def commentary_source(
    commentary_probe: ProbeResult, allocator: IdAllocator
) -> SourceContainer:
    return SourceContainer.from_probe(commentary_probe, allocator)


@pytest.fixture
def stub_introspector(
    movie_probe: ProbeResult, commentary_probe: ProbeResult
) -> StubIntrospector:
    """Introspector returning the movie and commentary probes."""
    return StubIntrospector({p.file_path: p for p in (movie_probe, commentary_probe)})


@pytest.fixture
def probe_factory() -> Callable[..., ProbeResult]:
    """Return make_probe for tests that build their own files."""
    return make_probe


@pytest.fixture
def ffprobe_movie_fixture() -> dict:
    """Load the movie-with-chapters ffprobe fixture."""
    return load_ffprobe_fixture("movie_with_chapters")
