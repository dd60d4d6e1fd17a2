"""Tests for source container formatters."""

import json

import pytest

from trackmix.domain.containers import SourceContainer
from trackmix.introspector.formatters import (
    format_human,
    format_json,
    format_track_line,
    frame_rate_to_fps,
)


class TestFrameRateToFps:
    @pytest.mark.parametrize(
        ("rate", "expected"),
        [
            ("24000/1001", "23.976"),
            ("25/1", "25"),
            ("29.97", "29.97"),
            ("1/0", None),
            ("abc", None),
        ],
    )
    def test_convert(self, rate, expected):
        assert frame_rate_to_fps(rate) == expected


class TestFormatTrackLine:
    def test_video(self, movie_source):
        line = format_track_line(movie_source.video_tracks[0])
        assert line == "#0 [video] h264 1920x1080 @ 23.976fps eng (default)"

    def test_audio(self, movie_source):
        line = format_track_line(movie_source.audio_tracks[0])
        assert line == '#1 [audio] aac 6ch eng "Surround" (default)'

    def test_pending_changes_are_shown(self, movie_source):
        audio = movie_source.audio_tracks[0]
        audio.title = "Stereo"
        audio.set_dispositions({"default": False})
        assert format_track_line(audio) == '#1 [audio] aac 6ch eng "Stereo"'


class TestFormatHuman:
    def test_sections(self, movie_source):
        output = format_human(movie_source, ("Something odd",))

        assert output.splitlines()[0] == f"File: {movie_source.path}"
        assert "Container: Matroska" in output
        assert "Duration: 3600.000s" in output
        assert "  Video:" in output
        assert "  Audio:" in output
        assert "  Subtitles:" in output
        assert "  Attachments:" not in output
        assert "Chapters: 2" in output
        assert "  - Something odd" in output

    def test_no_tracks(self, probe_factory, movie_path, allocator):
        source = SourceContainer.from_probe(probe_factory(movie_path, []), allocator)
        assert "(no tracks found)" in format_human(source)


class TestFormatJson:
    def test_structure(self, movie_source):
        data = json.loads(format_json(movie_source, ("Something odd",)))

        assert data["file"] == movie_source.path
        assert data["container"] == "matroska,webm"
        assert data["chapters"] == 2
        assert data["warnings"] == ["Something odd"]
        video, audio, subtitle = data["tracks"]
        assert video["width"] == 1920
        assert video["frame_rate"] == "24000/1001"
        assert audio["channels"] == 6
        assert audio["bitrate"] == 256000
        assert audio["sample_rate"] == 48000
        assert subtitle["type"] == "subtitle"
        assert "bitrate" not in subtitle
