"""Tests for FFprobeIntrospector with a mocked ffprobe."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from trackmix.introspector import (
    FFprobeIntrospector,
    MediaIntrospectionError,
    StubIntrospector,
)


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


@pytest.fixture
def introspector() -> FFprobeIntrospector:
    return FFprobeIntrospector(ffprobe_path=Path("/usr/bin/ffprobe"), timeout=5)


class TestFFprobeIntrospector:
    """Tests for FFprobeIntrospector."""

    @patch("subprocess.run")
    def test_runs_ffprobe(
        self, mock_run: MagicMock, introspector, media_file, ffprobe_movie_fixture
    ):
        mock_run.return_value = MagicMock(
            returncode=0, stdout=json.dumps(ffprobe_movie_fixture), stderr=""
        )

        result = introspector.get_file_info(media_file)

        argv = mock_run.call_args[0][0]
        assert argv[0] == "/usr/bin/ffprobe"
        assert {"-show_streams", "-show_format", "-show_chapters"} <= set(argv)
        assert argv[-1] == str(media_file)
        assert mock_run.call_args[1]["timeout"] == 5
        assert result.file_path == str(media_file)
        assert len(result.streams) == 5
        assert len(result.chapters) == 2

    def test_missing_file(self, introspector, tmp_path):
        with pytest.raises(MediaIntrospectionError, match="File not found"):
            introspector.get_file_info(tmp_path / "missing.mkv")

    @patch("subprocess.run")
    def test_ffprobe_failure(self, mock_run: MagicMock, introspector, media_file):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["ffprobe"], stderr="Invalid data found when processing input"
        )
        with pytest.raises(MediaIntrospectionError, match="Invalid data found"):
            introspector.get_file_info(media_file)

    @patch("subprocess.run")
    def test_timeout(self, mock_run: MagicMock, introspector, media_file):
        mock_run.side_effect = subprocess.TimeoutExpired(["ffprobe"], 5)
        with pytest.raises(MediaIntrospectionError, match="timed out"):
            introspector.get_file_info(media_file)

    @patch("subprocess.run")
    def test_invalid_json(self, mock_run: MagicMock, introspector, media_file):
        mock_run.return_value = MagicMock(returncode=0, stdout="not json", stderr="")
        with pytest.raises(MediaIntrospectionError, match="Invalid ffprobe output"):
            introspector.get_file_info(media_file)

    @patch("subprocess.run")
    def test_missing_streams_key(self, mock_run: MagicMock, introspector, media_file):
        mock_run.return_value = MagicMock(
            returncode=0, stdout=json.dumps({"format": {}}), stderr=""
        )
        with pytest.raises(MediaIntrospectionError, match="Missing 'streams'"):
            introspector.get_file_info(media_file)

    @patch("subprocess.run")
    def test_cannot_execute(self, mock_run: MagicMock, introspector, media_file):
        mock_run.side_effect = PermissionError("Permission denied")
        with pytest.raises(MediaIntrospectionError, match="Cannot run ffprobe"):
            introspector.get_file_info(media_file)

    @patch("trackmix.tools.find_tool", return_value=None)
    def test_not_installed(self, mock_find: MagicMock):
        with pytest.raises(MediaIntrospectionError, match="ffprobe is not installed"):
            FFprobeIntrospector()
        assert not FFprobeIntrospector.is_available()


class TestStubIntrospector:
    def test_preset_result(self, stub_introspector, movie_probe, movie_path):
        assert stub_introspector.get_file_info(Path(movie_path)) is movie_probe
        assert stub_introspector.calls == [Path(movie_path)]

    def test_placeholder_streams(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"")
        result = StubIntrospector().get_file_info(path)
        assert [s.codec_type for s in result.streams] == ["video", "audio"]
        assert result.format.format_name == "mov,mp4,m4a,3gp,3g2,mj2"

    def test_placeholder_subtitles_for_matroska(self, tmp_path):
        path = tmp_path / "clip.mkv"
        path.write_bytes(b"")
        result = StubIntrospector().get_file_info(path)
        assert result.streams[-1].codec_name == "subrip"

    def test_missing_file(self, tmp_path):
        with pytest.raises(MediaIntrospectionError):
            StubIntrospector().get_file_info(tmp_path / "missing.mkv")
