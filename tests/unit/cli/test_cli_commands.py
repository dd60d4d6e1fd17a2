"""Tests for the trackmix CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from trackmix.cli import main
from trackmix.cli.exit_codes import ExitCode
from trackmix.cli.mix import parse_tag, parse_track_spec
from trackmix.executor.events import DoneEvent, ErrorEvent, ProgressEvent, StartEvent
from trackmix.executor.status import MixProgress
from trackmix.tools import FFmpegCapabilities, ToolStatus


class ScriptedRunner:
    """Runner that replays a fixed list of events as soon as it starts."""

    def __init__(self, *events) -> None:
        self.events = events
        self.command = None

    def start(self, command, on_event) -> None:
        self.command = command
        on_event(StartEvent(command.render()))
        for event in self.events:
            on_event(event)

    def terminate(self) -> None:
        pass


@pytest.fixture
def cli_obj(config, stub_introspector) -> dict:
    return {"config": config, "introspector": stub_introspector}


@pytest.fixture
def out_path(tmp_path: Path) -> str:
    return str(tmp_path / "out" / "mixed.mkv")


def invoke(obj: dict, *args: str):
    return CliRunner().invoke(main, list(args), obj=obj)


class TestParseTrackSpec:
    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("movie.mkv:1", ("movie.mkv", 1, None)),
            ("movie.mkv:1@2.5", ("movie.mkv", 1, 2.5)),
            ("movie.mkv:1@-0.5", ("movie.mkv", 1, -0.5)),
            ("we@home.mkv:2", ("we@home.mkv", 2, None)),
            ("/media/a:b.mkv:0", ("/media/a:b.mkv", 0, None)),
        ],
    )
    def test_valid(self, spec, expected):
        assert parse_track_spec(spec) == expected

    @pytest.mark.parametrize("spec", ["movie.mkv", ":1", "movie.mkv:one"])
    def test_invalid(self, spec):
        with pytest.raises(click.BadParameter):
            parse_track_spec(spec)


class TestParseTag:
    def test_value(self):
        assert parse_tag("title=Director's Cut") == ("title", "Director's Cut")
        assert parse_tag("comment=a=b") == ("comment", "a=b")

    def test_empty_value_clears(self):
        assert parse_tag("title=") == ("title", None)

    @pytest.mark.parametrize("value", ["title", "=Cut"])
    def test_invalid(self, value):
        with pytest.raises(click.BadParameter):
            parse_tag(value)


class TestMixCommand:
    """Tests for the mix command."""

    def test_dry_run(self, cli_obj, movie_path, commentary_path, out_path):
        result = invoke(
            cli_obj,
            "mix",
            "-o",
            out_path,
            "-t",
            f"{movie_path}:0",
            "-t",
            f"{movie_path}:1",
            "-t",
            f"{commentary_path}:0@1.5",
            "--tag",
            "title=Cut",
            "--chapters",
            movie_path,
            "--dry-run",
        )

        assert result.exit_code == 0, result.output
        line = result.output.strip()
        assert line.startswith("ffmpeg ")
        assert "-f ffmetadata -i pipe:0" in line
        assert f"-i {movie_path} -itsoffset 1.5 -i {commentary_path}" in line
        assert "-map 1:0" in line
        assert "-map 1:1" in line
        assert "-map 2:0" in line
        assert "-map_chapters 1" in line
        assert "-metadata title=Cut" in line
        assert line.endswith(out_path)
        assert not Path(out_path).parent.exists()

    def test_track_listed_twice(self, cli_obj, movie_path, out_path):
        result = invoke(
            cli_obj,
            "mix",
            "-o",
            out_path,
            "-t",
            f"{movie_path}:1",
            "-t",
            f"{movie_path}:1",
            "--dry-run",
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("-map 1:1") == 2
        assert "-map_chapters" not in result.output

    def test_missing_file(self, cli_obj, tmp_path, out_path):
        result = invoke(
            cli_obj, "mix", "-o", out_path, "-t", f"{tmp_path}/gone.mkv:0", "--dry-run"
        )
        assert result.exit_code == ExitCode.TARGET_NOT_FOUND
        assert "No read access to file" in result.output

    def test_unknown_stream(self, cli_obj, movie_path, out_path):
        result = invoke(
            cli_obj, "mix", "-o", out_path, "-t", f"{movie_path}:9", "--dry-run"
        )
        assert result.exit_code == ExitCode.NO_TRACKS_FOUND
        assert "has no stream 9" in result.output

    def test_output_collides_with_input(self, cli_obj, movie_path):
        result = invoke(
            cli_obj, "mix", "-o", movie_path, "-t", f"{movie_path}:0", "--dry-run"
        )
        assert result.exit_code == ExitCode.INVALID_MIX
        assert "Error:" in result.output

    def test_bad_track_spec(self, cli_obj, out_path):
        result = invoke(cli_obj, "mix", "-o", out_path, "-t", "movie.mkv")
        assert result.exit_code == 2
        assert "expected PATH:INDEX[@DELAY]" in result.output

    def test_mix_reports_progress(self, cli_obj, movie_path, out_path):
        runner = ScriptedRunner(
            ProgressEvent(MixProgress(timemark="00:30:00", percent=50.0)),
            DoneEvent(),
        )
        cli_obj["runner_factory"] = lambda: runner

        result = invoke(cli_obj, "mix", "-o", out_path, "-t", f"{movie_path}:0")

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "Status: mixing"
        assert lines[1] == f"Running: {runner.command.render()}"
        assert "  50% (00:30:00)" in lines
        assert lines[-1] == "Status: done"

    def test_mix_failure(self, cli_obj, movie_path, out_path):
        runner = ScriptedRunner(ErrorEvent("ffmpeg exited with code 1", 1))
        cli_obj["runner_factory"] = lambda: runner

        result = invoke(cli_obj, "mix", "-o", out_path, "-t", f"{movie_path}:0")

        assert result.exit_code == ExitCode.OPERATION_FAILED
        assert "Status: error" in result.output
        assert "Error: ffmpeg exited with code 1" in result.output


class TestInspectCommand:
    """Tests for the inspect command."""

    def test_human(self, cli_obj, movie_path):
        result = invoke(cli_obj, "inspect", movie_path)
        assert result.exit_code == 0, result.output
        assert f"File: {movie_path}" in result.output
        assert "#1 [audio] aac 6ch eng" in result.output

    def test_json(self, cli_obj, movie_path):
        result = invoke(cli_obj, "inspect", "--format", "json", movie_path)
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["file"] == movie_path
        assert len(data["tracks"]) == 3

    def test_missing_file(self, cli_obj, tmp_path):
        result = invoke(cli_obj, "inspect", str(tmp_path / "gone.mkv"))
        assert result.exit_code == ExitCode.TARGET_NOT_FOUND
        assert "File not found" in result.output

    @patch(
        "trackmix.cli.inspect.FFprobeIntrospector.is_available", return_value=False
    )
    def test_ffprobe_missing(self, mock_available, config, movie_path):
        result = invoke({"config": config}, "inspect", movie_path)
        assert result.exit_code == ExitCode.FFPROBE_NOT_FOUND
        assert "ffprobe is not installed" in result.output


class TestCapabilitiesCommand:
    @patch("trackmix.session.detect_ffmpeg_capabilities")
    def test_available(self, mock_detect, config):
        mock_detect.return_value = FFmpegCapabilities(
            path=Path("/usr/bin/ffmpeg"),
            version="6.1.1",
            status=ToolStatus.AVAILABLE,
            encoders={"libopus", "aac"},
            muxers={"matroska"},
        )

        result = invoke({"config": config}, "capabilities")

        assert result.exit_code == 0, result.output
        assert "ffmpeg: available (6.1.1)" in result.output
        assert "  Encoders: 2" in result.output
        assert "  Convert to opus: yes" in result.output

    @patch("trackmix.session.detect_ffmpeg_capabilities")
    def test_json(self, mock_detect, config):
        mock_detect.return_value = FFmpegCapabilities(
            status=ToolStatus.AVAILABLE, encoders={"aac"}
        )

        result = invoke({"config": config}, "capabilities", "--json")

        data = json.loads(result.output)
        assert data["status"] == "available"
        assert data["conversions"] == {"opus": False}

    @patch("trackmix.session.detect_ffmpeg_capabilities")
    def test_missing(self, mock_detect, config):
        mock_detect.return_value = FFmpegCapabilities(
            status_message="ffmpeg not found in PATH"
        )

        result = invoke({"config": config}, "capabilities")

        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
        assert "ffmpeg: missing (unknown version)" in result.output
        assert "ffmpeg not found in PATH" in result.output
