"""Tests for FFmpegRunner with a mocked subprocess."""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from trackmix.executor.events import (
    CodecInfoEvent,
    DoneEvent,
    ErrorEvent,
    ProgressEvent,
    StartEvent,
)
from trackmix.executor.ffmpeg import FFmpegRunner, describe_exit
from trackmix.synthesis.command import MixCommand

STDERR = [
    "Input #1, matroska,webm, from 'movie.mkv':\n",
    "  Duration: 00:01:40.00, start: 0.000000, bitrate: 5123 kb/s\n",
    "    Stream #1:0: Video: h264 (High), yuv420p, 1920x1080\n",
    "Stream mapping:\n",
    "\n",
    "frame=  100 fps= 25 size=    1024kB time=00:00:50.00 bitrate=167.8kbits/s\n",
]


@pytest.fixture
def command() -> MixCommand:
    return MixCommand(
        metadata_text=";FFMETADATA1\n",
        input_args=("-i", "movie.mkv"),
        option_args=("-map", "1:0", "-c:0", "copy"),
        output_path="out.mkv",
    )


def fake_process(stderr_lines, returncode=0) -> MagicMock:
    process = MagicMock()
    process.pid = 4242
    process.stderr = iter(stderr_lines)
    process.wait.return_value = returncode
    process.poll.return_value = None
    return process


def run(runner, command):
    events = []
    runner.start(command, events.append)
    runner.wait(timeout=5)
    return events


class TestDescribeExit:
    def test_signal(self):
        assert describe_exit(-15, []) == "ffmpeg was killed with signal SIGTERM"

    def test_exit_code_with_stderr(self):
        message = describe_exit(1, ["first", "out.mkv: Permission denied"])
        assert message == "ffmpeg exited with code 1: out.mkv: Permission denied"

    def test_exit_code_without_stderr(self):
        assert describe_exit(183, []) == "ffmpeg exited with code 183"


class TestFFmpegRunner:
    """Tests for FFmpegRunner."""

    @patch("subprocess.Popen")
    def test_successful_run(self, mock_popen: MagicMock, command):
        process = fake_process(STDERR)
        mock_popen.return_value = process

        events = run(FFmpegRunner("ffmpeg"), command)

        assert [type(e) for e in events] == [
            StartEvent,
            CodecInfoEvent,
            ProgressEvent,
            DoneEvent,
        ]
        assert events[0].command == command.render("ffmpeg")
        assert events[1].info.video == "h264 (High)"
        assert events[2].progress.frames == 100
        assert events[2].progress.percent == pytest.approx(50.0)

        argv = mock_popen.call_args[0][0]
        assert argv == command.to_ffmpeg_argv("ffmpeg")
        assert mock_popen.call_args[1]["stdin"] == subprocess.PIPE
        process.stdin.write.assert_called_once_with(";FFMETADATA1\n")
        process.stdin.close.assert_called_once()

    @patch("subprocess.Popen")
    def test_failed_exit(self, mock_popen: MagicMock, command):
        mock_popen.return_value = fake_process(
            ["out.mkv: No such file or directory\n"], returncode=1
        )

        events = run(FFmpegRunner("ffmpeg"), command)

        assert isinstance(events[-1], ErrorEvent)
        assert events[-1].returncode == 1
        assert events[-1].message == (
            "ffmpeg exited with code 1: out.mkv: No such file or directory"
        )

    @patch("subprocess.Popen")
    def test_spawn_failure(self, mock_popen: MagicMock, command, caplog):
        mock_popen.side_effect = FileNotFoundError("No such file: 'ffmpeg'")

        with caplog.at_level(logging.ERROR):
            events = run(FFmpegRunner("ffmpeg"), command)

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].message.startswith("Failed to start ffmpeg")
        assert events[0].returncode is None
        assert "Failed to start ffmpeg" in caplog.text

    @patch("subprocess.Popen")
    def test_broken_stdin(self, mock_popen: MagicMock, command):
        process = fake_process([], returncode=1)
        process.stdin.write.side_effect = BrokenPipeError()
        mock_popen.return_value = process

        events = run(FFmpegRunner("ffmpeg"), command)

        assert isinstance(events[-1], ErrorEvent)
        assert events[-1].message == "ffmpeg exited with code 1"

    @patch("subprocess.Popen")
    def test_handler_errors_do_not_stop_delivery(
        self, mock_popen: MagicMock, command, caplog
    ):
        mock_popen.return_value = fake_process([])
        delivered = []

        def handler(event):
            delivered.append(event)
            if isinstance(event, StartEvent):
                raise RuntimeError("boom")

        runner = FFmpegRunner("ffmpeg")
        with caplog.at_level(logging.ERROR):
            runner.start(command, handler)
            runner.wait(timeout=5)

        assert [type(e) for e in delivered] == [StartEvent, DoneEvent]
        assert "Mix event handler failed on StartEvent" in caplog.text

    @patch("subprocess.Popen")
    def test_terminate(self, mock_popen: MagicMock, command):
        process = fake_process([])
        mock_popen.return_value = process
        runner = FFmpegRunner("ffmpeg")
        runner.start(command, lambda event: None)
        runner.wait(timeout=5)

        runner.terminate()

        process.terminate.assert_called_once()

    def test_terminate_before_start(self):
        FFmpegRunner("ffmpeg").terminate()

    @patch("subprocess.Popen")
    def test_terminate_after_exit(self, mock_popen: MagicMock, command):
        process = fake_process([])
        process.poll.return_value = 0
        mock_popen.return_value = process
        runner = FFmpegRunner("ffmpeg")
        runner.start(command, lambda event: None)
        runner.wait(timeout=5)

        runner.terminate()

        process.terminate.assert_not_called()

    @patch("trackmix.tools.require_tool", return_value="/opt/ffmpeg/bin/ffmpeg")
    def test_path_resolved_lazily(self, mock_require: MagicMock):
        runner = FFmpegRunner()
        mock_require.assert_not_called()
        assert runner.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
        mock_require.assert_called_once_with("ffmpeg")
