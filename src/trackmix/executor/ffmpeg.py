"""FFmpeg subprocess runner.

The runner spawns ffmpeg for one MixCommand, feeds the chapter metadata to
input 0 on stdin, and reads stderr on a separate thread. Everything it
observes is turned into lifecycle events on a queue; a dispatcher thread
delivers them, in order, to the caller's handler.
"""

from __future__ import annotations

import contextvars
import logging
import queue
import signal
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from trackmix.executor.events import (
    TERMINAL_EVENTS,
    CodecInfoEvent,
    DoneEvent,
    ErrorEvent,
    MixEvent,
    ProgressEvent,
    StartEvent,
)
from trackmix.executor.progress import CodecInfoCollector, parse_stderr_progress

if TYPE_CHECKING:
    from trackmix.synthesis.command import MixCommand

logger = logging.getLogger(__name__)

EventHandler = Callable[[MixEvent], None]


class MixRunner(Protocol):
    """Protocol for the process side of a mix.

    A runner publishes StartEvent, then any number of CodecInfoEvent and
    ProgressEvent, then exactly one ErrorEvent or DoneEvent.
    """

    def start(self, command: MixCommand, on_event: EventHandler) -> None:
        """Start the mix; events are delivered to ``on_event``."""
        ...

    def terminate(self) -> None:
        """Ask the running process to stop."""
        ...


def describe_exit(returncode: int, stderr_tail: list[str]) -> str:
    """Build the error message for a failed ffmpeg exit.

    Args:
        returncode: Process return code (negative for a signal).
        stderr_tail: Last stderr lines, newest last.
    """
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"ffmpeg was killed with signal {name}"
    message = f"ffmpeg exited with code {returncode}"
    if stderr_tail:
        message = f"{message}: {stderr_tail[-1]}"
    return message


class FFmpegRunner:
    """Run one ffmpeg process and publish its lifecycle events.

    Args:
        ffmpeg_path: ffmpeg executable. None resolves it from configuration
            or PATH when the mix starts.
    """

    STDERR_TAIL_LINES = 20

    def __init__(self, ffmpeg_path: Path | str | None = None) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._process: subprocess.Popen[str] | None = None
        self._events: queue.Queue[MixEvent] = queue.Queue()
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    @property
    def ffmpeg_path(self) -> Path | str:
        if self._ffmpeg_path is None:
            from trackmix.tools import require_tool

            self._ffmpeg_path = require_tool("ffmpeg")
        return self._ffmpeg_path

    def start(self, command: MixCommand, on_event: EventHandler) -> None:
        """Spawn ffmpeg and start the reader and dispatcher threads.

        Never raises for process failures; they become an ErrorEvent.
        """
        self._spawn_thread(self._dispatch, on_event, name="dispatch")
        try:
            argv = command.to_ffmpeg_argv(self.ffmpeg_path)
            with self._lock:
                self._process = subprocess.Popen(  # nosec B603
                    argv,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                )
        except (OSError, RuntimeError) as e:
            logger.error("Failed to start ffmpeg: %s", e)
            self._events.put(ErrorEvent(f"Failed to start ffmpeg: {e}"))
            return

        self._events.put(StartEvent(command.render(self.ffmpeg_path)))
        self._write_metadata(command.metadata_text)
        self._spawn_thread(self._read_stderr, name="stderr")
        logger.debug("Started ffmpeg (pid %d)", self._process.pid)

    def terminate(self) -> None:
        """Send SIGTERM to the running process, if any."""
        with self._lock:
            process = self._process
        if process is None or process.poll() is not None:
            return
        logger.debug("Sending SIGTERM to ffmpeg (pid %d)", process.pid)
        process.terminate()

    def wait(self, timeout: float | None = None) -> None:
        """Block until every event has been delivered."""
        for thread in list(self._threads):
            thread.join(timeout)

    def _spawn_thread(
        self, target: Callable[..., None], *args: object, name: str
    ) -> threading.Thread:
        # Run in a copy of the caller's context so log records keep the
        # mix context of the output being mixed
        context = contextvars.copy_context()
        thread = threading.Thread(
            target=context.run,
            args=(target, *args),
            name=f"ffmpeg-{name}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()
        return thread

    def _write_metadata(self, text: str) -> None:
        assert self._process is not None and self._process.stdin is not None
        try:
            self._process.stdin.write(text)
            self._process.stdin.close()
        except (BrokenPipeError, OSError) as e:
            # ffmpeg exited early; the exit status reports why
            logger.debug("Could not write chapter metadata: %s", e)

    def _read_stderr(self) -> None:
        process = self._process
        assert process is not None and process.stderr is not None
        collector = CodecInfoCollector()
        tail: deque[str] = deque(maxlen=self.STDERR_TAIL_LINES)

        try:
            for raw_line in process.stderr:
                line = raw_line.rstrip()
                if not line:
                    continue
                tail.append(line)
                info = collector.feed(line)
                if info is not None:
                    self._events.put(CodecInfoEvent(info))
                    continue
                progress = parse_stderr_progress(line, collector.duration_seconds)
                if progress is not None:
                    self._events.put(ProgressEvent(progress))
        except (ValueError, OSError) as e:
            # Pipe closed or process terminated
            logger.debug("Stderr reader stopped: %s", e)

        returncode = process.wait()
        if returncode == 0:
            self._events.put(DoneEvent())
        else:
            message = describe_exit(returncode, list(tail))
            self._events.put(ErrorEvent(message, returncode))

    def _dispatch(self, on_event: EventHandler) -> None:
        while True:
            event = self._events.get()
            try:
                on_event(event)
            except Exception:
                logger.exception(
                    "Mix event handler failed on %s", type(event).__name__
                )
            if isinstance(event, TERMINAL_EVENTS):
                return
