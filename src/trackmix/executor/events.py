"""Typed lifecycle events published by a mix runner."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from trackmix.executor.status import CodecInfo, MixProgress

# Error message produced when a mix is stopped by terminate()
KILLED_BY_SIGTERM = "ffmpeg was killed with signal SIGTERM"


@dataclass(frozen=True)
class StartEvent:
    """The ffmpeg process was spawned."""

    command: str


@dataclass(frozen=True)
class CodecInfoEvent:
    """ffmpeg finished describing its inputs."""

    info: CodecInfo


@dataclass(frozen=True)
class ProgressEvent:
    """ffmpeg reported progress."""

    progress: MixProgress


@dataclass(frozen=True)
class ErrorEvent:
    """ffmpeg failed to start or exited unsuccessfully.

    Attributes:
        message: Human-readable failure description.
        returncode: Process exit status, None if the process never ran.
    """

    message: str
    returncode: int | None = None

    @property
    def is_terminate_kill(self) -> bool:
        """Return True if the process was stopped by SIGTERM."""
        return self.message == KILLED_BY_SIGTERM or "signal SIGTERM" in self.message


@dataclass(frozen=True)
class DoneEvent:
    """ffmpeg exited successfully."""


MixEvent = Union[StartEvent, CodecInfoEvent, ProgressEvent, ErrorEvent, DoneEvent]

TERMINAL_EVENTS = (ErrorEvent, DoneEvent)
