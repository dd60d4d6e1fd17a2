"""Mix execution for trackmix.

This module runs synthesized commands and tracks their progress:
- ffmpeg: MixRunner protocol and the FFmpegRunner subprocess adapter
- mixer: MixExecution, the per-mix status state machine
- events: lifecycle events published by runners
- progress: ffmpeg stderr parsing
- status: status snapshots and the append-only status log
"""

from trackmix.executor.events import (
    KILLED_BY_SIGTERM,
    CodecInfoEvent,
    DoneEvent,
    ErrorEvent,
    MixEvent,
    ProgressEvent,
    StartEvent,
)
from trackmix.executor.ffmpeg import FFmpegRunner, MixRunner, describe_exit
from trackmix.executor.mixer import MixExecution
from trackmix.executor.progress import CodecInfoCollector, parse_stderr_progress
from trackmix.executor.status import (
    CodecInfo,
    MixProgress,
    MixStatus,
    StatusLog,
)

__all__ = [
    # Runners
    "MixRunner",
    "FFmpegRunner",
    "describe_exit",
    # State machine
    "MixExecution",
    # Events
    "MixEvent",
    "StartEvent",
    "CodecInfoEvent",
    "ProgressEvent",
    "ErrorEvent",
    "DoneEvent",
    "KILLED_BY_SIGTERM",
    # Parsing
    "CodecInfoCollector",
    "parse_stderr_progress",
    # Status
    "CodecInfo",
    "MixProgress",
    "MixStatus",
    "StatusLog",
]
