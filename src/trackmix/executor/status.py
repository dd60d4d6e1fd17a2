"""Status snapshots recorded while an output container mixes.

Snapshots are immutable. A status log only ever grows; the current status
is its last entry.
"""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from trackmix.domain.enums import MixState


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CodecInfo:
    """Input codec details reported by ffmpeg before mixing starts."""

    format: str | None = None
    duration: str | None = None
    audio: str | None = None
    audio_details: str | None = None
    video: str | None = None
    video_details: str | None = None


@dataclass(frozen=True)
class MixProgress:
    """One progress report from a running mix."""

    frames: int | None = None
    current_fps: float | None = None
    current_kbps: float | None = None
    target_size: int | None = None  # kB written so far
    timemark: str | None = None
    percent: float | None = None


@dataclass(frozen=True)
class MixStatus:
    """Point-in-time snapshot of an output container's mix."""

    state: MixState
    time: datetime = dataclasses.field(default_factory=_now)
    command: str | None = None
    codec_info: CodecInfo | None = None
    progress: MixProgress | None = None
    error: str | None = None

    def evolve(self, **changes: Any) -> MixStatus:
        """Return a new snapshot carrying this one's fields plus ``changes``."""
        changes.setdefault("time", _now())
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "time": self.time.isoformat(),
            "state": self.state.value,
            "command": self.command,
            "codec_info": (
                dataclasses.asdict(self.codec_info) if self.codec_info else None
            ),
            "progress": dataclasses.asdict(self.progress) if self.progress else None,
            "error": self.error,
        }


class StatusLog:
    """Append-only, thread-safe sequence of MixStatus snapshots.

    A new log holds a single ``idle`` snapshot.
    """

    def __init__(self) -> None:
        self._entries: list[MixStatus] = [MixStatus(state=MixState.IDLE)]
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def entries(self) -> tuple[MixStatus, ...]:
        """All snapshots, oldest first."""
        with self._lock:
            return tuple(self._entries)

    @property
    def latest(self) -> MixStatus:
        """The current status."""
        with self._lock:
            return self._entries[-1]

    def append(self, status: MixStatus) -> None:
        with self._lock:
            self._entries.append(status)
