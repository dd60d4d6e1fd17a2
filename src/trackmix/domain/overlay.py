"""Overlay of pending changes on top of probed, immutable metadata.

Reads go through effective(): the overlay value wins when present, the
probed value otherwise. Writes only ever touch the overlay.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

T = TypeVar("T")

# Renders extra per-track arguments given (input_index, output_index)
OptionRenderer = Callable[[int, int], list[str]]


def effective(probed: T, overlay: T | None) -> T:
    """Return the overlay value if one is set, else the probed value."""
    return overlay if overlay is not None else probed


@dataclass
class TrackOverlay:
    """Pending, uncommitted edits for a single track.

    Tag values of None are explicit unsets: they hide the probed tag and are
    emitted as a "clear" metadata argument. A tag that was never written is
    simply absent from ``tags``.
    """

    tags: dict[str, str | None] = field(default_factory=dict)
    dispositions: dict[str, bool] | None = None
    delay: float | None = None
    codec: str | None = None
    bitrate: int | None = None
    channels: int | None = None
    sample_rate: int | None = None
    conversion: dict[str, Any] | None = None
    custom_options: list[OptionRenderer] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Return True if no change has been recorded."""
        return (
            not self.tags
            and self.dispositions is None
            and self.delay is None
            and self.codec is None
            and self.bitrate is None
            and self.channels is None
            and self.sample_rate is None
            and self.conversion is None
            and not self.custom_options
        )

    def clone(self) -> TrackOverlay:
        """Return a deep copy that shares no mutable state with this overlay.

        Option renderers are copied by reference into a new list.
        """
        return TrackOverlay(
            tags=dict(self.tags),
            dispositions=(
                dict(self.dispositions) if self.dispositions is not None else None
            ),
            delay=self.delay,
            codec=self.codec,
            bitrate=self.bitrate,
            channels=self.channels,
            sample_rate=self.sample_rate,
            conversion=copy.deepcopy(self.conversion),
            custom_options=list(self.custom_options),
        )


@dataclass
class ChapterOverlay:
    """Pending edits for a single chapter entry."""

    time_base: str | None = None
    start: int | None = None
    end: int | None = None
    title: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True if no field has been overridden."""
        return (
            self.time_base is None
            and self.start is None
            and self.end is None
            and self.title is None
        )

    def clone(self) -> ChapterOverlay:
        """Return an independent copy."""
        return ChapterOverlay(
            time_base=self.time_base,
            start=self.start,
            end=self.end,
            title=self.title,
        )
