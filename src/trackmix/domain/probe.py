"""Probed media metadata.

These records are the immutable snapshot a source container is built from.
They are produced by trackmix.introspector and never mutated afterwards;
tag and disposition maps are exposed as read-only mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

_EMPTY: Mapping[str, str] = MappingProxyType({})


def freeze_mapping(values: Mapping | None) -> Mapping:
    """Return a read-only copy of ``values`` (empty mapping for None)."""
    if not values:
        return _EMPTY
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class ProbedStream:
    """A single stream as reported by the probe."""

    index: int
    codec_type: str
    codec_name: str | None = None
    bit_rate: str | None = None
    sample_rate: str | None = None
    channels: int | None = None
    width: int | None = None
    height: int | None = None
    avg_frame_rate: str | None = None
    duration: str | None = None
    tags: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    disposition: Mapping[str, int] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", freeze_mapping(self.tags))
        object.__setattr__(self, "disposition", freeze_mapping(self.disposition))


@dataclass(frozen=True)
class ProbedChapter:
    """A chapter as reported by the probe."""

    id: int
    time_base: str
    start: int
    end: int
    title: str = ""


@dataclass(frozen=True)
class ProbedFormat:
    """Container-level probe data."""

    format_name: str | None = None
    duration: float | None = None
    bit_rate: int | None = None
    size: int | None = None
    tags: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", freeze_mapping(self.tags))


@dataclass(frozen=True)
class ProbeResult:
    """Complete probe result for one media file."""

    file_path: str
    format: ProbedFormat
    streams: tuple[ProbedStream, ...] = ()
    chapters: tuple[ProbedChapter, ...] = ()
    warnings: tuple[str, ...] = ()
