"""Track and container model for trackmix.

This package holds the in-memory edit model:

- Probe snapshots: ProbeResult, ProbedStream, ProbedFormat, ProbedChapter
- Tracks: Track and its variants, created from probed streams
- Chapters: ChapterList, ChapterEntry
- Containers: SourceContainer (probed input), OutputContainer (mix target)

Usage:
    from trackmix.domain import OutputContainer, SourceContainer
    from trackmix.domain import TrackType, MixState
"""

from .chapters import FFMETADATA_HEADER, ChapterEntry, ChapterList
from .containers import Container, OutputContainer, SourceContainer
from .enums import (
    AUDIO_ENCODERS,
    CONVERTIBLE_AUDIO_CODECS,
    UNKNOWN_CODEC,
    MixState,
    TrackType,
)
from .ids import DEFAULT_ALLOCATOR, IdAllocator
from .overlay import ChapterOverlay, TrackOverlay, effective
from .probe import ProbedChapter, ProbedFormat, ProbedStream, ProbeResult
from .tracks import (
    AttachmentTrack,
    AudioTrack,
    DataTrack,
    SubtitleTrack,
    Track,
    VideoTrack,
    create_track,
)

__all__ = [
    # Probe snapshots
    "ProbeResult",
    "ProbedStream",
    "ProbedFormat",
    "ProbedChapter",
    # Tracks
    "Track",
    "VideoTrack",
    "AudioTrack",
    "SubtitleTrack",
    "AttachmentTrack",
    "DataTrack",
    "create_track",
    "TrackOverlay",
    "effective",
    # Chapters
    "ChapterList",
    "ChapterEntry",
    "ChapterOverlay",
    "FFMETADATA_HEADER",
    # Containers
    "Container",
    "SourceContainer",
    "OutputContainer",
    # Ids
    "IdAllocator",
    "DEFAULT_ALLOCATOR",
    # Enums
    "TrackType",
    "MixState",
    "UNKNOWN_CODEC",
    "CONVERTIBLE_AUDIO_CODECS",
    "AUDIO_ENCODERS",
]
