"""What the installed ffmpeg can do."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class ToolStatus(Enum):
    AVAILABLE = "available"
    MISSING = "missing"  # not configured and not on PATH
    ERROR = "error"  # found, but `ffmpeg -version` failed


@dataclass
class FFmpegCapabilities:
    """Result of probing an ffmpeg build.

    Name sets hold casefolded names as listed by ``ffmpeg -encoders``,
    ``-decoders``, ``-muxers``, ``-demuxers`` and ``-filters``.
    """

    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    detected_at: datetime | None = None

    encoders: set[str] = field(default_factory=set)
    decoders: set[str] = field(default_factory=set)
    muxers: set[str] = field(default_factory=set)
    demuxers: set[str] = field(default_factory=set)
    filters: set[str] = field(default_factory=set)

    def is_available(self) -> bool:
        return self.status is ToolStatus.AVAILABLE

    def has_encoder(self, name: str) -> bool:
        return name.casefold() in self.encoders

    def has_decoder(self, name: str) -> bool:
        return name.casefold() in self.decoders

    def has_muxer(self, name: str) -> bool:
        return name.casefold() in self.muxers

    def has_demuxer(self, name: str) -> bool:
        return name.casefold() in self.demuxers

    def has_filter(self, name: str) -> bool:
        return name.casefold() in self.filters

    def can_convert_to(self, codec: str) -> bool:
        """True if ``codec`` is a conversion target and its encoder is built in."""
        from trackmix.domain.enums import AUDIO_ENCODERS, CONVERTIBLE_AUDIO_CODECS

        return codec in CONVERTIBLE_AUDIO_CODECS and self.has_encoder(
            AUDIO_ENCODERS[codec]
        )
