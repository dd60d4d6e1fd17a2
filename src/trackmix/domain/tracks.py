"""Track model: probed streams with an overlay of pending edits.

A track wraps one ProbedStream (never mutated) and one TrackOverlay (owned
exclusively by the track). Every attribute read prefers the overlay, every
write lands in the overlay. Copies share the probed stream but get a fresh
id and a cloned overlay.

The variant set is closed: video, audio, subtitle, attachment and data.
Argument emission dispatches on ``track_type`` in trackmix.synthesis.options.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, ClassVar

from trackmix.domain.enums import (
    ATTACHMENT_CODECS,
    AUDIO_CODECS,
    CONVERTIBLE_AUDIO_CODECS,
    DATA_CODEC,
    SUBTITLE_CODECS,
    UNKNOWN_CODEC,
    VIDEO_CODECS,
    TrackType,
)
from trackmix.domain.ids import DEFAULT_ALLOCATOR, IdAllocator
from trackmix.domain.overlay import OptionRenderer, TrackOverlay, effective
from trackmix.domain.probe import ProbedStream
from trackmix.errors import UnsupportedCodecError

logger = logging.getLogger(__name__)


def track_type_for(codec_type: str | None) -> TrackType:
    """Map an ffprobe codec_type onto a track variant.

    Unknown codec types are treated as data tracks.

    Args:
        codec_type: The probed codec_type string.

    Returns:
        Matching TrackType.
    """
    try:
        return TrackType(codec_type)
    except ValueError:
        logger.warning("Unknown codec type %r, treating as data", codec_type)
        return TrackType.DATA


def parse_duration(value: str | None) -> float:
    """Parse a probed duration into seconds.

    Accepts ``HH:MM:SS[.fraction]`` (the Matroska DURATION tag form) and
    plain decimal seconds (ffprobe's stream ``duration``).

    Args:
        value: Duration string, or None.

    Returns:
        Duration in seconds; 0.0 for missing or malformed values.
    """
    if not value:
        return 0.0
    parts = value.strip().split(":")
    try:
        if len(parts) == 1:
            seconds = float(parts[0])
        elif len(parts) == 3:
            hours, minutes, rest = parts
            seconds = int(hours) * 3600 + int(minutes) * 60 + float(rest)
        else:
            return 0.0
    except ValueError:
        return 0.0
    # float() also accepts "nan" and "inf"
    return seconds if math.isfinite(seconds) else 0.0


def _parse_int(value: object) -> int | None:
    """Parse a probed numeric field, treating N/A and garbage as missing."""
    if value is None or value == "N/A":
        return None
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None


class Track:
    """Shared core of every track variant.

    Attributes:
        id: Unique id issued by the allocator.
        source_path: Path of the file the stream is read from.
        is_original: True only for tracks created from a probe.
    """

    track_type: ClassVar[TrackType]
    known_codecs: ClassVar[frozenset[str]] = frozenset()
    supports_delay: ClassVar[bool] = False

    def __init__(
        self,
        source_path: str,
        stream: ProbedStream,
        *,
        is_original: bool = True,
        allocator: IdAllocator | None = None,
        overlay: TrackOverlay | None = None,
    ) -> None:
        self.id = (allocator or DEFAULT_ALLOCATOR).next_id()
        self.source_path = source_path
        self.is_original = is_original
        self._stream = stream
        self._overlay = overlay if overlay is not None else TrackOverlay()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id}, index={self.index}, "
            f"codec={self._stream.codec_name!r}, source_path={self.source_path!r})"
        )

    # -------------------------------------------------------------------------
    # Probed attributes
    # -------------------------------------------------------------------------

    @property
    def probed(self) -> ProbedStream:
        """The immutable probed stream."""
        return self._stream

    @property
    def changes(self) -> TrackOverlay:
        """The overlay of pending edits."""
        return self._overlay

    @property
    def is_modified(self) -> bool:
        """Return True if any edit is pending."""
        return not self._overlay.is_empty

    @property
    def index(self) -> int:
        """Stream index within the source file."""
        return self._stream.index

    @property
    def codec(self) -> str:
        """Effective codec name. Never raises."""
        name = self._stream.codec_name
        if not name:
            logger.warning(
                "Track %d has no codec name, using %r", self.id, UNKNOWN_CODEC
            )
            return UNKNOWN_CODEC
        if self.known_codecs and name not in self.known_codecs:
            logger.warning(
                "Unsupported %s codec: %s", self.track_type.value, name
            )
        return name

    @property
    def duration(self) -> float:
        """Duration in seconds (0.0 when unknown)."""
        raw = self._stream.duration
        if raw is None or raw == "N/A":
            raw = self._stream.tags.get("DURATION")
        return parse_duration(raw)

    @property
    def bitrate(self) -> int | None:
        """Bitrate in bits per second, falling back to the BPS tag."""
        probed = _parse_int(self._stream.bit_rate)
        if probed is None:
            probed = _parse_int(self._stream.tags.get("BPS"))
        return probed

    @property
    def size(self) -> int:
        """Size in bytes from NUMBER_OF_BYTES, else estimated from bitrate."""
        tagged = _parse_int(self._stream.tags.get("NUMBER_OF_BYTES"))
        if tagged is not None:
            return tagged
        bitrate = self.bitrate or 0
        return int(self.duration * bitrate / 8)

    @property
    def total_frames(self) -> int | None:
        """Frame count from the NUMBER_OF_FRAMES tag."""
        return _parse_int(self._stream.tags.get("NUMBER_OF_FRAMES"))

    @property
    def average_frame_rate(self) -> str | None:
        return self._stream.avg_frame_rate

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    @property
    def tags(self) -> dict[str, str]:
        """Probed tags merged with overlay tags; explicit unsets are hidden."""
        merged = dict(self._stream.tags)
        for name, value in self._overlay.tags.items():
            if value is None:
                merged.pop(name, None)
            else:
                merged[name] = value
        return merged

    def get_tag(self, name: str) -> str | None:
        """Return the effective value of a single tag."""
        if name in self._overlay.tags:
            return self._overlay.tags[name]
        return self._stream.tags.get(name)

    def set_tag(self, name: str, value: str | None) -> None:
        """Record a tag change. ``None`` records an explicit unset."""
        self._overlay.tags[name] = value

    def update_tags(self, tags: Mapping[str, str | None]) -> None:
        """Record several tag changes at once."""
        for name, value in tags.items():
            self.set_tag(name, value)

    @property
    def title(self) -> str | None:
        return self.get_tag("title")

    @title.setter
    def title(self, value: str | None) -> None:
        self.set_tag("title", value)

    @property
    def language(self) -> str | None:
        """ISO 639-2 language tag."""
        return self.get_tag("language")

    @language.setter
    def language(self, value: str | None) -> None:
        self.set_tag("language", value)

    # -------------------------------------------------------------------------
    # Dispositions
    # -------------------------------------------------------------------------

    @property
    def dispositions(self) -> dict[str, bool]:
        """Overlay dispositions if set, else probed flags equal to 1."""
        if self._overlay.dispositions is not None:
            return dict(self._overlay.dispositions)
        return {
            name: True for name, value in self._stream.disposition.items() if value == 1
        }

    def set_dispositions(self, dispositions: Mapping[str, bool]) -> None:
        """Replace the pending disposition set."""
        self._overlay.dispositions = {
            name: bool(value) for name, value in dispositions.items()
        }

    # -------------------------------------------------------------------------
    # Delay
    # -------------------------------------------------------------------------

    @property
    def delay(self) -> float:
        """Playback offset in seconds. Always 0 for variants without delay."""
        if not self.supports_delay:
            return 0.0
        return effective(0.0, self._overlay.delay)

    @delay.setter
    def delay(self, seconds: float) -> None:
        if not self.supports_delay:
            raise AttributeError(
                f"{self.track_type.value} tracks do not support a delay"
            )
        self._overlay.delay = seconds

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def add_custom_option(self, renderer: OptionRenderer) -> None:
        """Register a renderer for extra per-track arguments.

        The renderer is called with (input_index, output_index) during
        argument synthesis and returns a list of tokens.
        """
        self._overlay.custom_options.append(renderer)

    def build_options(self, input_index: int, output_index: int) -> list[str]:
        """Build the ffmpeg arguments for this track.

        Args:
            input_index: Absolute ffmpeg input index the track is read from.
            output_index: Output stream index the track is written to.

        Returns:
            Ordered argument tokens.
        """
        from trackmix.synthesis.options import build_track_options

        return build_track_options(self, input_index, output_index)

    def copy(self, allocator: IdAllocator | None = None) -> Track:
        """Return a duplicate with a fresh id and an independent overlay."""
        return type(self)(
            self.source_path,
            self._stream,
            is_original=False,
            allocator=allocator,
            overlay=self._overlay.clone(),
        )


class VideoTrack(Track):
    """Video stream."""

    track_type = TrackType.VIDEO
    known_codecs = VIDEO_CODECS
    supports_delay = True

    @property
    def width(self) -> int | None:
        return self._stream.width

    @property
    def height(self) -> int | None:
        return self._stream.height


class AudioTrack(Track):
    """Audio stream; the only variant that supports conversion."""

    track_type = TrackType.AUDIO
    known_codecs = AUDIO_CODECS
    supports_delay = True

    @property
    def codec(self) -> str:
        """Conversion codec if one is requested, else the probed codec."""
        conversion = self._overlay.conversion
        if conversion is not None:
            return conversion["codec"]
        if self._overlay.codec is not None:
            return self._overlay.codec
        return super().codec

    @property
    def bitrate(self) -> int | None:
        """Requested bitrate if a re-encode asks for one, else the probed one."""
        return effective(super().bitrate, self.requested_bitrate)

    @bitrate.setter
    def bitrate(self, value: int) -> None:
        # A bitrate change re-encodes, so pin the codec to the current one
        if self._overlay.codec is None:
            self._overlay.codec = self.codec
        self._overlay.bitrate = value

    @property
    def requested_bitrate(self) -> int | None:
        """Bitrate to encode with, from the setter or the conversion request."""
        if self._overlay.bitrate is not None:
            return self._overlay.bitrate
        conversion = self._overlay.conversion or {}
        bitrate = conversion.get("bitrate")
        return int(bitrate) if bitrate is not None else None

    @property
    def channels(self) -> int | None:
        requested = self.requested_channels
        if requested is not None:
            parsed = _parse_int(requested)
            if parsed is not None:
                return parsed
        return self._stream.channels

    @channels.setter
    def channels(self, value: int) -> None:
        if self._overlay.codec is None:
            self._overlay.codec = self.codec
        self._overlay.channels = value

    @property
    def requested_channels(self) -> int | str | None:
        """Channel count to encode with, from the setter or the conversion."""
        if self._overlay.channels is not None:
            return self._overlay.channels
        conversion = self._overlay.conversion or {}
        return conversion.get("channels")

    @property
    def sample_rate(self) -> int | None:
        probed = _parse_int(self._stream.sample_rate)
        return effective(probed, self._overlay.sample_rate)

    @property
    def conversion(self) -> dict[str, Any] | None:
        """The validated conversion request, if any."""
        if self._overlay.conversion is None:
            return None
        return dict(self._overlay.conversion)

    @property
    def conversion_codec(self) -> str | None:
        """Codec a re-encode targets, or None when the stream is copied."""
        if self._overlay.conversion is not None:
            return self._overlay.conversion["codec"]
        return self._overlay.codec

    @property
    def conversion_schemas(self) -> dict[str, dict[str, Any]]:
        """JSON schemas for every codec this track can be converted to."""
        from trackmix.conversion import conversion_json_schema

        return {
            codec: conversion_json_schema(codec)
            for codec in sorted(CONVERTIBLE_AUDIO_CODECS)
        }

    def convert(self, options: Mapping[str, Any]) -> None:
        """Request a conversion of this track.

        Args:
            options: Conversion options; ``codec`` selects the target.

        Raises:
            UnsupportedCodecError: The codec has no conversion path.
            InvalidConversionOptionsError: The options fail validation.
        """
        from trackmix.conversion import validate_conversion_options

        codec = options.get("codec")
        if not isinstance(codec, str) or codec not in CONVERTIBLE_AUDIO_CODECS:
            logger.error(
                "Unsupported conversion codec %r for track %d",
                codec,
                self.id,
                extra={"track_id": self.id, "codec": codec},
            )
            raise UnsupportedCodecError(codec)

        validated = validate_conversion_options(options)
        self._overlay.conversion = validated.model_dump(exclude_none=True)
        # The request replaces earlier setter values for what it specifies
        if validated.bitrate is not None:
            self._overlay.bitrate = None
        if validated.channels is not None:
            self._overlay.channels = None

        logger.debug(
            "Conversion requested for track %d",
            self.id,
            extra={"track_id": self.id, "conversion": self._overlay.conversion},
        )

    def clear_conversion(self) -> None:
        """Discard any pending conversion and re-encode settings."""
        self._overlay.conversion = None
        self._overlay.codec = None
        self._overlay.bitrate = None
        self._overlay.channels = None


class SubtitleTrack(Track):
    """Subtitle stream."""

    track_type = TrackType.SUBTITLE
    known_codecs = SUBTITLE_CODECS
    supports_delay = True


class AttachmentTrack(Track):
    """Attachment stream (typically fonts in Matroska)."""

    track_type = TrackType.ATTACHMENT
    known_codecs = ATTACHMENT_CODECS

    @property
    def filename(self) -> str | None:
        return self._stream.tags.get("filename")

    @property
    def mimetype(self) -> str | None:
        return self._stream.tags.get("mimetype")


class DataTrack(Track):
    """Data stream, and the fallback for unknown codec types."""

    track_type = TrackType.DATA

    @property
    def codec(self) -> str:
        return DATA_CODEC


TRACK_CLASSES: dict[TrackType, type[Track]] = {
    TrackType.VIDEO: VideoTrack,
    TrackType.AUDIO: AudioTrack,
    TrackType.SUBTITLE: SubtitleTrack,
    TrackType.ATTACHMENT: AttachmentTrack,
    TrackType.DATA: DataTrack,
}


def create_track(
    source_path: str,
    stream: ProbedStream,
    allocator: IdAllocator | None = None,
) -> Track:
    """Create an original track of the variant matching the stream type."""
    track_class = TRACK_CLASSES[track_type_for(stream.codec_type)]
    return track_class(source_path, stream, allocator=allocator)
