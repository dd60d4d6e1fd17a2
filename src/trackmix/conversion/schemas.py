"""Pydantic schemas for audio conversion requests.

Each convertible codec declares its own model. Models forbid unknown
fields, so a typo in an option name fails validation instead of being
silently dropped.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

AudioCodecName = Literal[
    "aac",
    "ac3",
    "eac3",
    "dts",
    "dts_hd",
    "dts_hd_ma",
    "dts_hd_sp",
    "opus",
    "flac",
    "mp3",
]

# libopus accepts these frame sizes (milliseconds)
OPUS_FRAME_DURATIONS = (2.5, 5.0, 10.0, 20.0, 40.0, 60.0)


class AudioConversionOptions(BaseModel):
    """Options shared by every audio conversion."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    codec: AudioCodecName
    sample_format: str | None = None
    sample_rate: str | None = None
    channels: str | None = None
    bitrate: float | None = None


class OpusConversionOptions(AudioConversionOptions):
    """Options for converting to opus with libopus."""

    codec: Literal["opus"]
    bitrate: float | None = Field(default=None, ge=0)
    vbr: Literal["off", "on", "constrained"] | None = None
    compression_level: int | None = Field(default=None, ge=0, le=10)
    frame_duration: float | None = None

    @field_validator("frame_duration")
    @classmethod
    def validate_frame_duration(cls, v: float | None) -> float | None:
        """Validate the frame duration against the sizes libopus supports."""
        if v is not None and v not in OPUS_FRAME_DURATIONS:
            allowed = ", ".join(f"{d:g}" for d in OPUS_FRAME_DURATIONS)
            raise ValueError(
                f"Invalid frame_duration '{v:g}'. Must be one of: {allowed}"
            )
        return v


CONVERSION_SCHEMAS: dict[str, type[AudioConversionOptions]] = {
    "opus": OpusConversionOptions,
}
