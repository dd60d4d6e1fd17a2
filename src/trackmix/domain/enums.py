"""Domain enums and codec sets for trackmix.

Codec sets list the probed codec names each track type knows about. A
probed codec outside its set is still usable; the track logs a warning and
reports the probed name unchanged.
"""

from enum import Enum


class TrackType(Enum):
    """Closed set of track variants, keyed by ffprobe codec_type."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    ATTACHMENT = "attachment"
    DATA = "data"


class MixState(Enum):
    """Lifecycle state of an output container's mix."""

    IDLE = "idle"
    MIXING = "mixing"
    PAUSED = "paused"  # Reserved: ffmpeg cannot suspend/resume
    DONE = "done"
    CANCELED = "canceled"
    ERROR = "error"

    @property
    def is_active(self) -> bool:
        """Return True while a mix process may still be running."""
        return self in (MixState.MIXING, MixState.PAUSED)

    @property
    def is_terminal(self) -> bool:
        """Return True for states that end an execution."""
        return self in (MixState.DONE, MixState.CANCELED, MixState.ERROR)


UNKNOWN_CODEC = "unknown"

VIDEO_CODECS: frozenset[str] = frozenset({"h264", "hevc", "av1", "vp9"})

AUDIO_CODECS: frozenset[str] = frozenset(
    {
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
    }
)

SUBTITLE_CODECS: frozenset[str] = frozenset(
    {"ass", "ssa", "srt", "subrip", "pgs", "hdmv_pgs_subtitle", "vobsub", "webvtt"}
)

# https://www.iana.org/assignments/media-types/media-types.xhtml#font
ATTACHMENT_CODECS: frozenset[str] = frozenset(
    {"collection", "otf", "sfnt", "ttf", "woff", "woff2"}
)

DATA_CODEC = "data"

# Audio codecs that have a concrete conversion path
CONVERTIBLE_AUDIO_CODECS: frozenset[str] = frozenset({"opus"})

# ffmpeg encoder used when re-encoding to each audio codec. Codecs missing
# here (the DTS-HD family) can only be stream-copied.
AUDIO_ENCODERS: dict[str, str] = {
    "aac": "aac",
    "ac3": "ac3",
    "eac3": "eac3",
    "dts": "dca",
    "flac": "flac",
    "mp3": "libmp3lame",
    "opus": "libopus",
}
