"""Per-track ffmpeg argument emission.

Every track emits, in order:

    -map <input>:<index>
    -c:<out> copy                    (only when the track is not re-encoded)
    <custom option renderers>
    -map_metadata:s:<out> <input>:s:<index>
    -metadata:s:<out> name=value     (one per changed tag; unset -> "name=")
    -disposition:<out> +a-b          (only when dispositions were changed)

Audio tracks then add their encoder arguments, attachments their
filename/mimetype metadata.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from trackmix.domain.enums import AUDIO_ENCODERS, TrackType
from trackmix.errors import UnsupportedCodecError

if TYPE_CHECKING:
    from trackmix.domain.tracks import AttachmentTrack, AudioTrack, Track

logger = logging.getLogger(__name__)


def pad_metadata_value(value: str) -> str:
    """Pad a metadata value for ffmpeg's option tokenizer.

    A value containing exactly one space gets a single trailing space;
    every other value is returned unchanged.
    """
    return f"{value} " if value.count(" ") == 1 else value


def format_number(value: Any) -> str:
    """Render a numeric option without a spurious ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def metadata_args(specifier: str, tags: Mapping[str, str | None]) -> list[str]:
    """Build ``-metadata`` arguments for a set of tag changes.

    Args:
        specifier: Metadata option name, e.g. ``-metadata:s:2``.
        tags: Tag changes; None means clear the key.
    """
    args: list[str] = []
    for name, value in tags.items():
        if value is None:
            args.extend([specifier, f"{name}="])
        else:
            args.extend([specifier, f"{name}={pad_metadata_value(str(value))}"])
    return args


def disposition_value(dispositions: Mapping[str, bool]) -> str:
    """Encode dispositions as one ffmpeg token, e.g. ``+default-forced``.

    An empty mapping clears every disposition (``0``).
    """
    if not dispositions:
        return "0"
    return "".join(
        f"+{name}" if enabled else f"-{name}"
        for name, enabled in dispositions.items()
    )


def _is_reencoded(track: Track) -> bool:
    if track.track_type is TrackType.AUDIO:
        return track.conversion_codec is not None  # type: ignore[attr-defined]
    return False


def build_base_options(track: Track, input_index: int, output_index: int) -> list[str]:
    """Build the arguments shared by every track type."""
    changes = track.changes
    args = ["-map", f"{input_index}:{track.index}"]

    if not _is_reencoded(track):
        args.extend([f"-c:{output_index}", "copy"])

    for renderer in changes.custom_options:
        args.extend(renderer(input_index, output_index))

    args.extend(
        [f"-map_metadata:s:{output_index}", f"{input_index}:s:{track.index}"]
    )
    args.extend(metadata_args(f"-metadata:s:{output_index}", changes.tags))

    if changes.dispositions is not None:
        args.extend(
            [f"-disposition:{output_index}", disposition_value(changes.dispositions)]
        )
    return args


def build_opus_options(output_index: int, conversion: Mapping[str, Any]) -> list[str]:
    """Build libopus encoder arguments; each tuning option is optional."""
    args = [f"-c:{output_index}", AUDIO_ENCODERS["opus"]]
    if conversion.get("compression_level") is not None:
        args.extend(
            [
                f"-compression_level:{output_index}",
                format_number(conversion["compression_level"]),
            ]
        )
    if conversion.get("frame_duration") is not None:
        args.extend(
            [
                f"-frame_duration:{output_index}",
                format_number(conversion["frame_duration"]),
            ]
        )
    if conversion.get("vbr") is not None:
        args.extend([f"-vbr:{output_index}", conversion["vbr"]])
    return args


def build_audio_options(
    track: AudioTrack, input_index: int, output_index: int
) -> list[str]:
    """Build arguments for an audio track, including any re-encode."""
    args = build_base_options(track, input_index, output_index)

    codec = track.conversion_codec
    if codec == "opus":
        args.extend(build_opus_options(output_index, track.conversion or {}))
    elif codec is not None:
        # Codec pinned by a bitrate or channel change without a conversion
        encoder = AUDIO_ENCODERS.get(codec)
        if encoder is None:
            logger.error(
                "No encoder for pinned codec %s on track %d", codec, track.id
            )
            raise UnsupportedCodecError(codec)
        args.extend([f"-c:{output_index}", encoder])

    bitrate = track.requested_bitrate
    if bitrate is not None:
        args.extend([f"-b:{output_index}", format_number(bitrate)])
    channels = track.requested_channels
    if channels is not None:
        args.extend([f"-ac:{output_index}", format_number(channels)])
    return args


def build_attachment_options(
    track: AttachmentTrack, input_index: int, output_index: int
) -> list[str]:
    """Build arguments for an attachment track.

    Stream metadata is not copied onto attachments by -map_metadata, so
    filename and mimetype are set explicitly when both are known.
    """
    args = build_base_options(track, input_index, output_index)
    filename, mimetype = track.filename, track.mimetype
    if filename and mimetype:
        args.extend(
            metadata_args(
                f"-metadata:s:{output_index}",
                {"filename": filename, "mimetype": mimetype},
            )
        )
    return args


def build_track_options(track: Track, input_index: int, output_index: int) -> list[str]:
    """Build every argument for one track.

    Args:
        track: Track to emit.
        input_index: Absolute ffmpeg input index the track is read from.
        output_index: Output stream index the track is written to.

    Returns:
        Ordered argument tokens.
    """
    track_type = track.track_type
    if track_type is TrackType.AUDIO:
        audio: AudioTrack = track  # type: ignore[assignment]
        return build_audio_options(audio, input_index, output_index)
    if track_type is TrackType.ATTACHMENT:
        attachment: AttachmentTrack = track  # type: ignore[assignment]
        return build_attachment_options(attachment, input_index, output_index)
    if track_type in (TrackType.VIDEO, TrackType.SUBTITLE, TrackType.DATA):
        return build_base_options(track, input_index, output_index)
    raise ValueError(f"Unhandled track type: {track_type}")
