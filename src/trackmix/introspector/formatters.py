"""Rendering an imported source for the ``inspect`` command."""

import json
from fractions import Fraction
from typing import Any

from trackmix.domain.containers import SourceContainer
from trackmix.domain.tracks import AudioTrack, Track, VideoTrack


def frame_rate_to_fps(frame_rate: str) -> str | None:
    """``"24000/1001"`` gives ``"23.976"``, ``"25/1"`` gives ``"25"``.

    Returns None for anything that is not a rate.
    """
    try:
        rate = Fraction(frame_rate)
    except (ValueError, ZeroDivisionError):
        return None
    if rate.denominator == 1:
        return str(rate.numerator)
    return f"{float(rate):.3f}".rstrip("0").rstrip(".")


def format_track_line(track: Track) -> str:
    """One line per track, e.g. ``#1 [audio] aac 6ch eng "Surround" (default)``."""
    parts = [f"#{track.index}", f"[{track.track_type.value}]", track.codec]

    if isinstance(track, VideoTrack):
        if track.width and track.height:
            parts.append(f"{track.width}x{track.height}")
        fps = track.average_frame_rate and frame_rate_to_fps(track.average_frame_rate)
        if fps:
            parts.append(f"@ {fps}fps")
    elif isinstance(track, AudioTrack) and track.channels:
        parts.append(f"{track.channels}ch")

    if track.language and track.language != "und":
        parts.append(track.language)
    if track.title:
        parts.append(f'"{track.title}"')

    on = [name for name, enabled in track.dispositions.items() if enabled]
    if on:
        parts.append(f"({', '.join(on)})")
    return " ".join(parts)


def format_human(container: SourceContainer, warnings: tuple[str, ...] = ()) -> str:
    out = [f"File: {container.path}"]
    if container.format_name:
        # "matroska,webm" reads as "Matroska"
        out.append(f"Container: {container.format_name.split(',')[0].title()}")
    if container.duration:
        out.append(f"Duration: {container.duration:.3f}s")

    out += ["", "Tracks:"]
    for heading, tracks in (
        ("Video", container.video_tracks),
        ("Audio", container.audio_tracks),
        ("Subtitles", container.subtitle_tracks),
        ("Attachments", container.attachment_tracks),
        ("Data", container.data_tracks),
    ):
        if tracks:
            out.append(f"  {heading}:")
            out.extend(f"    {format_track_line(track)}" for track in tracks)
    if not container.tracks:
        out.append("  (no tracks found)")

    if container.chapters is not None:
        out += ["", f"Chapters: {len(container.chapters)}"]
    if warnings:
        out += ["", "Warnings:"]
        out.extend(f"  - {warning}" for warning in warnings)
    return "\n".join(out)


def track_to_dict(track: Track) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": track.id,
        "index": track.index,
        "type": track.track_type.value,
        "codec": track.codec,
        "language": track.language,
        "title": track.title,
        "dispositions": track.dispositions,
        "duration_seconds": track.duration,
    }
    if isinstance(track, VideoTrack):
        entry.update(
            width=track.width,
            height=track.height,
            frame_rate=track.average_frame_rate,
        )
    elif isinstance(track, AudioTrack):
        entry.update(channels=track.channels, sample_rate=track.sample_rate)
    if track.bitrate is not None:
        entry["bitrate"] = track.bitrate
    return entry


def format_json(container: SourceContainer, warnings: tuple[str, ...] = ()) -> str:
    return json.dumps(
        {
            "id": container.id,
            "file": container.path,
            "container": container.format_name,
            "duration_seconds": container.duration,
            "tags": dict(container.tags),
            "tracks": [track_to_dict(track) for track in container.tracks],
            "chapters": len(container.chapters or ()),
            "warnings": list(warnings),
        },
        indent=2,
    )
