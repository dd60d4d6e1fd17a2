"""Turning ffprobe's JSON document into probe records.

Nothing here runs ffprobe or touches the filesystem; the functions take
the decoded JSON and return frozen records from :mod:`trackmix.domain.probe`.
"""

import logging
from pathlib import Path

from trackmix.domain.probe import (
    ProbedChapter,
    ProbedFormat,
    ProbedStream,
    ProbeResult,
)

logger = logging.getLogger(__name__)

_MAX_TAG_KEY_LENGTH = 255
_MAX_TAG_VALUE_LENGTH = 4096
_UNKNOWN_RATE = "0/0"


def sanitize_string(value: str | None) -> str | None:
    """Replace lone surrogates and other unencodable characters with ``?``."""
    if value is None:
        return None
    return value.encode("utf-8", errors="replace").decode("utf-8")


def validate_positive_int(
    value: object, field_name: str, file_path: str | None = None
) -> int | None:
    """``value`` if it is a non-negative int, else None (with a warning).

    Booleans are rejected even though they are ints.
    """
    where = file_path or "unknown"
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        logger.warning(
            "Expected int for %s, got %s in %s",
            field_name,
            type(value).__name__,
            where,
        )
        return None
    if value < 0:
        logger.warning("Invalid negative %s: %d in %s", field_name, value, where)
        return None
    return value


def _as_str(value: object) -> str | None:
    return None if value is None else str(value)


def _as_number(value: object, kind: type) -> int | float | None:
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


def parse_tags(tags: dict | None, file_path: str | None = None) -> dict[str, str]:
    """Stringify and sanitize tag values, dropping oversized entries.

    Key case is preserved, so Matroska statistics tags (``BPS``,
    ``NUMBER_OF_FRAMES``) stay distinct from ``title`` or ``language``.
    """
    where = file_path or "unknown"
    clean: dict[str, str] = {}
    for key, raw in (tags or {}).items():
        if len(key) > _MAX_TAG_KEY_LENGTH:
            logger.warning(
                "Tag key %r (%d chars) exceeds max length %d, skipping in %s",
                key[:50] + "...",
                len(key),
                _MAX_TAG_KEY_LENGTH,
                where,
            )
            continue
        value = sanitize_string(raw if isinstance(raw, str) else str(raw))
        if len(value) > _MAX_TAG_VALUE_LENGTH:
            logger.warning(
                "Tag %r value (%d chars) exceeds max length %d, skipping in %s",
                key,
                len(value),
                _MAX_TAG_VALUE_LENGTH,
                where,
            )
            continue
        clean[key] = value
    return clean


def parse_stream(stream: dict, file_path: str | None = None) -> ProbedStream:
    disposition = {
        flag: int(on)
        for flag, on in (stream.get("disposition") or {}).items()
        if isinstance(on, int)
    }
    rate = stream.get("avg_frame_rate")

    def dimension(name: str) -> int | None:
        return validate_positive_int(stream.get(name), name, file_path)

    return ProbedStream(
        index=stream.get("index", 0),
        codec_type=stream.get("codec_type", ""),
        codec_name=stream.get("codec_name"),
        bit_rate=_as_str(stream.get("bit_rate")),
        sample_rate=_as_str(stream.get("sample_rate")),
        channels=dimension("channels"),
        width=dimension("width"),
        height=dimension("height"),
        avg_frame_rate=None if rate == _UNKNOWN_RATE else rate,
        duration=_as_str(stream.get("duration")),
        tags=parse_tags(stream.get("tags"), file_path),
        disposition=disposition,
    )


def parse_streams(
    streams: list[dict], file_path: str | None = None
) -> tuple[list[ProbedStream], list[str]]:
    """Parse every stream, keeping the first of any repeated index.

    Returns the parsed streams and a warning per dropped repeat.
    """
    by_index: dict[int, ProbedStream] = {}
    warnings: list[str] = []
    for raw in streams:
        index = raw.get("index", 0)
        if index in by_index:
            warnings.append(f"Duplicate stream index {index}, skipping")
        else:
            by_index[index] = parse_stream(raw, file_path)
    return list(by_index.values()), warnings


def parse_chapter(chapter: dict, file_path: str | None = None) -> ProbedChapter:
    return ProbedChapter(
        id=_as_number(chapter.get("id"), int) or 0,
        time_base=str(chapter.get("time_base", "1/1000")),
        start=_as_number(chapter.get("start"), int) or 0,
        end=_as_number(chapter.get("end"), int) or 0,
        title=parse_tags(chapter.get("tags"), file_path).get("title", ""),
    )


def parse_format(format_info: dict, file_path: str | None = None) -> ProbedFormat:
    # ffprobe reports numbers in this section as strings
    return ProbedFormat(
        format_name=format_info.get("format_name"),
        duration=_as_number(format_info.get("duration"), float),
        bit_rate=_as_number(format_info.get("bit_rate"), int),
        size=_as_number(format_info.get("size"), int),
        tags=parse_tags(format_info.get("tags"), file_path),
    )


def parse_ffprobe_output(path: Path, data: dict) -> ProbeResult:
    """Build the :class:`ProbeResult` for ``path`` from ffprobe's document.

    Problems that do not prevent parsing, such as repeated stream indices
    or a file without streams, end up in ``warnings``.
    """
    file_path = str(path)
    streams, warnings = parse_streams(data.get("streams", []), file_path)
    if not streams:
        warnings.append("No streams found in file")

    return ProbeResult(
        file_path=file_path,
        format=parse_format(data.get("format", {}), file_path),
        streams=tuple(streams),
        chapters=tuple(
            parse_chapter(chapter, file_path) for chapter in data.get("chapters", [])
        ),
        warnings=tuple(warnings),
    )
