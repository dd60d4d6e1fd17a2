"""Locating ffmpeg/ffprobe and asking ffmpeg what it was built with."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess  # nosec B404 - detection runs the ffmpeg binary
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from trackmix.tools.models import FFmpegCapabilities, ToolStatus

logger = logging.getLogger(__name__)

PROBE_SECONDS = 10

_VERSION_LINE = re.compile(r"ffmpeg version (\S+)")
_RELEASE_NUMBER = re.compile(r"\d+(?:\.\d+)*")

# Listing rows start with a block of flag characters, then the name
_CODEC_ROW = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")
_FORMAT_ROW = re.compile(r"\s+[DE .]{2}\s+(\S+)")
_FILTER_ROW = re.compile(r"\s+[TSC.]{3}\s+(\S+)")


class ToolNotFoundError(RuntimeError):
    """A required external binary is neither configured nor on PATH."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"{name} not found. Install it or set TRACKMIX_{name.upper()}_PATH."
        )


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """``"6.1.1"`` and nightly ``"n6.1.1"`` give ``(6, 1, 1)``.

    Git snapshot builds (``"N-112345-g..."``) carry no release number and
    give None.
    """
    found = _RELEASE_NUMBER.match(version_str.lstrip("nv")) if version_str else None
    if found is None:
        return None
    return tuple(map(int, found.group().split(".")))


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Return the configured binary if it exists, else whatever PATH has."""
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )
    on_path = shutil.which(name)
    return Path(on_path) if on_path else None


def require_tool(name: str) -> Path:
    """Like :func:`find_tool` with the configured path, but raise if absent.

    Raises:
        ToolNotFoundError: Nothing usable is configured or on PATH.
    """
    from trackmix.config import get_config

    resolved = find_tool(name, get_config().get_tool_path(name))
    if resolved is None:
        raise ToolNotFoundError(name)
    return resolved


def _names(output: str, row: re.Pattern[str]) -> set[str]:
    names = set()
    for line in output.splitlines():
        found = row.match(line)
        # The legend above each listing reads like "V..... = Video"
        if found and found.group(1) != "=":
            names.add(found.group(1).casefold())
    return names


def parse_codec_list(output: str) -> set[str]:
    """Names from ``ffmpeg -encoders`` or ``-decoders``."""
    return _names(output, _CODEC_ROW)


def parse_format_list(output: str) -> set[str]:
    """Names from ``ffmpeg -muxers`` or ``-demuxers``."""
    return _names(output, _FORMAT_ROW)


def parse_filter_list(output: str) -> set[str]:
    """Names from ``ffmpeg -filters``."""
    return _names(output, _FILTER_ROW)


def _ask_ffmpeg(ffmpeg: Path, *flags: str) -> subprocess.CompletedProcess | str:
    """Run ffmpeg with ``flags``; a string describes why it could not run."""
    argv = [str(ffmpeg), *flags]
    try:
        return subprocess.run(  # nosec B603 - resolved binary, fixed flags
            argv,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=PROBE_SECONDS,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out: %s", " ".join(argv))
        return "timeout"
    except OSError as e:
        logger.warning("Could not run %s: %s", " ".join(argv), e)
        return str(e)


_LISTINGS: tuple[tuple[str, str, Callable[[str], set[str]]], ...] = (
    ("encoders", "-encoders", parse_codec_list),
    ("decoders", "-decoders", parse_codec_list),
    ("muxers", "-muxers", parse_format_list),
    ("demuxers", "-demuxers", parse_format_list),
    ("filters", "-filters", parse_filter_list),
)


def detect_ffmpeg_capabilities(
    configured_path: Path | None = None,
) -> FFmpegCapabilities:
    """Find ffmpeg and record its version and built-in components.

    Problems never raise: they leave ``status`` at MISSING or ERROR with
    an explanation in ``status_message``.
    """
    caps = FFmpegCapabilities(detected_at=datetime.now(timezone.utc))
    ffmpeg = find_tool("ffmpeg", configured_path)
    if ffmpeg is None:
        caps.status_message = "ffmpeg not found in PATH"
        return caps
    caps.path = ffmpeg

    answer = _ask_ffmpeg(ffmpeg, "-version")
    if isinstance(answer, str) or answer.returncode != 0:
        reason = answer if isinstance(answer, str) else answer.stderr
        caps.status = ToolStatus.ERROR
        caps.status_message = f"Failed to get ffmpeg version: {reason}"
        return caps

    version = _VERSION_LINE.search(answer.stdout)
    if version:
        caps.version = version.group(1)
        caps.version_tuple = parse_version_string(caps.version)

    for attr, flag, parse in _LISTINGS:
        answer = _ask_ffmpeg(ffmpeg, "-hide_banner", flag)
        if isinstance(answer, str) or answer.returncode != 0:
            logger.warning("Could not list ffmpeg %s", attr)
            continue
        setattr(caps, attr, parse(answer.stdout))

    caps.status = ToolStatus.AVAILABLE
    logger.debug(
        "ffmpeg %s at %s has %d encoders and %d muxers",
        caps.version,
        ffmpeg,
        len(caps.encoders),
        len(caps.muxers),
    )
    return caps
