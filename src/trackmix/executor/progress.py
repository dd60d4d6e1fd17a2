"""FFmpeg stderr parsing.

FFmpeg describes its inputs on stderr before it starts writing, then prints
one progress line per stats period:

    Input #1, matroska,webm, from 'movie.mkv':
      Duration: 00:42:10.05, start: 0.000000, bitrate: 5123 kb/s
        Stream #1:0: Video: h264 (High), yuv420p, 1920x1080, 23.98 fps
    ...
    frame= 1234 fps= 30 size=  10240kB time=00:01:23.45 bitrate=5000.0kbits/s
"""

from __future__ import annotations

import logging
import re

from trackmix.domain.tracks import parse_duration
from trackmix.executor.status import CodecInfo, MixProgress

logger = logging.getLogger(__name__)

# Regex patterns for FFmpeg stderr progress output
PROGRESS_PATTERNS = {
    "frames": re.compile(r"frame=\s*(\d+)"),
    "current_fps": re.compile(r"fps=\s*([\d.]+)"),
    "target_size": re.compile(r"size=\s*(\d+)\s*(?:kB|KiB)"),
    "timemark": re.compile(r"time=\s*(-?\d+:\d+:\d+(?:\.\d+)?)"),
    "current_kbps": re.compile(r"bitrate=\s*([\d.]+)\s*kbits/s"),
}

_INPUT_PATTERN = re.compile(r"^Input #(\d+), (.+?), from '(.*)':")
_DURATION_PATTERN = re.compile(r"^\s*Duration: ([^,]+)")
_STREAM_PATTERN = re.compile(r"^\s*Stream #\d+:\d+.*?: (Video|Audio): (.+)$")

# Format name of the chapter metadata input
METADATA_FORMAT = "ffmetadata"


def parse_stderr_progress(
    line: str, total_duration: float | None = None
) -> MixProgress | None:
    """Parse an FFmpeg stderr progress line.

    Args:
        line: A line from FFmpeg stderr.
        total_duration: Expected output duration in seconds, used for
            the percentage.

    Returns:
        Parsed MixProgress or None if not a progress line.
    """
    if "time=" not in line or ("frame=" not in line and "size=" not in line):
        return None

    values: dict[str, str] = {}
    for key, pattern in PROGRESS_PATTERNS.items():
        match = pattern.search(line)
        if match:
            values[key] = match.group(1)

    timemark = values.get("timemark")
    percent = None
    if timemark and total_duration:
        elapsed = parse_duration(timemark)
        percent = min(100.0, max(0.0, elapsed / total_duration * 100))

    return MixProgress(
        frames=int(values["frames"]) if "frames" in values else None,
        current_fps=float(values["current_fps"]) if "current_fps" in values else None,
        current_kbps=(
            float(values["current_kbps"]) if "current_kbps" in values else None
        ),
        target_size=int(values["target_size"]) if "target_size" in values else None,
        timemark=timemark,
        percent=percent,
    )


class CodecInfoCollector:
    """Accumulate input descriptions until ffmpeg starts writing.

    The chapter metadata input is skipped. The first real input provides
    the format; the longest input duration and the first audio and video
    streams are kept.
    """

    def __init__(self) -> None:
        self._format: str | None = None
        self._duration: str | None = None
        self._audio: str | None = None
        self._audio_details: str | None = None
        self._video: str | None = None
        self._video_details: str | None = None
        self._in_metadata_input = False
        self._complete = False

    @property
    def duration_seconds(self) -> float:
        return parse_duration(self._duration)

    def feed(self, line: str) -> CodecInfo | None:
        """Consume one stderr line.

        Returns:
            The collected CodecInfo once the input section ends, else None.
            It is returned at most once.
        """
        if self._complete:
            return None

        match = _INPUT_PATTERN.match(line)
        if match:
            input_format = match.group(2)
            self._in_metadata_input = input_format == METADATA_FORMAT
            if not self._in_metadata_input and self._format is None:
                self._format = input_format
            return None

        if line.startswith("Output #") or line.startswith("Stream mapping:"):
            self._complete = True
            return self.info

        if self._in_metadata_input:
            return None

        match = _DURATION_PATTERN.match(line)
        if match:
            duration = match.group(1).strip()
            if parse_duration(duration) > self.duration_seconds:
                self._duration = duration
            return None

        match = _STREAM_PATTERN.match(line)
        if match:
            kind, description = match.groups()
            codec, _, details = description.partition(", ")
            if kind == "Audio" and self._audio is None:
                self._audio, self._audio_details = codec, details or None
            elif kind == "Video" and self._video is None:
                self._video, self._video_details = codec, details or None
        return None

    @property
    def info(self) -> CodecInfo:
        return CodecInfo(
            format=self._format,
            duration=self._duration,
            audio=self._audio,
            audio_details=self._audio_details,
            video=self._video,
            video_details=self._video_details,
        )
