"""External tool resolution and capability detection."""

from trackmix.tools.detection import (
    ToolNotFoundError,
    detect_ffmpeg_capabilities,
    find_tool,
    parse_codec_list,
    parse_filter_list,
    parse_format_list,
    parse_version_string,
    require_tool,
)
from trackmix.tools.models import FFmpegCapabilities, ToolStatus

__all__ = [
    "FFmpegCapabilities",
    "ToolNotFoundError",
    "ToolStatus",
    "detect_ffmpeg_capabilities",
    "find_tool",
    "parse_codec_list",
    "parse_filter_list",
    "parse_format_list",
    "parse_version_string",
    "require_tool",
]
