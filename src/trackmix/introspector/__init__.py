"""Introspector module for trackmix.

This module provides media probing:

- MediaIntrospector: Protocol defining the introspection interface
- FFprobeIntrospector: Production implementation using ffprobe
- StubIntrospector: Stub implementation for testing
- MediaIntrospectionError: Exception for introspection failures

Formatters for probed source containers:
- format_human: Human-readable output
- format_json: JSON output
"""

from trackmix.introspector.ffprobe import FFprobeIntrospector
from trackmix.introspector.formatters import (
    format_human,
    format_json,
    format_track_line,
    frame_rate_to_fps,
    track_to_dict,
)
from trackmix.introspector.interface import (
    MediaIntrospectionError,
    MediaIntrospector,
)
from trackmix.introspector.parsers import parse_ffprobe_output
from trackmix.introspector.stub import StubIntrospector

__all__ = [
    "MediaIntrospector",
    "MediaIntrospectionError",
    "FFprobeIntrospector",
    "StubIntrospector",
    "parse_ffprobe_output",
    # Formatters
    "format_human",
    "format_json",
    "format_track_line",
    "frame_rate_to_fps",
    "track_to_dict",
]
