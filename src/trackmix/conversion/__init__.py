"""Conversion request schemas and validation."""

from trackmix.conversion.schemas import (
    CONVERSION_SCHEMAS,
    OPUS_FRAME_DURATIONS,
    AudioConversionOptions,
    OpusConversionOptions,
)
from trackmix.conversion.validator import (
    conversion_json_schema,
    validate_conversion_options,
)

__all__ = [
    "CONVERSION_SCHEMAS",
    "OPUS_FRAME_DURATIONS",
    "AudioConversionOptions",
    "OpusConversionOptions",
    "conversion_json_schema",
    "validate_conversion_options",
]
