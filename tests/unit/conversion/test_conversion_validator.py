"""Tests for conversion option validation."""

import pytest
from pydantic import ValidationError

from trackmix.conversion import (
    OpusConversionOptions,
    conversion_json_schema,
    validate_conversion_options,
)
from trackmix.errors import InvalidConversionOptionsError, UnsupportedCodecError


class TestValidateConversionOptions:
    """Tests for validate_conversion_options()."""

    def test_minimal_opus(self):
        result = validate_conversion_options({"codec": "opus"})
        assert isinstance(result, OpusConversionOptions)
        assert result.bitrate is None

    def test_compression_level_bounds(self):
        assert validate_conversion_options(
            {"codec": "opus", "compression_level": 10}
        ).compression_level == 10
        assert validate_conversion_options(
            {"codec": "opus", "compression_level": 0}
        ).compression_level == 0

        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"codec": "opus", "compression_level": 11})
        assert exc_info.value.fields == {"compression_level"}

    @pytest.mark.parametrize("duration", [2.5, 5, 10, 20, 40, 60])
    def test_valid_frame_durations(self, duration):
        result = validate_conversion_options(
            {"codec": "opus", "frame_duration": duration}
        )
        assert result.frame_duration == duration

    def test_invalid_frame_duration(self):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"codec": "opus", "frame_duration": 15})
        assert exc_info.value.fields == {"frame_duration"}
        assert "Must be one of" in str(exc_info.value)

    @pytest.mark.parametrize("vbr", ["off", "on", "constrained"])
    def test_vbr_values(self, vbr):
        assert validate_conversion_options({"codec": "opus", "vbr": vbr}).vbr == vbr

    def test_invalid_vbr(self):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"codec": "opus", "vbr": "auto"})
        assert exc_info.value.fields == {"vbr"}

    @pytest.mark.parametrize("bitrate", [0, -1, -96000.5, "0", "-1", "0.0", "nan"])
    def test_non_positive_bitrate(self, bitrate):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"codec": "opus", "bitrate": bitrate})
        assert "bitrate" in exc_info.value.fields

    def test_unknown_field_is_rejected(self):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"codec": "opus", "bitrat": 96000})
        assert exc_info.value.fields == {"bitrat"}

    def test_every_offending_field_is_reported(self):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options(
                {
                    "codec": "opus",
                    "bitrate": 0,
                    "compression_level": 42,
                    "vbr": "sometimes",
                }
            )
        assert exc_info.value.fields == {"bitrate", "compression_level", "vbr"}
        assert exc_info.value.codec == "opus"

    def test_missing_codec(self):
        with pytest.raises(InvalidConversionOptionsError) as exc_info:
            validate_conversion_options({"bitrate": 96000})
        assert exc_info.value.fields == {"codec"}

    def test_codec_without_schema(self):
        with pytest.raises(UnsupportedCodecError) as exc_info:
            validate_conversion_options({"codec": "flac"})
        assert exc_info.value.codec == "flac"

    def test_result_is_immutable(self):
        result = validate_conversion_options({"codec": "opus", "bitrate": 96000})
        with pytest.raises(ValidationError):
            result.bitrate = 1


class TestConversionJsonSchema:
    def test_opus_schema(self):
        schema = conversion_json_schema("opus")
        properties = schema["properties"]
        assert {"codec", "bitrate", "vbr", "compression_level", "frame_duration"} <= (
            set(properties)
        )
        assert schema["additionalProperties"] is False

    def test_unknown_codec(self):
        with pytest.raises(UnsupportedCodecError):
            conversion_json_schema("mp3")
