"""Validation of conversion requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from trackmix.conversion.schemas import CONVERSION_SCHEMAS, AudioConversionOptions
from trackmix.errors import InvalidConversionOptionsError, UnsupportedCodecError

logger = logging.getLogger(__name__)


def _error_fields(error: PydanticValidationError) -> set[str]:
    """Return the top-level field names named by a pydantic error."""
    fields: set[str] = set()
    for item in error.errors():
        loc = item.get("loc", ())
        fields.add(str(loc[0]) if loc else "root")
    return fields


# Same lax coercion the schemas apply, so "0" counts as 0
_BITRATE = TypeAdapter(float | None)


def _is_non_positive(value: Any) -> bool:
    try:
        bitrate = _BITRATE.validate_python(value)
    except PydanticValidationError:
        return False  # left for the schema to report
    return bitrate is not None and not bitrate > 0


def validate_conversion_options(
    options: Mapping[str, Any],
) -> AudioConversionOptions:
    """Validate a conversion request against its codec's schema.

    Validation fails closed: every offending field is reported and nothing
    is returned unless the whole request is valid. A bitrate of zero or
    less is rejected even though the schema allows it.

    Args:
        options: Raw conversion options; ``codec`` selects the schema.

    Returns:
        The validated options model.

    Raises:
        InvalidConversionOptionsError: Missing codec or invalid fields.
        UnsupportedCodecError: The codec has no schema.
    """
    codec = options.get("codec")
    if not isinstance(codec, str):
        raise InvalidConversionOptionsError(
            "unknown", {"codec"}, "codec is required and must be a string"
        )

    schema = CONVERSION_SCHEMAS.get(codec)
    if schema is None:
        raise UnsupportedCodecError(codec)

    fields: set[str] = set()
    details: list[str] = []
    if _is_non_positive(options.get("bitrate")):
        fields.add("bitrate")
        details.append("bitrate must be greater than 0")

    try:
        model = schema.model_validate(dict(options))
    except PydanticValidationError as e:
        fields |= _error_fields(e)
        details.extend(
            f"{'.'.join(str(p) for p in item.get('loc', ()))}: {item.get('msg')}"
            for item in e.errors()
        )
        model = None

    if fields:
        logger.debug(
            "Rejected %s conversion options: %s",
            codec,
            ", ".join(sorted(fields)),
        )
        raise InvalidConversionOptionsError(codec, fields, "; ".join(details))

    assert model is not None
    return model


def conversion_json_schema(codec: str) -> dict[str, Any]:
    """Return the JSON schema of a codec's conversion options.

    Raises:
        UnsupportedCodecError: The codec has no schema.
    """
    schema = CONVERSION_SCHEMAS.get(codec)
    if schema is None:
        raise UnsupportedCodecError(codec)
    return schema.model_json_schema()
