"""Exception hierarchy for trackmix.

Errors fall into four groups:

- Import errors: a source file could not be read or probed. Raised per file
  and aggregated into ImportSourcesError when a batch import fails.
- Mix errors: precondition failures raised synchronously by
  OutputContainer.mix() and cancel(). They never appear in the status log.
- Conversion errors: an audio conversion request was rejected.
- Lookup errors: a caller referenced an id that does not exist.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum


class TrackmixError(Exception):
    """Base exception for all trackmix errors."""


class EntityKind(Enum):
    """Kinds of entity that can be looked up by id."""

    OUTPUT_CONTAINER = "output container"
    SOURCE_CONTAINER = "source container"
    CHAPTER_LIST = "chapter list"
    TRACK = "track"


class NotFoundError(TrackmixError):
    """Raised when an id does not resolve to a live entity.

    Attributes:
        kind: Kind of entity that was looked up.
        entity_id: The id that was not found.
    """

    def __init__(self, kind: EntityKind, entity_id: int) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.value.capitalize()} {entity_id} not found")


# =============================================================================
# Import errors
# =============================================================================


class SourceImportError(TrackmixError):
    """Base exception for a single source file that could not be imported.

    Attributes:
        path: Path of the file that failed to import.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class SourceAccessError(SourceImportError):
    """Raised when the source file cannot be read."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "No read access to file")


class SourceFileTypeError(SourceImportError):
    """Raised when the source path is not a regular file."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "Not a regular file")


class SourceProbeError(SourceImportError):
    """Raised when probing the source file failed.

    Attributes:
        cause: The underlying probe failure.
    """

    def __init__(self, path: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(path, f"Probe failed ({cause})")


class ImportSourcesError(TrackmixError):
    """Raised when any file in an import batch fails.

    Attributes:
        errors: One SourceImportError per failed file, in request order.
    """

    def __init__(self, errors: Sequence[SourceImportError]) -> None:
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"Failed to import {len(self.errors)} source file(s): {details}"
        )


# =============================================================================
# Mix errors
# =============================================================================


class MixError(TrackmixError):
    """Base exception for output container mix preconditions.

    Attributes:
        container_id: Id of the output container.
    """

    def __init__(self, container_id: int, message: str) -> None:
        self.container_id = container_id
        super().__init__(message)


class NoOutputError(MixError):
    """Raised when mixing a container without an output path."""

    def __init__(self, container_id: int) -> None:
        super().__init__(
            container_id, f"Output container {container_id} has no output path"
        )


class NoIngredientsError(MixError):
    """Raised when mixing a container without any tracks."""

    def __init__(self, container_id: int) -> None:
        super().__init__(
            container_id, f"Output container {container_id} has no tracks selected"
        )


class InvalidOutputError(MixError):
    """Raised when the output path is also one of the input paths.

    Attributes:
        path: The colliding output path.
        track_ids: Ids of every selected track read from that path.
    """

    def __init__(self, container_id: int, path: str, track_ids: Iterable[int]) -> None:
        self.path = path
        self.track_ids = list(track_ids)
        super().__init__(
            container_id,
            f"Output path {path} is an input of tracks "
            f"{', '.join(str(i) for i in self.track_ids)}",
        )


class NotStartedError(MixError):
    """Raised when canceling an output container that is not mixing."""

    def __init__(self, container_id: int, state: str) -> None:
        self.state = state
        super().__init__(
            container_id,
            f"Output container {container_id} is not mixing (state: {state})",
        )


class MixAlreadyRunningError(MixError):
    """Raised when mixing a container that is already mixing."""

    def __init__(self, container_id: int) -> None:
        super().__init__(
            container_id, f"Output container {container_id} is already mixing"
        )


class PauseNotSupportedError(MixError):
    """Raised on pause or resume; FFmpeg cannot suspend a running mix."""

    def __init__(self, container_id: int) -> None:
        super().__init__(
            container_id, "Pausing and resuming a mix is not supported by ffmpeg"
        )


# =============================================================================
# Conversion errors
# =============================================================================


class ConversionError(TrackmixError):
    """Base exception for rejected conversion requests."""


class UnsupportedCodecError(ConversionError):
    """Raised when a conversion targets a codec without a conversion path.

    Attributes:
        codec: The requested codec.
    """

    def __init__(self, codec: object) -> None:
        self.codec = codec
        super().__init__(f"Unsupported audio codec: {codec}")


class InvalidConversionOptionsError(ConversionError):
    """Raised when conversion options fail schema validation.

    Attributes:
        codec: The requested codec.
        fields: Names of every offending option.
    """

    def __init__(self, codec: str, fields: Iterable[str], detail: str = "") -> None:
        self.codec = codec
        self.fields = frozenset(fields)
        message = (
            f"Invalid {codec} conversion options: {', '.join(sorted(self.fields))}"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
