"""MediaIntrospector interface for probing source files."""

from pathlib import Path
from typing import Protocol

from trackmix.domain.probe import ProbeResult


class MediaIntrospectionError(Exception):
    """Raised when media introspection fails."""

    pass


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations.

    Implementations turn a media file into the immutable probe snapshot a
    SourceContainer is built from.
    """

    def get_file_info(self, path: Path) -> ProbeResult:
        """Probe a media file.

        Args:
            path: Path to the media file.

        Returns:
            ProbeResult with format, streams and chapters.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        ...
