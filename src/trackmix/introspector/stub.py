"""Stub implementation of MediaIntrospector for development and testing."""

from pathlib import Path

from trackmix.domain.probe import ProbedFormat, ProbedStream, ProbeResult
from trackmix.introspector.interface import MediaIntrospectionError

# Container format mapping from extension to format name
CONTAINER_FORMAT_MAP = {
    "mkv": "matroska,webm",
    "mka": "matroska,webm",
    "mks": "matroska,webm",
    "webm": "matroska,webm",
    "mp4": "mov,mp4,m4a,3gp,3g2,mj2",
    "m4v": "mov,mp4,m4a,3gp,3g2,mj2",
    "m4a": "mov,mp4,m4a,3gp,3g2,mj2",
    "mov": "mov,mp4,m4a,3gp,3g2,mj2",
    "avi": "avi",
    "ts": "mpegts",
    "m2ts": "mpegts",
}


class StubIntrospector:
    """Stub implementation that returns placeholder or preset probe data.

    Results registered with ``add_result`` are returned as-is. Any other
    existing file gets placeholder streams inferred from its extension.

    Args:
        results: Preset probe results keyed by path string.
        require_exists: Raise for paths that do not exist on disk.
    """

    def __init__(
        self,
        results: dict[str, ProbeResult] | None = None,
        require_exists: bool = True,
    ) -> None:
        self._results = dict(results or {})
        self._require_exists = require_exists
        self.calls: list[Path] = []

    def add_result(self, result: ProbeResult) -> None:
        self._results[result.file_path] = result

    def get_file_info(self, path: Path) -> ProbeResult:
        """Return the preset or placeholder probe for ``path``.

        Raises:
            MediaIntrospectionError: If the file does not exist.
        """
        self.calls.append(path)
        preset = self._results.get(str(path))
        if preset is not None:
            return preset

        if self._require_exists and not path.exists():
            raise MediaIntrospectionError(f"File not found: {path}")

        extension = path.suffix.lstrip(".").lower()
        return ProbeResult(
            file_path=str(path),
            format=ProbedFormat(format_name=CONTAINER_FORMAT_MAP.get(extension)),
            streams=tuple(self._create_placeholder_streams(extension)),
        )

    def _create_placeholder_streams(self, extension: str) -> list[ProbedStream]:
        streams = [
            ProbedStream(
                index=0,
                codec_type="video",
                codec_name="h264",
                width=1920,
                height=1080,
                avg_frame_rate="24000/1001",
                disposition={"default": 1},
            ),
            ProbedStream(
                index=1,
                codec_type="audio",
                codec_name="aac",
                channels=2,
                sample_rate="48000",
                tags={"language": "eng"},
                disposition={"default": 1},
            ),
        ]
        if extension in ("mkv", "mks"):
            streams.append(
                ProbedStream(
                    index=2,
                    codec_type="subtitle",
                    codec_name="subrip",
                    tags={"language": "eng"},
                )
            )
        return streams
