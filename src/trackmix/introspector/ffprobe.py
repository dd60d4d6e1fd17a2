"""MediaIntrospector backed by the ffprobe binary."""

import json
import subprocess  # nosec B404 - probing shells out to ffprobe
from pathlib import Path

from trackmix.domain.probe import ProbeResult
from trackmix.introspector.interface import MediaIntrospectionError
from trackmix.introspector.parsers import parse_ffprobe_output

# Everything the probe contract needs, as one JSON document
FFPROBE_ARGS = (
    "-v",
    "error",
    "-print_format",
    "json",
    "-show_streams",
    "-show_format",
    "-show_chapters",
)

REQUIRED_KEYS = ("streams", "format")


def _resolve_ffprobe() -> Path | None:
    from trackmix.config import get_config
    from trackmix.tools import find_tool

    return find_tool("ffprobe", get_config().get_tool_path("ffprobe"))


class FFprobeIntrospector:
    """Probe files by running ffprobe and parsing its JSON output.

    Args:
        ffprobe_path: ffprobe to run; resolved from configuration and PATH
            when omitted.
        timeout: Seconds allowed per probe; the configured probe timeout
            when omitted.

    Raises:
        MediaIntrospectionError: ffprobe cannot be found.
    """

    def __init__(
        self, ffprobe_path: Path | None = None, timeout: float | None = None
    ) -> None:
        self._ffprobe_path = ffprobe_path or _resolve_ffprobe()
        if self._ffprobe_path is None:
            raise MediaIntrospectionError(
                "ffprobe is not installed or not in PATH. Install ffmpeg, or "
                "point TRACKMIX_FFPROBE_PATH or the [tools] section of "
                "~/.trackmix/config.toml at an ffprobe binary."
            )
        if timeout is None:
            from trackmix.config import get_config

            timeout = get_config().imports.probe_timeout
        self._timeout = timeout

    @staticmethod
    def is_available() -> bool:
        return _resolve_ffprobe() is not None

    def get_file_info(self, path: Path) -> ProbeResult:
        """Probe ``path`` and parse the result.

        Raises:
            MediaIntrospectionError: The file is missing, ffprobe fails or
                times out, or its output is unusable.
        """
        if not path.exists():
            raise MediaIntrospectionError(f"File not found: {path}")
        try:
            data = self._probe_json(path)
        except subprocess.TimeoutExpired as e:
            raise MediaIntrospectionError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or str(e)
            raise MediaIntrospectionError(f"ffprobe failed for {path}: {detail}") from e
        except json.JSONDecodeError as e:
            raise MediaIntrospectionError(
                f"Invalid ffprobe output for {path}: {e}"
            ) from e
        except OSError as e:
            raise MediaIntrospectionError(f"Cannot run ffprobe: {e}") from e

        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise MediaIntrospectionError(
                f"Missing {', '.join(repr(k) for k in missing)} in ffprobe output "
                f"for {path}; the file may be damaged or not a media file"
            )
        return parse_ffprobe_output(path, data)

    def _probe_json(self, path: Path) -> dict:
        result = subprocess.run(  # nosec B603 - fixed flags, resolved binary
            [str(self._ffprobe_path), *FFPROBE_ARGS, str(path)],
            capture_output=True,
            text=True,
            errors="replace",
            check=True,
            timeout=self._timeout,
        )
        return json.loads(result.stdout)
