"""Configuration dataclasses.

Values are checked in ``__post_init__`` so a bad file or environment
value fails when the config is built, not when it is first used.
"""

from dataclasses import dataclass, field
from pathlib import Path

LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("text", "json")


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value.lower() not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}; got {value!r}")


@dataclass
class ToolPathsConfig:
    """Explicit ffmpeg/ffprobe locations; None means search PATH."""

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "text"
    file: Path | None = None  # None logs to stderr only
    include_stderr: bool = False  # stderr as well as the file
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        _check_choice("level", self.level, LOG_LEVELS)
        _check_choice("format", self.format, LOG_FORMATS)
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive; got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(
                f"backup_count cannot be negative; got {self.backup_count}"
            )


@dataclass
class ImportConfig:
    """How source files are probed on import."""

    max_workers: int = 4  # files probed in parallel
    probe_timeout: float = 60.0  # seconds per ffprobe call

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1; got {self.max_workers}")
        if self.probe_timeout <= 0:
            raise ValueError(
                f"probe_timeout must be positive; got {self.probe_timeout}"
            )


@dataclass
class TrackmixConfig:
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Configured path of ``tool_name``, None for unknown or unset tools."""
        return getattr(self.tools, tool_name, None)
