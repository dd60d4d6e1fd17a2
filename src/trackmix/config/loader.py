"""Building a :class:`TrackmixConfig` from its layered sources.

A setting comes from the first layer that provides it:

1. keyword overrides passed to :func:`get_config` (the CLI options)
2. ``TRACKMIX_*`` environment variables
3. the TOML file, ``~/.trackmix/config.toml`` unless
   ``TRACKMIX_CONFIG_PATH`` names another
4. the dataclass defaults

The file has three optional tables::

    [tools]
    ffmpeg = "/opt/ffmpeg/bin/ffmpeg"
    ffprobe = "/opt/ffmpeg/bin/ffprobe"

    [logging]
    level = "debug"            # TRACKMIX_LOG_LEVEL
    format = "json"            # TRACKMIX_LOG_FORMAT
    file = "~/.trackmix/logs/trackmix.log"   # TRACKMIX_LOG_FILE
    include_stderr = true
    max_bytes = 10485760
    backup_count = 5

    [import]
    max_workers = 8            # TRACKMIX_IMPORT_WORKERS
    probe_timeout = 30         # TRACKMIX_PROBE_TIMEOUT

Tool paths can also be set with ``TRACKMIX_FFMPEG_PATH`` and
``TRACKMIX_FFPROBE_PATH``.
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from trackmix.config.env import EnvReader
from trackmix.config.models import (
    ImportConfig,
    LoggingConfig,
    ToolPathsConfig,
    TrackmixConfig,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRACKMIX_"
DEFAULT_CONFIG_FILE = Path.home() / ".trackmix" / "config.toml"

# path -> (parsed tables, mtime when parsed)
_parsed_files: dict[Path, tuple[dict[str, Any], float]] = {}
_parsed_files_lock = threading.Lock()


class ConfigFileError(ValueError):
    """The config file exists but is unreadable or not valid TOML."""


def get_default_config_path() -> Path:
    override = os.environ.get(f"{ENV_PREFIX}CONFIG_PATH")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_FILE


def load_config_file(
    path: Path | None = None, *, strict: bool = False
) -> dict[str, Any]:
    """Parse the TOML config file, reusing the last parse until it changes.

    A missing file is an empty config. A broken one is logged and treated
    as empty, or raises :class:`ConfigFileError` when ``strict`` is set.
    """
    path = path or get_default_config_path()
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        logger.debug("No config file at %s", path)
        return {}

    with _parsed_files_lock:
        if path in _parsed_files and _parsed_files[path][1] == mtime:
            return _parsed_files[path][0]
        try:
            tables = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            if strict:
                raise ConfigFileError(f"Failed to load config file {path}: {e}") from e
            logger.warning("Failed to load config file %s: %s", path, e)
            tables = {}
        else:
            logger.debug("Read config file %s", path)
        _parsed_files[path] = (tables, mtime)
        return tables


def clear_config_cache() -> None:
    """Forget parsed files so the next load reads from disk."""
    with _parsed_files_lock:
        _parsed_files.clear()


def _pick(*layers: Any) -> Any:
    return next((value for value in layers if value is not None), None)


def _toml_path(table: dict[str, Any], key: str) -> Path | None:
    raw = table.get(key)
    return Path(raw).expanduser() if raw else None


def get_config(
    config_path: Path | None = None,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    log_file: Path | None = None,
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> TrackmixConfig:
    """Merge overrides, environment, config file and defaults.

    ``env_reader`` replaces ``os.environ`` as the environment layer, which
    tests use to stay independent of the real environment.

    Raises:
        ConfigFileError: ``strict`` is set and the file cannot be parsed.
        ValueError: A merged value is out of range.
    """
    env = env_reader or EnvReader(prefix=ENV_PREFIX)
    tables = load_config_file(config_path, strict=strict)
    tools_table = tables.get("tools", {})
    log_table = tables.get("logging", {})
    import_table = tables.get("import", {})

    tools = ToolPathsConfig(
        ffmpeg=_pick(
            ffmpeg_path, env.get_path("FFMPEG_PATH"), _toml_path(tools_table, "ffmpeg")
        ),
        ffprobe=_pick(
            ffprobe_path,
            env.get_path("FFPROBE_PATH"),
            _toml_path(tools_table, "ffprobe"),
        ),
    )

    log_defaults = LoggingConfig()
    log_config = LoggingConfig(
        level=_pick(
            log_level,
            env.get_str("LOG_LEVEL"),
            log_table.get("level"),
            log_defaults.level,
        ),
        format=_pick(
            log_format,
            env.get_str("LOG_FORMAT"),
            log_table.get("format"),
            log_defaults.format,
        ),
        file=_pick(
            log_file,
            env.get_path("LOG_FILE", must_exist=False),
            _toml_path(log_table, "file"),
        ),
        include_stderr=_pick(
            log_table.get("include_stderr"), log_defaults.include_stderr
        ),
        max_bytes=_pick(log_table.get("max_bytes"), log_defaults.max_bytes),
        backup_count=_pick(log_table.get("backup_count"), log_defaults.backup_count),
    )

    import_defaults = ImportConfig()
    import_config = ImportConfig(
        max_workers=_pick(
            env.get_int("IMPORT_WORKERS"),
            import_table.get("max_workers"),
            import_defaults.max_workers,
        ),
        probe_timeout=_pick(
            env.get_float("PROBE_TIMEOUT"),
            import_table.get("probe_timeout"),
            import_defaults.probe_timeout,
        ),
    )

    return TrackmixConfig(tools=tools, logging=log_config, imports=import_config)
