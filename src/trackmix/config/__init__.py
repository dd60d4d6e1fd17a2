"""Configuration for trackmix."""

from trackmix.config.env import EnvReader
from trackmix.config.loader import (
    ConfigFileError,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from trackmix.config.models import (
    ImportConfig,
    LoggingConfig,
    ToolPathsConfig,
    TrackmixConfig,
)

__all__ = [
    "ConfigFileError",
    "EnvReader",
    "ImportConfig",
    "LoggingConfig",
    "ToolPathsConfig",
    "TrackmixConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
