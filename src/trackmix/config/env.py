"""Typed access to TRACKMIX_* environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class EnvReader:
    """Read prefixed environment variables and convert their values.

    A value that is set but cannot be converted is logged and replaced by
    the getter's default. Tests pass their own mapping instead of
    touching ``os.environ``.

    Example:
        reader = EnvReader({"TRACKMIX_IMPORT_WORKERS": "8"}, prefix="TRACKMIX_")
        reader.get_int("IMPORT_WORKERS", 4)  # 8
    """

    def __init__(
        self, env: Mapping[str, str] | None = None, prefix: str = ""
    ) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env
        self._prefix = prefix

    def name(self, var: str) -> str:
        """Full variable name, prefix included."""
        return self._prefix + var

    def _convert(
        self,
        var: str,
        default: T | None,
        convert: Callable[[str], T],
        kind: str,
    ) -> T | None:
        raw = self._env.get(self.name(var))
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", kind, self.name(var), raw)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._env.get(self.name(var), default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, default, int, "integer")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, default, float, "float")

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Anything other than 1/true/yes/on (any case) reads as False."""
        return self._convert(
            var, default, lambda raw: raw.strip().lower() in _TRUE_VALUES, "boolean"
        )

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Return the variable as an expanded Path.

        With ``must_exist``, a path missing on disk is logged and ignored.
        """
        path = self._convert(var, None, lambda raw: Path(raw).expanduser(), "path")
        if path is None:
            return default
        if must_exist and not path.exists():
            logger.warning(
                "%s points to a missing path, ignoring it: %s", self.name(var), path
            )
            return default
        return path
