"""Typed access to DOVI_REMUX_* environment variables.

EnvReader takes an optional mapping so tests can inject an environment
instead of patching os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "DOVI_REMUX_"


class EnvReader:
    """Reads environment variables with type conversion.

    Unset variables return the given default. Set but unparseable numeric
    values log a warning and also return the default.

    Example:
        reader = EnvReader(env={"DOVI_REMUX_PIPELINE_TIMEOUT": "600"})
        reader.get_int("DOVI_REMUX_PIPELINE_TIMEOUT", 0)  # 600
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Return the raw value, or default when unset or blank."""
        value = self._env.get(var)
        if value is None or not value.strip():
            return default
        return value.strip()

    def get_int(self, var: str, default: int | None = None) -> int | None:
        value = self.get_str(var)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Return True for "true", "1", "yes" or "on" (any case).

        Any other non-blank value is False.
        """
        value = self.get_str(var)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes", "on")

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Return the value as an expanded Path.

        Existence is not checked here; tool paths are verified when a batch
        is validated.
        """
        value = self.get_str(var)
        if value is None:
            return default
        return Path(value).expanduser()

    def get_list(
        self, var: str, separator: str = ",", default: list[str] | None = None
    ) -> list[str]:
        """Split the value on separator, dropping blank entries."""
        value = self.get_str(var)
        if value is None:
            return list(default) if default is not None else []
        return [part.strip() for part in value.split(separator) if part.strip()]

    def get_path_list(
        self, var: str, separator: str = os.pathsep, default: list[Path] | None = None
    ) -> list[Path]:
        """Split the value on separator into expanded Paths."""
        parts = self.get_list(var, separator=separator)
        if not parts:
            return list(default) if default is not None else []
        return [Path(part).expanduser() for part in parts]
