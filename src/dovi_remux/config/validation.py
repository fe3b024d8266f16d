"""Pre-flight checks run once before a batch touches any item."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from dovi_remux.config.exceptions import ConfigurationError
from dovi_remux.config.models import DoViRemuxConfig, ResolvedTools

logger = logging.getLogger(__name__)


def resolve_tool(name: str, configured: Path | None) -> Path:
    """Resolve a tool to an executable path.

    Args:
        name: Executable name looked up in PATH when not configured.
        configured: Explicitly configured path, if any.

    Raises:
        ConfigurationError: If the tool cannot be found or is not executable.
    """
    if configured is not None:
        if not configured.is_file():
            raise ConfigurationError(f"{name} not found at configured path {configured}")
        if not os.access(configured, os.X_OK):
            raise ConfigurationError(f"{name} at {configured} is not executable")
        return configured

    found = shutil.which(name)
    if found is None:
        raise ConfigurationError(
            f"{name} not found in PATH. Install it or set its path in the "
            "[tools] section of the config file."
        )
    return Path(found)


def validate_for_batch(config: DoViRemuxConfig) -> ResolvedTools:
    """Check everything a batch run needs and resolve tool paths.

    Returns:
        Resolved tool executables. ffprobe is only resolved for the
        filesystem catalog.

    Raises:
        ConfigurationError: On a missing tool, catalog connection or scope.
    """
    if config.catalog == "jellyfin":
        if config.jellyfin is None:
            raise ConfigurationError(
                "Jellyfin catalog selected but no [jellyfin] url/api_key configured"
            )
        if not config.scope.ancestor_ids:
            raise ConfigurationError(
                "No library scope: set scope.ancestor_ids or pass --ancestor"
            )
    else:
        if not config.scope.library_paths:
            raise ConfigurationError(
                "No library scope: set scope.library_paths or pass --path"
            )
        missing = [p for p in config.scope.library_paths if not p.is_dir()]
        if missing:
            raise ConfigurationError(
                f"Library path is not a directory: {', '.join(map(str, missing))}"
            )

    tools = config.tools
    resolved = ResolvedTools(
        ffmpeg=resolve_tool("ffmpeg", tools.ffmpeg),
        dovi_tool=resolve_tool("dovi_tool", tools.dovi_tool),
        mkvmerge=resolve_tool("mkvmerge", tools.mkvmerge),
        ffprobe=(
            resolve_tool("ffprobe", tools.ffprobe)
            if config.catalog == "filesystem"
            else tools.ffprobe
        ),
    )
    logger.debug("Resolved tools: %s", resolved)
    return resolved
