"""Naming and directory helpers for per-invocation artifacts.

Temp outputs, extracted elementary streams and stage logs share directories
across runs, so every name carries the item identity plus a random suffix.
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path

# Characters allowed in generated file name components
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Length of the random hex suffix appended to artifact names
SUFFIX_LENGTH = 8


def unique_suffix() -> str:
    """Return a short random hex string for artifact names."""
    return uuid.uuid4().hex[:SUFFIX_LENGTH]


def safe_path_component(value: str, max_length: int = 64) -> str:
    """Make a string safe for use inside a file name.

    Replaces path separators and other unsafe characters with underscores
    and truncates overly long values.

    Args:
        value: Raw value (item id, file stem, stage name).
        max_length: Maximum length of the result.

    Returns:
        Sanitized string, "item" if nothing usable remains.
    """
    cleaned = _UNSAFE_CHARS.sub("_", value).strip("._")
    return cleaned[:max_length] or "item"


def unique_artifact_path(
    directory: Path, prefix: str, item_id: str, extension: str
) -> Path:
    """Build ``{directory}/{prefix}_{item_id}_{random}{extension}``.

    Args:
        directory: Directory that will hold the artifact.
        prefix: Artifact kind or tool name (e.g. "dovi_tool").
        item_id: Identity of the media item being processed.
        extension: File extension including the dot (e.g. ".hevc").

    Returns:
        Path that is unique per invocation.
    """
    name = (
        f"{safe_path_component(prefix)}_{safe_path_component(item_id)}_"
        f"{unique_suffix()}{extension}"
    )
    return directory / name


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path
