"""Filesystem catalog: walk directories and probe files with ffprobe."""

from __future__ import annotations

import json
import logging
import os
import subprocess  # nosec B404 - needed for TimeoutExpired
from collections.abc import Iterator
from pathlib import Path

from dovi_remux.catalog.interface import CatalogError
from dovi_remux.catalog.parsers import parse_ffprobe_output
from dovi_remux.config.models import ScopeConfig
from dovi_remux.core.subprocess_utils import run_command
from dovi_remux.domain.models import MediaItem

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({".mkv", ".mp4", ".m4v", ".mov", ".ts", ".m2ts"})

PROBE_TIMEOUT = 60


class FfprobeError(CatalogError):
    """Raised when a single file cannot be probed."""


def probe_file(ffprobe: Path, path: Path, timeout: int = PROBE_TIMEOUT) -> MediaItem:
    """Probe one file and return it as a single-source MediaItem.

    Raises:
        FfprobeError: If ffprobe fails, times out or prints invalid JSON.
    """
    try:
        stdout, stderr, returncode = run_command(
            [
                ffprobe,
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                path,
            ],
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise FfprobeError(f"ffprobe timed out for {path} after {e.timeout}s") from e
    except OSError as e:
        raise FfprobeError(f"Cannot run ffprobe: {e}") from e

    if returncode != 0:
        raise FfprobeError(f"ffprobe failed for {path}: {stderr.strip() or returncode}")

    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise FfprobeError(f"Invalid ffprobe output for {path}: {e}") from e

    return parse_ffprobe_output(path, data)


def iter_video_files(root: Path) -> Iterator[Path]:
    """Yield video files below root in sorted order, skipping hidden entries."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            path = Path(dirpath) / filename
            if path.suffix.casefold() in VIDEO_EXTENSIONS:
                yield path


class FilesystemCatalog:
    """Catalog over plain directories."""

    def __init__(self, ffprobe: Path, timeout: int = PROBE_TIMEOUT) -> None:
        self._ffprobe = ffprobe
        self._timeout = timeout

    def get_items(self, scope: ScopeConfig) -> list[MediaItem]:
        """Probe every video file below the scope's library paths.

        Files that cannot be probed are logged and left out.
        """
        items: list[MediaItem] = []
        for root in scope.library_paths:
            if not root.is_dir():
                raise CatalogError(f"Library path is not a directory: {root}")
            for path in iter_video_files(root):
                try:
                    items.append(probe_file(self._ffprobe, path, self._timeout))
                except FfprobeError as e:
                    logger.warning("Skipping %s: %s", path, e)
        logger.info("Found %d video file(s)", len(items))
        return items


class LoggingRescanSignal:
    """Rescan signal for setups without a library server."""

    def request_rescan(self) -> None:
        logger.info("Files changed; refresh your media library to pick them up")
