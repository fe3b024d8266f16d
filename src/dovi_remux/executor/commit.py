"""Atomic replacement of an original media file.

The pipeline writes its final output to a temp path; commit() swaps it over
the original in a single rename. When the temp directory lives on another
filesystem, the output is first copied next to the original and renamed from
there, so the original path only ever holds either the old file or the
complete new one.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from dovi_remux.core.file_utils import unique_suffix
from dovi_remux.executor.artifacts import cleanup_artifacts, cleanup_temp_file
from dovi_remux.executor.exceptions import CommitError

logger = logging.getLogger(__name__)

# Prefix of the hidden staging file used for cross-device commits
STAGING_PREFIX = ".dovi-remux-staging-"


def _copy_permissions(original: Path, replacement: Path) -> None:
    """Give the replacement the original's permission bits (best effort)."""
    try:
        shutil.copymode(original, replacement)
    except OSError as e:
        logger.debug("Could not copy permissions from %s: %s", original, e)


def _stage_next_to(original: Path, temp_output: Path) -> Path:
    """Copy temp_output into original's directory and fsync it.

    Raises:
        OSError: If the copy fails. The partial staging file is removed.
    """
    staging = original.with_name(f"{STAGING_PREFIX}{unique_suffix()}{original.suffix}")
    try:
        shutil.copyfile(temp_output, staging)
        with staging.open("rb+") as handle:
            os.fsync(handle.fileno())
    except OSError:
        cleanup_temp_file(staging)
        raise
    return staging


def commit(
    temp_output: Path,
    original: Path,
    artifacts: Iterable[Path | None] = (),
) -> None:
    """Replace original with temp_output, then delete intermediate artifacts.

    Args:
        temp_output: Complete pipeline output.
        original: File to overwrite.
        artifacts: Intermediate files to delete after a successful commit.
            Deletion failures are logged, never raised.

    Raises:
        CommitError: If the replacement fails. The original is untouched.
    """
    if not temp_output.is_file():
        raise CommitError(original, f"output file missing: {temp_output}")

    _copy_permissions(original, temp_output)
    logger.info(
        "Replacing original file",
        extra={"source_path": str(temp_output), "target_path": str(original)},
    )

    try:
        os.replace(temp_output, original)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise CommitError(original, str(e)) from e

        logger.debug("Cross-device commit for %s, staging next to original", original)
        try:
            staging = _stage_next_to(original, temp_output)
        except OSError as copy_error:
            raise CommitError(original, f"staging copy failed: {copy_error}") from copy_error
        try:
            os.replace(staging, original)
        except OSError as rename_error:
            cleanup_temp_file(staging)
            raise CommitError(original, str(rename_error)) from rename_error
        cleanup_temp_file(temp_output)

    logger.info("Replaced %s", original)

    failures = cleanup_artifacts(artifacts)
    if failures:
        logger.warning(
            "%d intermediate file(s) for %s could not be removed", failures, original
        )
