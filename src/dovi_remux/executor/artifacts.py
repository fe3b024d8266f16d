"""Output validation and cleanup of intermediate files.

Shared by the pipeline executor (output checks) and the commit step
(artifact removal after the original has been replaced).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

# Outputs smaller than this share of the original are logged as suspicious
MIN_OUTPUT_RATIO = 0.1


def validate_output(
    output_path: Path, reference_size: int | None = None
) -> str | None:
    """Check a file produced by the final stage of a pipeline.

    Args:
        output_path: File the pipeline declared as its output.
        reference_size: Size in bytes of the original media file. When given,
            an output below MIN_OUTPUT_RATIO of it is logged but accepted.

    Returns:
        A description of the problem, or None if the output is usable.
    """
    try:
        size = output_path.stat().st_size
    except FileNotFoundError:
        return f"No output produced at {output_path}"
    except OSError as e:
        return f"Cannot stat output {output_path}: {e}"

    if size == 0:
        return f"Output {output_path} is empty"

    if reference_size and size < reference_size * MIN_OUTPUT_RATIO:
        logger.warning(
            "Output %s is %d bytes, only %.1f%% of the original (%d bytes)",
            output_path,
            size,
            100 * size / reference_size,
            reference_size,
        )
    return None


def cleanup_temp_file(path: Path) -> bool:
    """Remove a temporary file, logging any errors.

    Args:
        path: Path to temp file to remove.

    Returns:
        True if the file is gone afterwards.
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not clean up temp file %s: %s", path, e)
        return False
    logger.debug("Cleaned up temp file: %s", path)
    return True


def cleanup_artifacts(paths: Iterable[Path | None]) -> int:
    """Remove every intermediate artifact, ignoring missing ones.

    Args:
        paths: Artifact paths; None entries are skipped.

    Returns:
        Number of artifacts that could not be removed.
    """
    failures = 0
    for path in paths:
        if path is not None and not cleanup_temp_file(path):
            failures += 1
    return failures
