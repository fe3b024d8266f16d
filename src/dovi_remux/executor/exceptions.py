"""Exceptions for pipeline execution and commit.

Every error that is fatal to a single item (but not to the batch) derives
from ItemProcessingError, so the batch loop can isolate it. Cancellation is
deliberately not part of this hierarchy; see
dovi_remux.core.cancellation.OperationCancelled.
"""

from __future__ import annotations

from pathlib import Path


class ItemProcessingError(Exception):
    """Base exception for errors fatal to one item's processing."""


class ProcessLaunchError(ItemProcessingError):
    """Raised when an external tool cannot be started.

    Attributes:
        executable: Path of the executable that failed to start.
        stage_name: Label of the stage being spawned.
    """

    def __init__(self, executable: Path | str, stage_name: str, reason: str) -> None:
        self.executable = Path(executable)
        self.stage_name = stage_name
        super().__init__(
            f"Cannot start {stage_name} ({self.executable}): {reason}. "
            "Check the configured tool path and that the file is executable."
        )


class StageExitError(ItemProcessingError):
    """Raised when a pipeline stage exits with a non-zero code.

    Attributes:
        stage_index: Zero-based index of the failing stage.
        stage_name: Label of the failing stage.
        exit_code: Exit code reported by the process.
        excerpt: Last diagnostic lines written by the stage.
    """

    def __init__(
        self,
        stage_index: int,
        stage_name: str,
        exit_code: int | None,
        excerpt: tuple[str, ...] = (),
    ) -> None:
        self.stage_index = stage_index
        self.stage_name = stage_name
        self.exit_code = exit_code
        self.excerpt = excerpt
        message = f"Stage {stage_index} ({stage_name}) exited with code {exit_code}"
        if excerpt:
            message += ": " + " | ".join(excerpt[-3:])
        super().__init__(message)


class TransferError(ItemProcessingError):
    """Raised when piping bytes between two stages fails."""

    def __init__(self, message: str, stage_index: int | None = None) -> None:
        self.stage_index = stage_index
        super().__init__(message)


class MissingOutputError(ItemProcessingError):
    """Raised when every stage succeeded but the expected file is absent."""


class PipelineTimeoutError(ItemProcessingError):
    """Raised when a pipeline exceeds its configured timeout."""


class CommitError(ItemProcessingError):
    """Raised when the final output cannot replace the original file.

    The original file is left untouched whenever this is raised.
    """

    def __init__(self, original: Path, reason: str) -> None:
        self.original = original
        super().__init__(f"Failed to replace {original}: {reason}")
