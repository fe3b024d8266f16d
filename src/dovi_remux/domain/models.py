"""Domain models for dovi-remux.

Media models (MediaItem, MediaSource, StreamDescriptor, DoViMetadata) are
read-only snapshots fetched from a catalog at batch start. Pipeline models
(StageSpec, PipelineSpec, StageResult, PipelineOutcome) live only for the
processing of one item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dovi_remux.domain.enums import Classification, PipelineStatus, StreamType

# =============================================================================
# Media models
# =============================================================================


@dataclass(frozen=True)
class DoViMetadata:
    """Dolby Vision configuration record of a video stream."""

    profile: int
    bl_compatibility_id: int | None = None
    bl_present_flag: int | None = None


@dataclass(frozen=True)
class StreamDescriptor:
    """One elementary stream inside a media source."""

    index: int
    stream_type: StreamType
    codec: str | None = None
    dovi: DoViMetadata | None = None  # video streams only


@dataclass(frozen=True)
class MediaSource:
    """One physical file backing a media item."""

    id: str
    path: Path
    container: str | None
    streams: tuple[StreamDescriptor, ...] = ()

    @property
    def video_streams(self) -> tuple[StreamDescriptor, ...]:
        """Return the video streams in stream order."""
        return tuple(s for s in self.streams if s.stream_type is StreamType.VIDEO)


@dataclass(frozen=True)
class MediaItem:
    """A catalog entry (movie, episode) with its backing files."""

    id: str
    name: str
    container: str | None = None
    sources: tuple[MediaSource, ...] = ()


# =============================================================================
# Pipeline models
# =============================================================================


@dataclass(frozen=True)
class StageSpec:
    """Specification of one external tool invocation in a pipeline.

    A stage either reads the original file named in its arguments or the
    previous stage's stdout, and either writes a named file or feeds the next
    stage's stdin.
    """

    name: str
    """Short label used in log file names and messages (e.g. "ffmpeg")."""

    executable: Path
    args: tuple[str, ...] = ()

    reads_from_previous: bool = False
    """True if stdin is fed from the previous stage's stdout."""

    writes_to_next: bool = False
    """True if stdout is fed into the next stage's stdin."""

    output_path: Path | None = None
    """File this stage is expected to produce, checked after success."""

    @property
    def command(self) -> list[str]:
        """Full argv for the stage."""
        return [str(self.executable), *self.args]


@dataclass(frozen=True)
class PipelineSpec:
    """Ordered chain of stages where piped neighbours must agree."""

    name: str
    stages: tuple[StageSpec, ...]

    def __post_init__(self) -> None:
        """Validate stage wiring."""
        if not self.stages:
            raise ValueError(f"Pipeline {self.name!r} has no stages")
        if self.stages[0].reads_from_previous:
            raise ValueError(
                f"First stage {self.stages[0].name!r} cannot read from a "
                "previous stage"
            )
        if self.stages[-1].writes_to_next:
            raise ValueError(
                f"Last stage {self.stages[-1].name!r} cannot write to a next stage"
            )
        for upstream, downstream in zip(self.stages, self.stages[1:]):
            if upstream.writes_to_next != downstream.reads_from_previous:
                raise ValueError(
                    f"Stages {upstream.name!r} and {downstream.name!r} disagree "
                    "on piping"
                )

    @property
    def output_path(self) -> Path | None:
        """Final output file of the pipeline, if declared."""
        return self.stages[-1].output_path


@dataclass(frozen=True)
class StageResult:
    """Exit status and diagnostics of one stage."""

    index: int
    name: str
    exit_code: int | None
    log_path: Path | None = None
    excerpt: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """True if the stage exited with code 0."""
        return self.exit_code == 0


@dataclass(frozen=True)
class PipelineFailure:
    """Why a pipeline did not succeed."""

    kind: str  # "stage_exit", "transfer", "missing_output", "timeout"
    message: str
    stage_index: int | None = None
    stage_name: str | None = None
    exit_code: int | None = None
    excerpt: tuple[str, ...] = ()


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of running one PipelineSpec."""

    status: PipelineStatus
    stage_results: tuple[StageResult, ...] = ()
    output_path: Path | None = None
    failure: PipelineFailure | None = None

    @property
    def succeeded(self) -> bool:
        """True if every stage succeeded and the output exists."""
        return self.status is PipelineStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        """True if the pipeline was cancelled."""
        return self.status is PipelineStatus.CANCELLED

    def raise_for_status(self) -> None:
        """Raise the typed error matching a non-successful outcome.

        Raises:
            OperationCancelled: If the pipeline was cancelled.
            PipelineTimeoutError: If the pipeline timed out.
            StageExitError: If a stage exited non-zero.
            TransferError: If piping between stages failed.
            MissingOutputError: If the declared output was not produced.
        """
        # Import here to keep the domain layer free of executor imports
        from dovi_remux.core.cancellation import OperationCancelled
        from dovi_remux.executor.exceptions import (
            MissingOutputError,
            PipelineTimeoutError,
            StageExitError,
            TransferError,
        )

        if self.status is PipelineStatus.SUCCEEDED:
            return
        if self.status is PipelineStatus.CANCELLED:
            raise OperationCancelled("Pipeline was cancelled")

        failure = self.failure or PipelineFailure(
            kind="stage_exit", message="Pipeline failed"
        )
        if self.status is PipelineStatus.TIMED_OUT:
            raise PipelineTimeoutError(failure.message)
        if failure.kind == "transfer":
            raise TransferError(failure.message, stage_index=failure.stage_index)
        if failure.kind == "missing_output":
            raise MissingOutputError(failure.message)
        raise StageExitError(
            stage_index=failure.stage_index if failure.stage_index is not None else -1,
            stage_name=failure.stage_name or "unknown",
            exit_code=failure.exit_code,
            excerpt=failure.excerpt,
        )


# =============================================================================
# Batch models
# =============================================================================


@dataclass(frozen=True)
class ItemResult:
    """Result of processing one media item."""

    item_id: str
    name: str
    classification: Classification
    committed: bool = False
    path: Path | None = None


@dataclass(frozen=True)
class ItemFailure:
    """A per-item failure recorded by the batch loop."""

    item_id: str
    name: str
    error_type: str
    message: str


@dataclass
class BatchSummary:
    """Counters and failures of one batch run."""

    total: int = 0
    attempted: int = 0
    succeeded: int = 0
    skipped: int = 0
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        """Number of items that failed."""
        return len(self.failures)
