"""Tests for domain models and enums."""

from pathlib import Path

import pytest

from dovi_remux.core.cancellation import OperationCancelled
from dovi_remux.domain.enums import PipelineStatus, StreamType
from dovi_remux.domain.models import (
    BatchSummary,
    ItemFailure,
    PipelineFailure,
    PipelineOutcome,
    PipelineSpec,
    StageSpec,
)
from dovi_remux.executor.exceptions import (
    MissingOutputError,
    PipelineTimeoutError,
    StageExitError,
    TransferError,
)

TOOL = Path("/usr/bin/true")


class TestStreamType:
    """Tests for StreamType.from_value()."""

    def test_known_values_case_insensitive(self):
        """Should map catalog and ffprobe spellings."""
        assert StreamType.from_value("Video") is StreamType.VIDEO
        assert StreamType.from_value("audio") is StreamType.AUDIO
        assert StreamType.from_value("Subtitle") is StreamType.SUBTITLE

    def test_unknown_and_missing_map_to_other(self):
        """Should fall back to OTHER."""
        assert StreamType.from_value("EmbeddedImage") is StreamType.OTHER
        assert StreamType.from_value(None) is StreamType.OTHER


class TestPipelineSpec:
    """Tests for PipelineSpec wiring validation."""

    def test_valid_two_stage_pipeline(self):
        """Should accept a producer piped into a consumer."""
        spec = PipelineSpec(
            name="p",
            stages=(
                StageSpec("a", TOOL, writes_to_next=True),
                StageSpec(
                    "b", TOOL, reads_from_previous=True, output_path=Path("/x")
                ),
            ),
        )
        assert spec.output_path == Path("/x")

    def test_empty_pipeline_rejected(self):
        """Should reject a pipeline with no stages."""
        with pytest.raises(ValueError, match="no stages"):
            PipelineSpec(name="p", stages=())

    def test_first_stage_cannot_read_from_previous(self):
        """Should reject a first stage expecting piped input."""
        with pytest.raises(ValueError, match="First stage"):
            PipelineSpec(
                name="p", stages=(StageSpec("a", TOOL, reads_from_previous=True),)
            )

    def test_last_stage_cannot_write_to_next(self):
        """Should reject a last stage with nowhere to write."""
        with pytest.raises(ValueError, match="Last stage"):
            PipelineSpec(name="p", stages=(StageSpec("a", TOOL, writes_to_next=True),))

    def test_neighbours_must_agree(self):
        """Should reject a producer followed by a non-consumer."""
        with pytest.raises(ValueError, match="disagree"):
            PipelineSpec(
                name="p",
                stages=(
                    StageSpec("a", TOOL, writes_to_next=True),
                    StageSpec("b", TOOL),
                ),
            )

    def test_stage_command(self):
        """Should build argv from executable and args."""
        stage = StageSpec("a", TOOL, args=("-x", "1"))
        assert stage.command == ["/usr/bin/true", "-x", "1"]


class TestPipelineOutcomeRaiseForStatus:
    """Tests for PipelineOutcome.raise_for_status()."""

    def test_success_does_not_raise(self):
        """Should return quietly on success."""
        PipelineOutcome(status=PipelineStatus.SUCCEEDED).raise_for_status()

    def test_cancelled_raises_operation_cancelled(self):
        """Should convert a cancelled outcome to OperationCancelled."""
        with pytest.raises(OperationCancelled):
            PipelineOutcome(status=PipelineStatus.CANCELLED).raise_for_status()

    def test_timeout(self):
        """Should raise PipelineTimeoutError for a timed out outcome."""
        outcome = PipelineOutcome(
            status=PipelineStatus.TIMED_OUT,
            failure=PipelineFailure(kind="timeout", message="too slow"),
        )
        with pytest.raises(PipelineTimeoutError, match="too slow"):
            outcome.raise_for_status()

    def test_stage_exit_carries_details(self):
        """Should raise StageExitError with stage index, code and excerpt."""
        outcome = PipelineOutcome(
            status=PipelineStatus.FAILED,
            failure=PipelineFailure(
                kind="stage_exit",
                message="dovi_tool exited with code 2",
                stage_index=1,
                stage_name="dovi_tool",
                exit_code=2,
                excerpt=("bad rpu",),
            ),
        )
        with pytest.raises(StageExitError) as exc_info:
            outcome.raise_for_status()
        assert exc_info.value.stage_index == 1
        assert exc_info.value.exit_code == 2
        assert "bad rpu" in str(exc_info.value)

    def test_transfer_and_missing_output(self):
        """Should map transfer and missing_output failures to their errors."""
        transfer = PipelineOutcome(
            status=PipelineStatus.FAILED,
            failure=PipelineFailure(kind="transfer", message="pipe", stage_index=0),
        )
        with pytest.raises(TransferError):
            transfer.raise_for_status()

        missing = PipelineOutcome(
            status=PipelineStatus.FAILED,
            failure=PipelineFailure(kind="missing_output", message="gone"),
        )
        with pytest.raises(MissingOutputError):
            missing.raise_for_status()


class TestBatchSummary:
    """Tests for BatchSummary."""

    def test_failed_counts_failures(self):
        """Should derive the failed count from recorded failures."""
        summary = BatchSummary(total=2)
        summary.failures.append(ItemFailure("1", "a", "StageExitError", "x"))
        assert summary.failed == 1
