"""Per-item workflow: classify, run pipelines, commit.

ItemProcessor turns one MediaItem into at most one atomic file replacement.
Intermediate files live in the temp directory under unique names and are
removed on every exit path.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dovi_remux.classification import classify, select_source
from dovi_remux.config.models import DoViRemuxConfig, ResolvedTools
from dovi_remux.config.validation import resolve_tool
from dovi_remux.core.cancellation import CancellationToken
from dovi_remux.core.file_utils import ensure_directory, unique_artifact_path
from dovi_remux.domain.enums import Classification, FallbackMode
from dovi_remux.domain.models import ItemResult, MediaItem, MediaSource, PipelineSpec
from dovi_remux.executor.artifacts import cleanup_artifacts
from dovi_remux.executor.commands import (
    reencode_pipelines,
    remux_pipelines,
    strip_pipelines,
)
from dovi_remux.executor.commit import commit
from dovi_remux.executor.pipeline import PipelineExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessingPlan:
    """Pipelines and files involved in converting one source."""

    source: MediaSource
    classification: Classification
    pipelines: tuple[PipelineSpec, ...]
    temp_output: Path
    artifacts: tuple[Path, ...]


class ItemProcessor:
    """Processes one media item at a time."""

    def __init__(
        self,
        config: DoViRemuxConfig,
        executor: PipelineExecutor | None = None,
        tools: ResolvedTools | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Configuration snapshot.
            executor: Pipeline executor; built from config when None.
            tools: Resolved tool paths; resolved from config when None.

        Raises:
            ConfigurationError: If tools is None and a tool cannot be found.
        """
        self.config = config
        processing = config.processing
        self.executor = executor or PipelineExecutor(
            log_dir=processing.log_directory,
            timeout=processing.pipeline_timeout or None,
            terminate_grace=processing.terminate_grace,
        )
        self.tools = tools or ResolvedTools(
            ffmpeg=resolve_tool("ffmpeg", config.tools.ffmpeg),
            dovi_tool=resolve_tool("dovi_tool", config.tools.dovi_tool),
            mkvmerge=resolve_tool("mkvmerge", config.tools.mkvmerge),
        )

    @property
    def temp_dir(self) -> Path:
        return self.config.processing.temp_directory or Path(tempfile.gettempdir())

    def classify_item(self, item: MediaItem) -> tuple[MediaSource | None, Classification]:
        """Return the source that would be processed and its classification."""
        processing = self.config.processing
        source = select_source(item, processing.expected_container)
        if source is None:
            return None, Classification.SKIP
        return source, classify(
            source, processing.expected_container, processing.target_profile
        )

    def plan(
        self, item: MediaItem, source: MediaSource, classification: Classification
    ) -> ProcessingPlan:
        """Choose pipelines and unique artifact paths for a source.

        Raises:
            ValueError: If classification is SKIP.
        """
        if classification is Classification.SKIP:
            raise ValueError(f"Nothing to plan for skipped item {item.id}")

        temp_dir = self.temp_dir
        temp_output = unique_artifact_path(
            temp_dir, source.path.stem, item.id, ".mkv"
        )
        mode = self.config.processing.fallback_mode

        if (
            classification is Classification.FALLBACK_CONVERT
            and mode is FallbackMode.REENCODE
        ):
            pipelines = reencode_pipelines(
                self.tools,
                source.path,
                temp_output,
                self.config.processing.reencode_bitrate,
            )
            artifacts: tuple[Path, ...] = ()
        else:
            elementary = unique_artifact_path(temp_dir, "dovi_tool", item.id, ".hevc")
            build = (
                remux_pipelines
                if classification is Classification.REMUX
                else strip_pipelines
            )
            pipelines = build(self.tools, source.path, elementary, temp_output)
            artifacts = (elementary,)

        return ProcessingPlan(
            source=source,
            classification=classification,
            pipelines=tuple(pipelines),
            temp_output=temp_output,
            artifacts=artifacts,
        )

    def process(
        self, item: MediaItem, cancel: CancellationToken | None = None
    ) -> ItemResult:
        """Convert one item and replace its file in place.

        Returns:
            ItemResult; committed is True only if the original was replaced.

        Raises:
            ItemProcessingError: On launch, stage, transfer, timeout, output
                or commit failure. The original file is untouched.
            OperationCancelled: If cancellation was requested.
        """
        cancel = cancel or CancellationToken()
        source, classification = self.classify_item(item)

        if source is None or classification is Classification.SKIP:
            logger.debug("Skipping %s (%s)", item.name, item.id)
            return ItemResult(
                item_id=item.id,
                name=item.name,
                classification=Classification.SKIP,
                path=source.path if source is not None else None,
            )

        plan = self.plan(item, source, classification)
        logger.info(
            "Processing %s as %s",
            item.name,
            classification.value,
            extra={"classification": classification.value},
        )

        if self.config.processing.dry_run:
            for spec in plan.pipelines:
                for stage in spec.stages:
                    logger.info("[dry-run] %s: %s", spec.name, " ".join(stage.command))
            return ItemResult(
                item_id=item.id,
                name=item.name,
                classification=classification,
                path=source.path,
            )

        cancel.raise_if_cancelled()
        ensure_directory(self.temp_dir)
        try:
            original_size: int | None = source.path.stat().st_size
        except OSError:
            # The first stage reports an unreadable source
            original_size = None
        try:
            for spec in plan.pipelines:
                outcome = self.executor.run(
                    spec,
                    cancel,
                    label=item.id,
                    reference_size=(
                        original_size
                        if spec.output_path == plan.temp_output
                        else None
                    ),
                )
                outcome.raise_for_status()
            cancel.raise_if_cancelled()
            commit(plan.temp_output, source.path, plan.artifacts)
        finally:
            cleanup_artifacts((*plan.artifacts, plan.temp_output))

        logger.info("Converted %s", source.path)
        return ItemResult(
            item_id=item.id,
            name=item.name,
            classification=classification,
            committed=True,
            path=source.path,
        )
