"""Sequential batch processing of catalog items.

BatchProcessor isolates per-item failures: one broken file is logged and
recorded, and the loop moves on. Cancellation is the only thing that stops
the loop early.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from dovi_remux.catalog.interface import RescanSignal
from dovi_remux.config.models import DoViRemuxConfig
from dovi_remux.core.cancellation import CancellationToken, OperationCancelled
from dovi_remux.domain.enums import Classification
from dovi_remux.domain.models import BatchSummary, ItemFailure, MediaItem
from dovi_remux.executor.exceptions import ItemProcessingError
from dovi_remux.jobs.progress import NullProgressReporter, ProgressReporter
from dovi_remux.logging.context import item_context
from dovi_remux.workflow.processor import ItemProcessor

logger = logging.getLogger(__name__)


def _item_path(item: MediaItem) -> str | None:
    return str(item.sources[0].path) if item.sources else None


class BatchProcessor:
    """Runs ItemProcessor over a list of items, one at a time."""

    def __init__(
        self,
        config: DoViRemuxConfig,
        processor: ItemProcessor | None = None,
    ) -> None:
        self.config = config
        self.processor = processor or ItemProcessor(config)

    def run(
        self,
        items: Sequence[MediaItem],
        cancel: CancellationToken | None = None,
        progress: ProgressReporter | None = None,
        rescan: RescanSignal | None = None,
    ) -> BatchSummary:
        """Process every item and return counters and failures.

        Args:
            items: Items to process, in order.
            cancel: Cancellation token checked before each item and passed
                down to every pipeline.
            progress: Receives a percentage after every item.
            rescan: Notified once after the loop if any item was attempted.

        Returns:
            BatchSummary for the run.

        Raises:
            OperationCancelled: If cancellation was requested. Items already
                committed stay committed; no rescan is requested.
        """
        cancel = cancel or CancellationToken()
        progress = progress or NullProgressReporter()
        summary = BatchSummary(total=len(items))
        start_time = time.monotonic()

        logger.info("Starting batch of %d item(s)", summary.total)
        progress.on_start(summary.total)

        try:
            for index, item in enumerate(items):
                cancel.raise_if_cancelled()
                summary.attempted += 1
                success = self._process_one(item, cancel, summary)
                progress.on_item_complete(index, success, item.name)
                progress.on_progress((index + 1) / summary.total * 100, item.name)
        except OperationCancelled:
            logger.warning(
                "Batch cancelled after %d of %d item(s)",
                summary.attempted,
                summary.total,
            )
            progress.on_complete(success=False)
            raise

        progress.on_complete(success=not summary.failures)

        if summary.attempted > 0 and rescan is not None:
            try:
                rescan.request_rescan()
            except Exception as e:
                logger.warning("Library rescan request failed: %s", e)

        logger.info(
            "Batch finished in %.1f seconds: %d succeeded, %d skipped, %d failed",
            time.monotonic() - start_time,
            summary.succeeded,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _process_one(
        self, item: MediaItem, cancel: CancellationToken, summary: BatchSummary
    ) -> bool:
        """Process one item, recording the result in summary.

        Returns:
            False if the item failed.
        """
        with item_context(item.id, _item_path(item)):
            try:
                result = self.processor.process(item, cancel)
            except ItemProcessingError as e:
                logger.error("Failed to process %s: %s", item.name, e)
                summary.failures.append(
                    ItemFailure(
                        item_id=item.id,
                        name=item.name,
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )
                return False
            except Exception as e:
                logger.exception("Unexpected error processing %s", item.name)
                summary.failures.append(
                    ItemFailure(
                        item_id=item.id,
                        name=item.name,
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )
                return False

        if result.classification is Classification.SKIP:
            summary.skipped += 1
        else:
            summary.succeeded += 1
        return True
