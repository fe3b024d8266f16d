"""Progress reporting for batch runs.

The batch loop reports through the ProgressReporter protocol so the CLI,
tests and embedding applications can each display progress their own way.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Protocol

logger = logging.getLogger(__name__)

# Longest item name shown on the progress line
MAX_NAME_WIDTH = 40


class ProgressReporter(Protocol):
    """Protocol for progress reporting during a batch."""

    def on_start(self, total: int) -> None:
        """Initialize progress tracking with total item count."""
        ...

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        """Signal that an item has finished (processed, skipped or failed).

        Args:
            index: Zero-based index of the completed item.
            success: False if the item failed.
            message: Optional status message.
        """
        ...

    def on_progress(self, percent: float, message: str = "") -> None:
        """Update overall progress.

        Args:
            percent: Progress percentage (0-100).
            message: Optional status message.
        """
        ...

    def on_complete(self, success: bool = True) -> None:
        """Signal that all processing is complete."""
        ...


class NullProgressReporter:
    """Reporter that discards every update."""

    def on_start(self, total: int) -> None:
        pass

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        pass

    def on_progress(self, percent: float, message: str = "") -> None:
        pass

    def on_complete(self, success: bool = True) -> None:
        pass


class StderrProgressReporter:
    """Progress reporter that writes to stderr with in-place updates."""

    def __init__(self, enabled: bool = True) -> None:
        """Initialize stderr progress reporter.

        Args:
            enabled: If False, suppresses output (for JSON mode or tests).
        """
        self.enabled = enabled
        self.total = 0
        self.completed = 0
        self.failed = 0
        self.percent = 0.0
        self.current = ""
        self._last_width = 0
        self._lock = threading.Lock()

    def on_start(self, total: int) -> None:
        with self._lock:
            self.total = total
            self.completed = 0
            self.failed = 0
            self.percent = 0.0
        self._update_display()

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        with self._lock:
            self.completed += 1
            if self.completed > self.total > 0:
                logger.warning(
                    "Progress tracking: completed (%d) exceeds total (%d)",
                    self.completed,
                    self.total,
                )
            if not success:
                self.failed += 1
        self._update_display()

    def on_progress(self, percent: float, message: str = "") -> None:
        with self._lock:
            self.percent = max(0.0, min(100.0, percent))
            self.current = message
        self._update_display()

    def on_complete(self, success: bool = True) -> None:
        """Finish the progress line with a newline."""
        if self.enabled:
            sys.stderr.write("\n")
            sys.stderr.flush()

    def _update_display(self) -> None:
        if not self.enabled:
            return

        with self._lock:
            msg = (
                f"\rProcessing: {self.completed}/{self.total} "
                f"({self.percent:.0f}%) [{self.failed} failed]"
            )
            if self.current:
                msg += f" {self.current[:MAX_NAME_WIDTH]}"
            # Pad to erase a longer previous line
            msg = msg.ljust(self._last_width)
            self._last_width = len(msg)
        sys.stderr.write(msg)
        sys.stderr.flush()
