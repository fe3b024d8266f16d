"""Batch processing and progress reporting."""

from dovi_remux.jobs.batch import BatchProcessor
from dovi_remux.jobs.progress import (
    NullProgressReporter,
    ProgressReporter,
    StderrProgressReporter,
)

__all__ = [
    "BatchProcessor",
    "NullProgressReporter",
    "ProgressReporter",
    "StderrProgressReporter",
]
