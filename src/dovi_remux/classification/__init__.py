"""Classification of media sources by their Dolby Vision metadata."""

from dovi_remux.classification.classifier import (
    classify,
    find_dovi_stream,
    is_candidate,
    select_source,
)

__all__ = [
    "classify",
    "find_dovi_stream",
    "is_candidate",
    "select_source",
]
