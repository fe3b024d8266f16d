"""Domain models and enums shared across dovi-remux modules."""

from dovi_remux.domain.enums import (
    Classification,
    FallbackMode,
    PipelineStatus,
    StreamType,
)
from dovi_remux.domain.models import (
    BatchSummary,
    DoViMetadata,
    ItemFailure,
    ItemResult,
    MediaItem,
    MediaSource,
    PipelineFailure,
    PipelineOutcome,
    PipelineSpec,
    StageResult,
    StageSpec,
    StreamDescriptor,
)

__all__ = [
    "BatchSummary",
    "Classification",
    "DoViMetadata",
    "FallbackMode",
    "ItemFailure",
    "ItemResult",
    "MediaItem",
    "MediaSource",
    "PipelineFailure",
    "PipelineOutcome",
    "PipelineSpec",
    "PipelineStatus",
    "StageResult",
    "StageSpec",
    "StreamDescriptor",
    "StreamType",
]
