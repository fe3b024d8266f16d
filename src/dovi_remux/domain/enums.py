"""Domain enums for dovi-remux.

This module contains the enums used across the classifier, the pipeline
executor and the batch loop.
"""

from enum import Enum


class StreamType(Enum):
    """Type of an elementary stream inside a media container."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    ATTACHMENT = "attachment"
    DATA = "data"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: str | None) -> "StreamType":
        """Map a catalog or ffprobe stream type string to a StreamType.

        Unknown and missing values map to OTHER.
        """
        if not value:
            return cls.OTHER
        try:
            return cls(value.casefold())
        except ValueError:
            return cls.OTHER


class Classification(Enum):
    """What to do with a media source, derived from its Dolby Vision metadata.

    - REMUX: profile 8.1 with a present, HDR10-compatible base layer. The RPU
      can be converted to profile 7.6 and remuxed without re-encoding.
    - FALLBACK_CONVERT: profile 8 but not structurally remuxable. The
      Dolby Vision layer is stripped (or the video re-encoded) to HDR10.
    - SKIP: anything else. Never spawns a process.
    """

    REMUX = "remux"
    FALLBACK_CONVERT = "fallback_convert"
    SKIP = "skip"


class FallbackMode(Enum):
    """How FALLBACK_CONVERT sources are turned into HDR10."""

    STRIP = "strip"  # dovi_tool remove + mkvmerge, no re-encode
    REENCODE = "reencode"  # full libx265 pass through libplacebo


class PipelineStatus(Enum):
    """Terminal status of one pipeline run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
