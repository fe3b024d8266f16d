"""Parse catalog responses and ffprobe JSON into domain models."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dovi_remux.domain.enums import StreamType
from dovi_remux.domain.models import (
    DoViMetadata,
    MediaItem,
    MediaSource,
    StreamDescriptor,
)

logger = logging.getLogger(__name__)

# ffprobe side data entry carrying the Dolby Vision configuration record
DOVI_SIDE_DATA_TYPE = "DOVI configuration record"

# ffprobe format_name aliases mapped to the short container names catalogs use
_FORMAT_ALIASES = {
    "matroska": "mkv",
    "mov": "mp4",
    "mpegts": "ts",
}


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Jellyfin
# =============================================================================


def parse_jellyfin_stream(data: Mapping[str, Any]) -> StreamDescriptor:
    """Parse one entry of MediaSources[].MediaStreams[]."""
    stream_type = StreamType.from_value(data.get("Type"))
    dovi = None
    profile = _optional_int(data.get("DvProfile"))
    if stream_type is StreamType.VIDEO and profile is not None:
        dovi = DoViMetadata(
            profile=profile,
            bl_compatibility_id=_optional_int(data.get("DvBlSignalCompatibilityId")),
            bl_present_flag=_optional_int(data.get("BlPresentFlag")),
        )
    return StreamDescriptor(
        index=_optional_int(data.get("Index")) or 0,
        stream_type=stream_type,
        codec=data.get("Codec"),
        dovi=dovi,
    )


def parse_jellyfin_item(data: Mapping[str, Any]) -> MediaItem | None:
    """Parse one entry of an /Items response.

    Returns:
        MediaItem, or None if the entry has no id.
    """
    item_id = data.get("Id")
    if not item_id:
        logger.debug("Ignoring catalog entry without Id: %s", data.get("Name"))
        return None

    sources: list[MediaSource] = []
    for source in data.get("MediaSources") or []:
        path = source.get("Path") or data.get("Path")
        if not path:
            continue
        sources.append(
            MediaSource(
                id=source.get("Id") or item_id,
                path=Path(path),
                container=source.get("Container"),
                streams=tuple(
                    parse_jellyfin_stream(s) for s in source.get("MediaStreams") or []
                ),
            )
        )

    return MediaItem(
        id=item_id,
        name=data.get("Name") or item_id,
        container=data.get("Container"),
        sources=tuple(sources),
    )


# =============================================================================
# ffprobe
# =============================================================================


def normalize_container(format_name: str | None) -> str | None:
    """Map an ffprobe format_name ("matroska,webm") to a short name ("mkv")."""
    if not format_name:
        return None
    first = format_name.split(",")[0].strip().casefold()
    return _FORMAT_ALIASES.get(first, first)


def parse_dovi_side_data(stream: Mapping[str, Any]) -> DoViMetadata | None:
    """Extract the Dolby Vision configuration record of an ffprobe stream."""
    for side_data in stream.get("side_data_list") or []:
        if side_data.get("side_data_type") != DOVI_SIDE_DATA_TYPE:
            continue
        profile = _optional_int(side_data.get("dv_profile"))
        if profile is None:
            return None
        return DoViMetadata(
            profile=profile,
            bl_compatibility_id=_optional_int(
                side_data.get("dv_bl_signal_compatibility_id")
            ),
            bl_present_flag=_optional_int(side_data.get("bl_present_flag")),
        )
    return None


def parse_ffprobe_stream(stream: Mapping[str, Any]) -> StreamDescriptor:
    stream_type = StreamType.from_value(stream.get("codec_type"))
    return StreamDescriptor(
        index=_optional_int(stream.get("index")) or 0,
        stream_type=stream_type,
        codec=stream.get("codec_name"),
        dovi=parse_dovi_side_data(stream) if stream_type is StreamType.VIDEO else None,
    )


def item_id_for_path(path: Path) -> str:
    """Stable short id for a file that has no catalog id."""
    return hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]  # nosec B324


def parse_ffprobe_output(path: Path, data: Mapping[str, Any]) -> MediaItem:
    """Build a single-source MediaItem from ffprobe JSON output.

    Streams with a duplicate index are dropped with a warning.
    """
    container = normalize_container((data.get("format") or {}).get("format_name"))

    streams: list[StreamDescriptor] = []
    seen: set[int] = set()
    for raw in data.get("streams") or []:
        stream = parse_ffprobe_stream(raw)
        if stream.index in seen:
            logger.warning(
                "Duplicate stream index %d in %s, skipping", stream.index, path
            )
            continue
        seen.add(stream.index)
        streams.append(stream)

    item_id = item_id_for_path(path)
    return MediaItem(
        id=item_id,
        name=path.name,
        container=container,
        sources=(
            MediaSource(
                id=item_id, path=path, container=container, streams=tuple(streams)
            ),
        ),
    )
