"""Dolby Vision source classification.

Pure functions over domain models: nothing here touches the filesystem or
spawns a process.
"""

from __future__ import annotations

from dovi_remux.domain.enums import Classification
from dovi_remux.domain.models import MediaItem, MediaSource, StreamDescriptor

DEFAULT_CONTAINER = "mkv"
DEFAULT_PROFILE = 8

# Base layer signal compatibility id of an HDR10-compatible profile 8.1 stream
HDR10_COMPATIBLE_BL_ID = 1


def _container_matches(container: str | None, expected: str) -> bool:
    if not container:
        return False
    return container.strip().casefold() == expected.strip().casefold()


def find_dovi_stream(source: MediaSource) -> StreamDescriptor | None:
    """Return the first video stream carrying Dolby Vision metadata."""
    for stream in source.video_streams:
        if stream.dovi is not None:
            return stream
    return None


def classify(
    source: MediaSource,
    expected_container: str = DEFAULT_CONTAINER,
    target_profile: int = DEFAULT_PROFILE,
) -> Classification:
    """Decide how a media source is processed.

    Args:
        source: Source with its stream descriptors.
        expected_container: Only sources in this container are eligible.
        target_profile: Dolby Vision profile eligible for processing.

    Returns:
        REMUX if the stream has the target profile with an HDR10-compatible
        base layer present, FALLBACK_CONVERT if it has the target profile
        otherwise, SKIP for everything else.
    """
    if not _container_matches(source.container, expected_container):
        return Classification.SKIP

    stream = find_dovi_stream(source)
    if stream is None or stream.dovi is None:
        return Classification.SKIP

    dovi = stream.dovi
    if dovi.profile != target_profile:
        return Classification.SKIP

    if dovi.bl_compatibility_id == HDR10_COMPATIBLE_BL_ID and dovi.bl_present_flag == 1:
        return Classification.REMUX
    return Classification.FALLBACK_CONVERT


def select_source(
    item: MediaItem, expected_container: str = DEFAULT_CONTAINER
) -> MediaSource | None:
    """Return the first source of the item in the expected container."""
    for source in item.sources:
        if _container_matches(source.container, expected_container):
            return source
    return None


def is_candidate(
    item: MediaItem,
    expected_container: str = DEFAULT_CONTAINER,
    target_profile: int = DEFAULT_PROFILE,
) -> bool:
    """Catalog pre-filter: does the item have a processable source?"""
    source = select_source(item, expected_container)
    if source is None:
        return False
    return classify(source, expected_container, target_profile) is not Classification.SKIP
