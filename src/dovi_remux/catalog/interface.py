"""Catalog and rescan protocols.

A catalog lists the media items in scope for a batch; a rescan signal tells
the library that owns those files to refresh its metadata afterwards.
"""

from __future__ import annotations

from typing import Protocol

from dovi_remux.config.models import ScopeConfig
from dovi_remux.domain.models import MediaItem


class CatalogError(Exception):
    """Raised when the media catalog cannot be queried."""


class Catalog(Protocol):
    """Read-only source of media items."""

    def get_items(self, scope: ScopeConfig) -> list[MediaItem]:
        """Return every video item inside scope.

        Raises:
            CatalogError: If the catalog cannot be queried.
        """
        ...


class RescanSignal(Protocol):
    """Fire-and-forget request to refresh library metadata."""

    def request_rescan(self) -> None:
        ...
