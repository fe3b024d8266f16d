"""Jellyfin catalog and rescan signal.

Items are listed through the Jellyfin REST API and the library rescan is
requested the same way, authenticated with an API key.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dovi_remux.catalog.interface import CatalogError
from dovi_remux.catalog.parsers import parse_jellyfin_item
from dovi_remux.config.models import JellyfinConfig, ScopeConfig
from dovi_remux.domain.models import MediaItem

logger = logging.getLogger(__name__)

# Items requested per /Items call
PAGE_SIZE = 200


class JellyfinClient:
    """Minimal HTTP client for the endpoints dovi-remux needs."""

    def __init__(self, config: JellyfinConfig) -> None:
        self._base_url = config.url.rstrip("/")
        self._api_key = config.api_key
        self._timeout = config.timeout_seconds
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"X-Emby-Token": self._api_key},
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> JellyfinClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport and status errors to CatalogError."""
        client = self._get_client()
        try:
            response = client.request(method, url, **kwargs)
            if response.status_code == 401:
                raise CatalogError("Jellyfin rejected the API key (401)")
            response.raise_for_status()
            return response
        except httpx.ConnectError as e:
            raise CatalogError(f"Cannot connect to Jellyfin: {e}") from e
        except httpx.TimeoutException as e:
            raise CatalogError(f"Jellyfin request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise CatalogError(f"Jellyfin HTTP error: {e}") from e
        except httpx.HTTPError as e:
            raise CatalogError(f"Jellyfin request failed: {e}") from e

    def get_items_page(
        self, parent_id: str, start_index: int, limit: int = PAGE_SIZE
    ) -> dict[str, Any]:
        """Fetch one page of video items below parent_id."""
        response = self._request(
            "GET",
            "/Items",
            params={
                "ParentId": parent_id,
                "Recursive": "true",
                "MediaTypes": "Video",
                "Fields": "MediaSources,Path",
                "StartIndex": start_index,
                "Limit": limit,
            },
        )
        try:
            return response.json()
        except ValueError as e:
            raise CatalogError(f"Invalid JSON from Jellyfin: {e}") from e

    def refresh_library(self) -> None:
        """Ask the server to scan all libraries."""
        self._request("POST", "/Library/Refresh")


class JellyfinCatalog:
    """Catalog backed by a Jellyfin server."""

    def __init__(self, client: JellyfinClient) -> None:
        self._client = client

    def get_items(self, scope: ScopeConfig) -> list[MediaItem]:
        """List video items below every ancestor id in scope.

        Items reachable from several ancestors are returned once.

        Raises:
            CatalogError: If any request fails.
        """
        items: list[MediaItem] = []
        seen: set[str] = set()
        for parent_id in scope.ancestor_ids:
            for item in self._iter_items(parent_id):
                if item.id not in seen:
                    seen.add(item.id)
                    items.append(item)
        logger.info(
            "Found %d item(s) in %d library scope(s)",
            len(items),
            len(scope.ancestor_ids),
        )
        return items

    def _iter_items(self, parent_id: str):
        start = 0
        while True:
            page = self._client.get_items_page(parent_id, start)
            entries = page.get("Items") or []
            for entry in entries:
                item = parse_jellyfin_item(entry)
                if item is not None:
                    yield item
            start += len(entries)
            total = page.get("TotalRecordCount", start)
            if not entries or start >= total:
                break


class JellyfinRescanSignal:
    """Requests a Jellyfin library scan after a batch."""

    def __init__(self, client: JellyfinClient) -> None:
        self._client = client

    def request_rescan(self) -> None:
        """Queue a library scan.

        Raises:
            CatalogError: If the request fails.
        """
        self._client.refresh_library()
        logger.info("Requested Jellyfin library scan")
