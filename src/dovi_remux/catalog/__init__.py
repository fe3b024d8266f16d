"""Media catalogs: where the items of a batch come from."""

from dovi_remux.catalog.filesystem import (
    FilesystemCatalog,
    LoggingRescanSignal,
    probe_file,
)
from dovi_remux.catalog.interface import Catalog, CatalogError, RescanSignal
from dovi_remux.catalog.jellyfin import (
    JellyfinCatalog,
    JellyfinClient,
    JellyfinRescanSignal,
)

__all__ = [
    "Catalog",
    "CatalogError",
    "RescanSignal",
    "FilesystemCatalog",
    "LoggingRescanSignal",
    "probe_file",
    "JellyfinCatalog",
    "JellyfinClient",
    "JellyfinRescanSignal",
]
