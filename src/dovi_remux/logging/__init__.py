"""Structured logging for dovi-remux.

Text or JSON output, optional rotating log file, and per-item context on
every record.
"""

from dovi_remux.logging.config import configure_logging
from dovi_remux.logging.context import (
    ItemContextFilter,
    get_item_context,
    item_context,
)
from dovi_remux.logging.handlers import JSONFormatter

__all__ = [
    "ItemContextFilter",
    "JSONFormatter",
    "configure_logging",
    "get_item_context",
    "item_context",
]
