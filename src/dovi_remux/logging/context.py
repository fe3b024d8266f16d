"""Item context for structured logging.

Every record logged while an item is being processed carries the item id
and the path of the file being rewritten, without threading them through
each call.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_item_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_id", default=None
)
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)


@contextmanager
def item_context(
    item_id: str, file_path: Path | str | None = None
) -> Generator[None, None, None]:
    """Attach item identity to every log record emitted inside the block.

    Example:
        with item_context("abc123", "/media/movie.mkv"):
            logger.info("Processing")  # record.item_id == "abc123"
    """
    id_token = _item_id.set(item_id)
    path_token = _file_path.set(str(file_path) if file_path is not None else None)
    try:
        yield
    finally:
        _file_path.reset(path_token)
        _item_id.reset(id_token)


def get_item_context() -> tuple[str | None, str | None]:
    """Return (item_id, file_path) of the current context."""
    return _item_id.get(), _file_path.get()


class ItemContextFilter(logging.Filter):
    """Inject item_id, file_path and a compact item_tag into records.

    item_tag renders as "[abc123] " for text logs, or "" outside an item.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        item_id, file_path = get_item_context()
        record.item_id = item_id
        record.file_path = file_path
        record.item_tag = f"[{item_id}] " if item_id else ""
        return True
