"""Merge CLI logging options over the configured LoggingConfig."""

from __future__ import annotations

from pathlib import Path

from dovi_remux.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a new LoggingConfig with every non-None override applied.

    Raises:
        ValueError: If an override is invalid (via LoggingConfig validation).
    """
    return LoggingConfig(
        level=level if level is not None else base.level,
        file=file if file is not None else base.file,
        format=format if format is not None else base.format,
        include_stderr=(
            include_stderr if include_stderr is not None else base.include_stderr
        ),
        max_bytes=base.max_bytes,
        backup_count=base.backup_count,
    )
