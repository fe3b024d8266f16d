"""Configuration data models.

This module defines dataclasses for dovi-remux configuration options. The
top-level DoViRemuxConfig is frozen: a batch run receives one immutable
snapshot and never looks configuration up again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dovi_remux.domain.enums import FallbackMode


@dataclass(frozen=True)
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    dovi_tool: Path | None = None
    mkvmerge: Path | None = None
    ffprobe: Path | None = None


@dataclass(frozen=True)
class ResolvedTools:
    """Executable paths verified to exist, ready for stage commands."""

    ffmpeg: Path
    dovi_tool: Path
    mkvmerge: Path
    ffprobe: Path | None = None


@dataclass(frozen=True)
class JellyfinConfig:
    """Connection settings for a Jellyfin server used as the catalog."""

    url: str
    """Base URL of the server (e.g., "http://localhost:8096")."""

    api_key: str
    """API key created in Dashboard > API Keys."""

    timeout_seconds: int = 30
    """Request timeout in seconds (1-300)."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.url.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        if not self.api_key or not self.api_key.strip():
            raise ValueError("API key is required")
        if " " in self.api_key:
            raise ValueError("API key must not contain whitespace")
        if not 1 <= self.timeout_seconds <= 300:
            raise ValueError("Timeout must be between 1 and 300 seconds")


@dataclass(frozen=True)
class ScopeConfig:
    """Which part of the library is considered for processing."""

    # Jellyfin library/folder ids (catalog "jellyfin")
    ancestor_ids: tuple[str, ...] = ()

    # Directories to walk (catalog "filesystem")
    library_paths: tuple[Path, ...] = ()


@dataclass(frozen=True)
class ProcessingConfig:
    """Configuration for classification and pipeline execution."""

    # Only sources in this container are processed
    expected_container: str = "mkv"

    # Dolby Vision profile eligible for remux or fallback conversion
    target_profile: int = 8

    # How FALLBACK_CONVERT sources are handled
    fallback_mode: FallbackMode = FallbackMode.STRIP

    # Scratch directory for elementary streams and temp outputs
    # (None = system temp dir)
    temp_directory: Path | None = None

    # Directory for per-stage diagnostic logs (None = no stage logs)
    log_directory: Path | None = None

    # Maximum seconds per pipeline (0 = no limit)
    pipeline_timeout: int = 0

    # Seconds between SIGTERM and SIGKILL when stopping a stage
    terminate_grace: float = 5.0

    # Video bitrate for the re-encode fallback
    reencode_bitrate: str = "12000k"

    # Classify and log planned pipelines without running them
    dry_run: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.expected_container or not self.expected_container.strip():
            raise ValueError("expected_container must not be empty")
        if self.target_profile < 0:
            raise ValueError(
                f"target_profile must be non-negative, got {self.target_profile}"
            )
        if self.pipeline_timeout < 0:
            raise ValueError(
                f"pipeline_timeout must be >= 0, got {self.pipeline_timeout}"
            )
        if self.terminate_grace <= 0:
            raise ValueError(
                f"terminate_grace must be positive, got {self.terminate_grace}"
            )


@dataclass
class LoggingConfig:
    """Configuration for application logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


CATALOG_KINDS = ("jellyfin", "filesystem")


@dataclass(frozen=True)
class DoViRemuxConfig:
    """Complete configuration snapshot for one batch run."""

    catalog: str = "jellyfin"
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    scope: ScopeConfig = field(default_factory=ScopeConfig)
    jellyfin: JellyfinConfig | None = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.catalog not in CATALOG_KINDS:
            raise ValueError(
                f"catalog must be one of {CATALOG_KINDS}, got {self.catalog}"
            )
