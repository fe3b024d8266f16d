"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (DOVI_REMUX_*)
3. Config file (~/.dovi-remux/config.toml)
4. Default values

Environment variables:
- DOVI_REMUX_CONFIG_PATH: Path to config file (overrides default location)
- DOVI_REMUX_DATA_DIR: Data directory (overrides ~/.dovi-remux/)
- DOVI_REMUX_FFMPEG_PATH, DOVI_REMUX_DOVI_TOOL_PATH, DOVI_REMUX_MKVMERGE_PATH,
  DOVI_REMUX_FFPROBE_PATH: Tool executables
- DOVI_REMUX_CATALOG: "jellyfin" or "filesystem"
- DOVI_REMUX_JELLYFIN_URL, DOVI_REMUX_JELLYFIN_API_KEY,
  DOVI_REMUX_JELLYFIN_TIMEOUT: Jellyfin connection
- DOVI_REMUX_ANCESTOR_IDS: Comma-separated Jellyfin library ids
- DOVI_REMUX_LIBRARY_PATHS: os.pathsep-separated directories
- DOVI_REMUX_FALLBACK_MODE: "strip" or "reencode"
- DOVI_REMUX_TEMP_DIR, DOVI_REMUX_LOG_DIR: Scratch and stage log directories
- DOVI_REMUX_PIPELINE_TIMEOUT: Seconds per pipeline (0 = no limit)
- DOVI_REMUX_DRY_RUN: Plan without running pipelines
- DOVI_REMUX_LOG_LEVEL, DOVI_REMUX_LOG_FILE, DOVI_REMUX_LOG_FORMAT: Logging
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from dovi_remux.config.env import EnvReader
from dovi_remux.config.exceptions import ConfigurationError
from dovi_remux.config.models import (
    DoViRemuxConfig,
    JellyfinConfig,
    LoggingConfig,
    ProcessingConfig,
    ScopeConfig,
    ToolPathsConfig,
)
from dovi_remux.domain.enums import FallbackMode

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".dovi-remux"
CONFIG_FILE_NAME = "config.toml"


def get_data_dir(env: EnvReader | None = None) -> Path:
    """Get the data directory holding config, logs and scratch files.

    Can be overridden by the DOVI_REMUX_DATA_DIR environment variable.
    """
    env = env or EnvReader()
    return env.get_path("DOVI_REMUX_DATA_DIR") or DEFAULT_CONFIG_DIR


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the config file path.

    DOVI_REMUX_CONFIG_PATH wins; otherwise config.toml in the data directory.
    """
    env = env or EnvReader()
    return env.get_path("DOVI_REMUX_CONFIG_PATH") or (
        get_data_dir(env) / CONFIG_FILE_NAME
    )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return data


def _file_path(section: Mapping[str, Any], key: str) -> Path | None:
    value = section.get(key)
    return Path(value).expanduser() if value else None


def _first(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _build_tools(
    file_config: Mapping[str, Any], env: EnvReader
) -> ToolPathsConfig:
    section = file_config.get("tools", {})
    return ToolPathsConfig(
        ffmpeg=env.get_path("DOVI_REMUX_FFMPEG_PATH") or _file_path(section, "ffmpeg"),
        dovi_tool=(
            env.get_path("DOVI_REMUX_DOVI_TOOL_PATH")
            or _file_path(section, "dovi_tool")
        ),
        mkvmerge=(
            env.get_path("DOVI_REMUX_MKVMERGE_PATH") or _file_path(section, "mkvmerge")
        ),
        ffprobe=(
            env.get_path("DOVI_REMUX_FFPROBE_PATH") or _file_path(section, "ffprobe")
        ),
    )


def _build_jellyfin(
    file_config: Mapping[str, Any], env: EnvReader
) -> JellyfinConfig | None:
    section = file_config.get("jellyfin", {})
    url = env.get_str("DOVI_REMUX_JELLYFIN_URL") or section.get("url")
    api_key = env.get_str("DOVI_REMUX_JELLYFIN_API_KEY") or section.get("api_key")
    if not url and not api_key:
        return None
    return JellyfinConfig(
        url=(url or "").rstrip("/"),
        api_key=api_key or "",
        timeout_seconds=env.get_int(
            "DOVI_REMUX_JELLYFIN_TIMEOUT", section.get("timeout_seconds", 30)
        ),
    )


def get_config(
    config_path: Path | None = None,
    *,
    catalog: str | None = None,
    ancestor_ids: Sequence[str] | None = None,
    library_paths: Sequence[Path] | None = None,
    fallback_mode: str | None = None,
    dry_run: bool | None = None,
    temp_directory: Path | None = None,
    log_directory: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> DoViRemuxConfig:
    """Get dovi-remux configuration with full precedence handling.

    Keyword arguments are CLI overrides; None means "not given".

    Args:
        config_path: Path to config file (overrides DOVI_REMUX_CONFIG_PATH).
        env: Environment mapping for tests (defaults to os.environ).

    Returns:
        Immutable configuration snapshot.

    Raises:
        ConfigurationError: If the file is unreadable or any value is invalid.
    """
    reader = EnvReader(env)
    file_config = load_config_file(config_path or get_default_config_path(reader))
    data_dir = get_data_dir(reader)

    processing_file = file_config.get("processing", {})
    scope_file = file_config.get("scope", {})
    logging_file = file_config.get("logging", {})

    try:
        mode = _first(
            fallback_mode,
            reader.get_str("DOVI_REMUX_FALLBACK_MODE"),
            processing_file.get("fallback_mode"),
            FallbackMode.STRIP.value,
        )
        processing = ProcessingConfig(
            expected_container=processing_file.get("expected_container", "mkv"),
            target_profile=processing_file.get("target_profile", 8),
            fallback_mode=FallbackMode(mode),
            temp_directory=_first(
                temp_directory,
                reader.get_path("DOVI_REMUX_TEMP_DIR"),
                _file_path(processing_file, "temp_directory"),
                data_dir / "tmp",
            ),
            log_directory=_first(
                log_directory,
                reader.get_path("DOVI_REMUX_LOG_DIR"),
                _file_path(processing_file, "log_directory"),
                data_dir / "logs",
            ),
            pipeline_timeout=reader.get_int(
                "DOVI_REMUX_PIPELINE_TIMEOUT",
                processing_file.get("pipeline_timeout", 0),
            ),
            terminate_grace=float(processing_file.get("terminate_grace", 5.0)),
            reencode_bitrate=str(processing_file.get("reencode_bitrate", "12000k")),
            dry_run=_first(
                dry_run,
                reader.get_bool("DOVI_REMUX_DRY_RUN"),
                processing_file.get("dry_run", False),
            ),
        )

        scope = ScopeConfig(
            ancestor_ids=tuple(
                ancestor_ids
                or reader.get_list("DOVI_REMUX_ANCESTOR_IDS")
                or scope_file.get("ancestor_ids", [])
            ),
            library_paths=tuple(
                library_paths
                or reader.get_path_list("DOVI_REMUX_LIBRARY_PATHS")
                or [Path(p).expanduser() for p in scope_file.get("library_paths", [])]
            ),
        )

        logging_config = LoggingConfig(
            level=reader.get_str(
                "DOVI_REMUX_LOG_LEVEL", logging_file.get("level", "info")
            ),
            file=(
                reader.get_path("DOVI_REMUX_LOG_FILE")
                or _file_path(logging_file, "file")
            ),
            format=reader.get_str(
                "DOVI_REMUX_LOG_FORMAT", logging_file.get("format", "text")
            ),
            include_stderr=logging_file.get("include_stderr", False),
            max_bytes=logging_file.get("max_bytes", 10_485_760),
            backup_count=logging_file.get("backup_count", 5),
        )

        return DoViRemuxConfig(
            catalog=_first(
                catalog,
                reader.get_str("DOVI_REMUX_CATALOG"),
                file_config.get("catalog"),
                "jellyfin",
            ),
            tools=_build_tools(file_config, reader),
            processing=processing,
            scope=scope,
            jellyfin=_build_jellyfin(file_config, reader),
            logging=logging_config,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
