"""Configuration management for dovi-remux.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (DOVI_REMUX_*)
3. Config file (~/.dovi-remux/config.toml)
4. Default values (lowest priority)
"""

from dovi_remux.config.env import EnvReader
from dovi_remux.config.exceptions import ConfigurationError
from dovi_remux.config.loader import (
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
from dovi_remux.config.logging_factory import build_logging_config
from dovi_remux.config.models import (
    DoViRemuxConfig,
    JellyfinConfig,
    LoggingConfig,
    ProcessingConfig,
    ResolvedTools,
    ScopeConfig,
    ToolPathsConfig,
)
from dovi_remux.config.validation import resolve_tool, validate_for_batch

__all__ = [
    # Models
    "DoViRemuxConfig",
    "JellyfinConfig",
    "LoggingConfig",
    "ProcessingConfig",
    "ResolvedTools",
    "ScopeConfig",
    "ToolPathsConfig",
    # Loader
    "EnvReader",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
    "build_logging_config",
    # Validation
    "ConfigurationError",
    "resolve_tool",
    "validate_for_batch",
]
