"""CLI module for dovi-remux."""

import logging
from pathlib import Path

import click

from dovi_remux.cli.exit_codes import ExitCode
from dovi_remux.cli.output import error_exit

logger = logging.getLogger(__name__)


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from the config file merged with CLI options."""
    from dovi_remux.config import ConfigurationError, build_logging_config, get_config
    from dovi_remux.logging import configure_logging

    try:
        config = get_config(config_path)
        logging_config = build_logging_config(
            config.logging,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    except (ConfigurationError, ValueError) as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)
    configure_logging(logging_config)


@click.group()
@click.version_option(package_name="dovi-remux")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.dovi-remux/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """dovi-remux - Convert Dolby Vision profile 8 files for wider playback."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    _configure_logging(config_path, log_level, log_file, log_json)


# Defer import to avoid circular dependency
def _register_commands():
    from dovi_remux.cli.classify import classify_command
    from dovi_remux.cli.run import run_batch_command

    main.add_command(run_batch_command)
    main.add_command(classify_command)


_register_commands()
