"""CLI command: run a conversion batch over a library."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from dovi_remux.catalog import (
    CatalogError,
    FilesystemCatalog,
    JellyfinCatalog,
    JellyfinClient,
    JellyfinRescanSignal,
    LoggingRescanSignal,
)
from dovi_remux.classification import is_candidate
from dovi_remux.cli.exit_codes import ExitCode
from dovi_remux.cli.output import error_exit, format_summary
from dovi_remux.config import (
    ConfigurationError,
    DoViRemuxConfig,
    ResolvedTools,
    get_config,
    validate_for_batch,
)
from dovi_remux.core.cancellation import CancellationToken, OperationCancelled
from dovi_remux.jobs import BatchProcessor, StderrProgressReporter
from dovi_remux.workflow import ItemProcessor

logger = logging.getLogger(__name__)


@contextmanager
def cancel_on_signals(token: CancellationToken) -> Iterator[None]:
    """Cancel token on SIGINT/SIGTERM while the block runs.

    Cancellation callbacks terminate child processes and wait for them, so
    they run on a helper thread rather than inside the signal handler.
    """

    def handler(signum: int, frame) -> None:
        logger.warning("Received %s, cancelling", signal.Signals(signum).name)
        threading.Thread(target=token.cancel, name="cancel", daemon=True).start()

    previous = {
        sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, old_handler in previous.items():
            signal.signal(sig, old_handler)


def build_catalog(config: DoViRemuxConfig, tools: ResolvedTools):
    """Return (catalog, rescan_signal, client_or_None) for the configured kind."""
    if config.catalog == "jellyfin":
        assert config.jellyfin is not None
        client = JellyfinClient(config.jellyfin)
        return JellyfinCatalog(client), JellyfinRescanSignal(client), client

    assert tools.ffprobe is not None
    return FilesystemCatalog(tools.ffprobe), LoggingRescanSignal(), None


@click.command("run")
@click.option(
    "--catalog",
    type=click.Choice(["jellyfin", "filesystem"]),
    default=None,
    help="Where items come from (default: from config, else jellyfin).",
)
@click.option(
    "--path",
    "paths",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Library directory to scan (filesystem catalog). Repeatable.",
)
@click.option(
    "--ancestor",
    "ancestors",
    multiple=True,
    help="Jellyfin library/folder id to process. Repeatable.",
)
@click.option(
    "--fallback-mode",
    type=click.Choice(["strip", "reencode"]),
    default=None,
    help="How non-remuxable profile 8 files are converted to HDR10.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Classify and log planned commands without changing any file.",
)
@click.pass_context
def run_batch_command(
    ctx: click.Context,
    catalog: str | None,
    paths: tuple[Path, ...],
    ancestors: tuple[str, ...],
    fallback_mode: str | None,
    dry_run: bool,
) -> None:
    """Convert every Dolby Vision profile 8 file in scope."""
    obj = ctx.obj or {}
    try:
        config = get_config(
            obj.get("config_path"),
            catalog=catalog or ("filesystem" if paths else None),
            ancestor_ids=ancestors or None,
            library_paths=paths or None,
            fallback_mode=fallback_mode,
            dry_run=True if dry_run else None,
        )
        tools = validate_for_batch(config)
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)

    media_catalog, rescan, client = build_catalog(config, tools)
    token = CancellationToken()
    processing = config.processing

    try:
        with cancel_on_signals(token):
            items = media_catalog.get_items(config.scope)
            candidates = [
                item
                for item in items
                if is_candidate(
                    item, processing.expected_container, processing.target_profile
                )
            ]
            logger.info(
                "%d of %d item(s) have Dolby Vision profile %d",
                len(candidates),
                len(items),
                processing.target_profile,
            )
            batch = BatchProcessor(config, ItemProcessor(config, tools=tools))
            summary = batch.run(
                candidates,
                token,
                progress=StderrProgressReporter(enabled=sys.stderr.isatty()),
                rescan=None if processing.dry_run else rescan,
            )
    except CatalogError as e:
        error_exit(str(e), ExitCode.CATALOG_ERROR)
    except OperationCancelled:
        click.echo("Interrupted; remaining items were not processed.", err=True)
        sys.exit(ExitCode.INTERRUPTED)
    finally:
        if client is not None:
            client.close()

    click.echo(format_summary(summary, dry_run=processing.dry_run))
    if summary.failed:
        sys.exit(ExitCode.OPERATION_FAILED)
    sys.exit(ExitCode.SUCCESS)
