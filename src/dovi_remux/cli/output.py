"""CLI output helpers shared by all commands."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, NoReturn

import click

if TYPE_CHECKING:
    from dovi_remux.domain.models import BatchSummary

    from .exit_codes import ExitCode


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Print an error (text or JSON) to stderr and exit with code."""
    from .exit_codes import ExitCode

    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {"status": "failed", "error": {"code": code_name, "message": message}}
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def format_summary(summary: BatchSummary, dry_run: bool = False) -> str:
    """Render a BatchSummary for the terminal."""
    verb = "Planned" if dry_run else "Processed"
    lines = [
        f"{verb} {summary.attempted}/{summary.total} item(s): "
        f"{summary.succeeded} ok, {summary.skipped} skipped, {summary.failed} failed"
    ]
    for failure in summary.failures:
        lines.append(f"  [FAILED] {failure.name} ({failure.error_type}): {failure.message}")
    return "\n".join(lines)
