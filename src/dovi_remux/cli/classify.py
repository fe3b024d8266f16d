"""CLI command: show how files would be classified."""

from __future__ import annotations

import json
from pathlib import Path

import click

from dovi_remux.catalog.filesystem import FfprobeError, iter_video_files, probe_file
from dovi_remux.classification import classify, find_dovi_stream
from dovi_remux.cli.exit_codes import ExitCode
from dovi_remux.cli.output import error_exit
from dovi_remux.config import ConfigurationError, get_config, resolve_tool


def _expand(paths: tuple[Path, ...]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(iter_video_files(path))
        else:
            files.append(path)
    return files


@click.command("classify")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def classify_command(
    ctx: click.Context, paths: tuple[Path, ...], json_output: bool
) -> None:
    """Probe PATHS and print the classification of each video file."""
    obj = ctx.obj or {}
    try:
        config = get_config(obj.get("config_path"))
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)
    try:
        ffprobe = resolve_tool("ffprobe", config.tools.ffprobe)
    except ConfigurationError as e:
        error_exit(str(e), ExitCode.FFPROBE_NOT_FOUND, json_output)

    processing = config.processing
    rows: list[dict] = []
    errors = 0
    for path in _expand(paths):
        try:
            item = probe_file(ffprobe, path)
        except FfprobeError as e:
            errors += 1
            rows.append({"path": str(path), "error": str(e)})
            continue

        source = item.sources[0]
        stream = find_dovi_stream(source)
        dovi = stream.dovi if stream is not None else None
        rows.append(
            {
                "path": str(path),
                "container": source.container,
                "classification": classify(
                    source, processing.expected_container, processing.target_profile
                ).value,
                "dv_profile": dovi.profile if dovi else None,
                "bl_compatibility_id": dovi.bl_compatibility_id if dovi else None,
                "bl_present_flag": dovi.bl_present_flag if dovi else None,
            }
        )

    if json_output:
        click.echo(json.dumps(rows, indent=2))
    else:
        for row in rows:
            if "error" in row:
                click.echo(f"{'error':<18} {row['path']}: {row['error']}")
                continue
            profile = row["dv_profile"]
            detail = (
                f"DV{profile} compat={row['bl_compatibility_id']} "
                f"bl={row['bl_present_flag']}"
                if profile is not None
                else "no Dolby Vision"
            )
            click.echo(f"{row['classification']:<18} {detail:<24} {row['path']}")

    if errors:
        ctx.exit(ExitCode.OPERATION_FAILED)
