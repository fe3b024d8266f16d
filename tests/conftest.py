"""Shared test fixtures for dovi-remux."""

import sys
import textwrap
from pathlib import Path

import pytest

from dovi_remux.config.models import (
    DoViRemuxConfig,
    ProcessingConfig,
    ResolvedTools,
)
from dovi_remux.domain.enums import StreamType
from dovi_remux.domain.models import (
    DoViMetadata,
    MediaItem,
    MediaSource,
    StageSpec,
    StreamDescriptor,
)


@pytest.fixture
def make_source(tmp_path: Path):
    """Factory for a MediaSource with one video and one audio stream.

    Pass profile=None for a source without Dolby Vision metadata.
    """

    def _make(
        profile: int | None = 8,
        bl_compatibility_id: int | None = 1,
        bl_present_flag: int | None = 1,
        container: str | None = "mkv",
        name: str = "movie.mkv",
        source_id: str = "src1",
    ) -> MediaSource:
        dovi = (
            DoViMetadata(
                profile=profile,
                bl_compatibility_id=bl_compatibility_id,
                bl_present_flag=bl_present_flag,
            )
            if profile is not None
            else None
        )
        return MediaSource(
            id=source_id,
            path=tmp_path / name,
            container=container,
            streams=(
                StreamDescriptor(0, StreamType.VIDEO, "hevc", dovi),
                StreamDescriptor(1, StreamType.AUDIO, "eac3"),
            ),
        )

    return _make


@pytest.fixture
def make_item(make_source):
    """Factory for a MediaItem wrapping a single source from make_source."""

    def _make(item_id: str = "item1", **kwargs) -> MediaItem:
        kwargs.setdefault("name", f"{item_id}.mkv")
        source = make_source(source_id=item_id, **kwargs)
        return MediaItem(
            id=item_id,
            name=source.path.name,
            container=source.container,
            sources=(source,),
        )

    return _make


@pytest.fixture
def python_stage():
    """Factory for a StageSpec that runs a Python snippet as a child process."""

    def _make(name: str, code: str, **kwargs) -> StageSpec:
        return StageSpec(
            name=name,
            executable=Path(sys.executable),
            args=("-c", textwrap.dedent(code)),
            **kwargs,
        )

    return _make


@pytest.fixture
def fake_tools(tmp_path: Path) -> ResolvedTools:
    """ResolvedTools pointing at paths that are never executed."""
    return ResolvedTools(
        ffmpeg=Path("/opt/tools/ffmpeg"),
        dovi_tool=Path("/opt/tools/dovi_tool"),
        mkvmerge=Path("/opt/tools/mkvmerge"),
        ffprobe=Path("/opt/tools/ffprobe"),
    )


@pytest.fixture
def base_config(tmp_path: Path) -> DoViRemuxConfig:
    """Filesystem-catalog config with temp and log dirs under tmp_path."""
    return DoViRemuxConfig(
        catalog="filesystem",
        processing=ProcessingConfig(
            temp_directory=tmp_path / "work",
            log_directory=tmp_path / "logs",
        ),
    )
