"""Tests for the filesystem catalog."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from dovi_remux.catalog.filesystem import (
    FfprobeError,
    FilesystemCatalog,
    LoggingRescanSignal,
    iter_video_files,
    probe_file,
)
from dovi_remux.catalog.interface import CatalogError
from dovi_remux.config.models import ScopeConfig

RUN_COMMAND = "dovi_remux.catalog.filesystem.run_command"
FFPROBE = Path("/opt/tools/ffprobe")

PROBE_JSON = json.dumps(
    {
        "format": {"format_name": "matroska,webm"},
        "streams": [{"index": 0, "codec_type": "video", "codec_name": "hevc"}],
    }
)


@pytest.fixture
def library(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    (root / "B Movie").mkdir(parents=True)
    (root / "A Movie").mkdir()
    (root / ".trash").mkdir()
    (root / "B Movie" / "b.mkv").write_bytes(b"")
    (root / "A Movie" / "a.MKV").write_bytes(b"")
    (root / "A Movie" / "a.nfo").write_text("")
    (root / "A Movie" / ".a.mkv.partial.mkv").write_bytes(b"")
    (root / ".trash" / "old.mkv").write_bytes(b"")
    return root


class TestIterVideoFiles:
    """Tests for iter_video_files()."""

    def test_sorted_and_filtered(self, library: Path):
        """Should yield video files in order, skipping hidden entries."""
        names = [p.relative_to(library).as_posix() for p in iter_video_files(library)]
        assert names == ["A Movie/a.MKV", "B Movie/b.mkv"]


class TestProbeFile:
    """Tests for probe_file()."""

    @patch(RUN_COMMAND, return_value=(PROBE_JSON, "", 0))
    def test_parses_output(self, mock_run):
        """Should run ffprobe with JSON output and parse it."""
        item = probe_file(FFPROBE, Path("/media/a.mkv"))

        args = mock_run.call_args.args[0]
        assert args[0] == FFPROBE
        assert "-show_streams" in args
        assert args[-1] == Path("/media/a.mkv")
        assert item.container == "mkv"

    @patch(RUN_COMMAND, return_value=("", "Invalid data found", 1))
    def test_nonzero_exit(self, mock_run):
        """Should raise FfprobeError with ffprobe's message."""
        with pytest.raises(FfprobeError, match="Invalid data found"):
            probe_file(FFPROBE, Path("/media/a.mkv"))

    @patch(RUN_COMMAND, return_value=("not json", "", 0))
    def test_invalid_json(self, mock_run):
        """Should raise FfprobeError on unparsable output."""
        with pytest.raises(FfprobeError, match="Invalid ffprobe output"):
            probe_file(FFPROBE, Path("/media/a.mkv"))

    @patch(RUN_COMMAND, side_effect=subprocess.TimeoutExpired(["ffprobe"], 60))
    def test_timeout(self, mock_run):
        """Should raise FfprobeError on timeout."""
        with pytest.raises(FfprobeError, match="timed out"):
            probe_file(FFPROBE, Path("/media/a.mkv"))


class TestFilesystemCatalog:
    """Tests for FilesystemCatalog.get_items()."""

    def test_probe_failures_are_skipped(self, library: Path, caplog):
        """Should leave out files that fail to probe."""

        def run(args, timeout):
            if args[-1].name == "b.mkv":
                return "", "moov atom not found", 1
            return PROBE_JSON, "", 0

        with patch(RUN_COMMAND, side_effect=run):
            items = FilesystemCatalog(FFPROBE).get_items(
                ScopeConfig(library_paths=(library,))
            )

        assert [i.name for i in items] == ["a.MKV"]
        assert "moov atom not found" in caplog.text

    def test_missing_library_path(self, tmp_path: Path):
        """Should raise CatalogError for a path that is not a directory."""
        with pytest.raises(CatalogError):
            FilesystemCatalog(FFPROBE).get_items(
                ScopeConfig(library_paths=(tmp_path / "missing",))
            )


def test_logging_rescan_signal(caplog):
    """Should only log a hint."""
    with caplog.at_level("INFO"):
        LoggingRescanSignal().request_rescan()
    assert "refresh your media library" in caplog.text
