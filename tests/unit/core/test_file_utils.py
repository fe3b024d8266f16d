"""Tests for artifact naming helpers."""

import re
from pathlib import Path

from dovi_remux.core.file_utils import (
    ensure_directory,
    safe_path_component,
    unique_artifact_path,
    unique_suffix,
)


class TestUniqueArtifactPath:
    """Tests for unique_artifact_path()."""

    def test_name_format(self, tmp_path: Path):
        """Should build {prefix}_{item}_{8 hex}{ext} inside the directory."""
        path = unique_artifact_path(tmp_path, "dovi_tool", "abc123", ".hevc")
        assert path.parent == tmp_path
        assert re.fullmatch(r"dovi_tool_abc123_[0-9a-f]{8}\.hevc", path.name)

    def test_names_are_unique(self, tmp_path: Path):
        """Should never repeat a name for the same item."""
        names = {
            unique_artifact_path(tmp_path, "ffmpeg", "item", ".log").name
            for _ in range(200)
        }
        assert len(names) == 200

    def test_unsafe_item_id_is_sanitized(self, tmp_path: Path):
        """Should not let an item id escape the directory."""
        path = unique_artifact_path(tmp_path, "ffmpeg", "../../etc/passwd", ".log")
        assert path.parent == tmp_path
        assert "/" not in path.name


class TestHelpers:
    """Tests for the smaller naming helpers."""

    def test_unique_suffix_is_hex(self):
        """Should return 8 lowercase hex characters."""
        assert re.fullmatch(r"[0-9a-f]{8}", unique_suffix())

    def test_safe_path_component_fallback(self):
        """Should return 'item' when nothing usable remains."""
        assert safe_path_component("///") == "item"

    def test_safe_path_component_truncates(self):
        """Should cap the length of the component."""
        assert len(safe_path_component("x" * 500, max_length=10)) == 10

    def test_ensure_directory_creates_parents(self, tmp_path: Path):
        """Should create nested directories and return the path."""
        target = tmp_path / "a" / "b"
        assert ensure_directory(target) == target
        assert target.is_dir()
