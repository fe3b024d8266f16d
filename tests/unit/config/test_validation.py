"""Tests for pre-flight validation."""

from pathlib import Path
from unittest.mock import patch

import pytest

from dovi_remux.config.exceptions import ConfigurationError
from dovi_remux.config.models import (
    DoViRemuxConfig,
    JellyfinConfig,
    ScopeConfig,
    ToolPathsConfig,
)
from dovi_remux.config.validation import resolve_tool, validate_for_batch

WHICH = "dovi_remux.config.validation.shutil.which"


@pytest.fixture
def executable(tmp_path: Path) -> Path:
    path = tmp_path / "dovi_tool"
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


class TestResolveTool:
    """Tests for resolve_tool()."""

    def test_configured_path(self, executable: Path):
        """Should return a configured executable as is."""
        assert resolve_tool("dovi_tool", executable) == executable

    def test_configured_path_missing(self, tmp_path: Path):
        """Should reject a configured path that does not exist."""
        with pytest.raises(ConfigurationError, match="configured path"):
            resolve_tool("dovi_tool", tmp_path / "nope")

    def test_configured_path_not_executable(self, executable: Path):
        """Should reject a configured file without the execute bit."""
        executable.chmod(0o644)
        with pytest.raises(ConfigurationError, match="not executable"):
            resolve_tool("dovi_tool", executable)

    @patch(WHICH, return_value="/usr/bin/mkvmerge")
    def test_path_lookup(self, mock_which):
        """Should fall back to PATH lookup."""
        assert resolve_tool("mkvmerge", None) == Path("/usr/bin/mkvmerge")
        mock_which.assert_called_once_with("mkvmerge")

    @patch(WHICH, return_value=None)
    def test_path_lookup_fails(self, mock_which):
        """Should explain how to configure a missing tool."""
        with pytest.raises(ConfigurationError, match=r"\[tools\]"):
            resolve_tool("mkvmerge", None)


class TestValidateForBatch:
    """Tests for validate_for_batch()."""

    @patch(WHICH, side_effect=lambda name: f"/usr/bin/{name}")
    def test_filesystem_resolves_ffprobe(self, mock_which, tmp_path: Path):
        """Should resolve all four tools for the filesystem catalog."""
        config = DoViRemuxConfig(
            catalog="filesystem", scope=ScopeConfig(library_paths=(tmp_path,))
        )

        tools = validate_for_batch(config)

        assert tools.ffprobe == Path("/usr/bin/ffprobe")
        assert tools.dovi_tool == Path("/usr/bin/dovi_tool")

    @patch(WHICH, side_effect=lambda name: f"/usr/bin/{name}")
    def test_jellyfin_does_not_need_ffprobe(self, mock_which):
        """Should not look up ffprobe for the Jellyfin catalog."""
        config = DoViRemuxConfig(
            catalog="jellyfin",
            jellyfin=JellyfinConfig(url="http://jf:8096", api_key="k"),
            scope=ScopeConfig(ancestor_ids=("movies",)),
        )

        tools = validate_for_batch(config)

        assert tools.ffprobe is None
        assert "ffprobe" not in [c.args[0] for c in mock_which.call_args_list]

    def test_jellyfin_requires_connection(self):
        """Should fail when the Jellyfin catalog has no connection settings."""
        config = DoViRemuxConfig(scope=ScopeConfig(ancestor_ids=("movies",)))
        with pytest.raises(ConfigurationError, match="jellyfin"):
            validate_for_batch(config)

    def test_jellyfin_requires_scope(self):
        """Should fail without ancestor ids."""
        config = DoViRemuxConfig(
            jellyfin=JellyfinConfig(url="http://jf:8096", api_key="k")
        )
        with pytest.raises(ConfigurationError, match="ancestor"):
            validate_for_batch(config)

    def test_filesystem_requires_existing_dirs(self, tmp_path: Path):
        """Should fail for library paths that are not directories."""
        config = DoViRemuxConfig(
            catalog="filesystem",
            scope=ScopeConfig(library_paths=(tmp_path / "missing",)),
        )
        with pytest.raises(ConfigurationError, match="not a directory"):
            validate_for_batch(config)

    @patch(WHICH, return_value=None)
    def test_missing_tool_fails_before_processing(self, mock_which, tmp_path: Path):
        """Should raise for a tool missing from PATH."""
        config = DoViRemuxConfig(
            catalog="filesystem",
            tools=ToolPathsConfig(),
            scope=ScopeConfig(library_paths=(tmp_path,)),
        )
        with pytest.raises(ConfigurationError, match="ffmpeg"):
            validate_for_batch(config)
