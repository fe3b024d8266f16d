"""Tests for EnvReader."""

import os
from pathlib import Path

from dovi_remux.config.env import EnvReader


class TestEnvReader:
    """Tests for typed environment access."""

    def test_blank_counts_as_unset(self):
        """Should return the default for blank values."""
        reader = EnvReader({"DOVI_REMUX_CATALOG": "   "})
        assert reader.get_str("DOVI_REMUX_CATALOG", "jellyfin") == "jellyfin"

    def test_invalid_int_falls_back(self, caplog):
        """Should warn and return the default for non-numeric values."""
        reader = EnvReader({"DOVI_REMUX_PIPELINE_TIMEOUT": "ten"})
        assert reader.get_int("DOVI_REMUX_PIPELINE_TIMEOUT", 0) == 0
        assert "Invalid integer value" in caplog.text

    def test_bool_values(self):
        """Should accept the usual truthy spellings."""
        reader = EnvReader({"A": "YES", "B": "0", "C": "on"})
        assert reader.get_bool("A") is True
        assert reader.get_bool("B") is False
        assert reader.get_bool("C") is True
        assert reader.get_bool("D", default=None) is None

    def test_path_is_expanded(self):
        """Should expand ~ without checking existence."""
        path = EnvReader({"P": "~/bin/dovi_tool"}).get_path("P")
        assert path == Path.home() / "bin" / "dovi_tool"

    def test_list_drops_blanks(self):
        """Should split on commas and drop empty entries."""
        reader = EnvReader({"DOVI_REMUX_ANCESTOR_IDS": "abc, def,,"})
        assert reader.get_list("DOVI_REMUX_ANCESTOR_IDS") == ["abc", "def"]
        assert reader.get_list("MISSING") == []

    def test_path_list_uses_pathsep(self):
        """Should split directories on os.pathsep."""
        reader = EnvReader({"L": os.pathsep.join(["/media/a", "/media/b"])})
        assert reader.get_path_list("L") == [Path("/media/a"), Path("/media/b")]
