"""Tests for output validation and artifact cleanup."""

from pathlib import Path

from dovi_remux.executor.artifacts import (
    cleanup_artifacts,
    cleanup_temp_file,
    validate_output,
)


class TestValidateOutput:
    """Tests for validate_output()."""

    def test_missing(self, tmp_path: Path):
        """Should reject a missing file."""
        error = validate_output(tmp_path / "x.mkv")
        assert "No output produced" in error

    def test_empty(self, tmp_path: Path):
        """Should reject an empty file."""
        path = tmp_path / "x.mkv"
        path.touch()
        assert "empty" in validate_output(path)

    def test_small_output_only_warns(self, tmp_path: Path, caplog):
        """Should accept but warn when output is tiny relative to input."""
        path = tmp_path / "x.mkv"
        path.write_bytes(b"1")
        assert validate_output(path, reference_size=1000) is None
        assert "only 0.1% of the original" in caplog.text

    def test_size_check_without_reference(self, tmp_path: Path, caplog):
        """Should accept any non-empty output when no reference size is given."""
        path = tmp_path / "x.hevc"
        path.write_bytes(b"1")
        assert validate_output(path) is None
        assert caplog.text == ""


class TestCleanup:
    """Tests for cleanup_temp_file() and cleanup_artifacts()."""

    def test_missing_file_counts_as_cleaned(self, tmp_path: Path):
        """Should treat an already absent file as success."""
        assert cleanup_temp_file(tmp_path / "gone") is True

    def test_cleanup_artifacts_skips_none(self, tmp_path: Path):
        """Should ignore None entries and delete the rest."""
        path = tmp_path / "a.hevc"
        path.write_bytes(b"x")
        assert cleanup_artifacts([None, path]) == 0
        assert not path.exists()

    def test_cleanup_artifacts_counts_failures(self, tmp_path: Path):
        """Should report how many artifacts could not be removed."""
        directory = tmp_path / "dir.hevc"
        directory.mkdir()
        assert cleanup_artifacts([directory]) == 1
