"""Tests for progress reporters."""

from dovi_remux.jobs.progress import NullProgressReporter, StderrProgressReporter


class TestStderrProgressReporter:
    """Tests for StderrProgressReporter."""

    def test_writes_in_place_updates(self, capsys):
        """Should rewrite one line with counts and percentage."""
        reporter = StderrProgressReporter()
        reporter.on_start(2)
        reporter.on_item_complete(0, success=False)
        reporter.on_progress(50.0)
        reporter.on_complete()

        err = capsys.readouterr().err
        assert "\rProcessing: 1/2 (50%) [1 failed]" in err
        assert err.endswith("\n")

    def test_disabled_is_silent(self, capsys):
        """Should write nothing when disabled."""
        reporter = StderrProgressReporter(enabled=False)
        reporter.on_start(1)
        reporter.on_item_complete(0, success=True)
        reporter.on_progress(100.0)
        reporter.on_complete()

        assert capsys.readouterr().err == ""
        assert reporter.completed == 1

    def test_percent_is_clamped(self):
        """Should clamp percentages into 0-100."""
        reporter = StderrProgressReporter(enabled=False)
        reporter.on_progress(150.0)
        assert reporter.percent == 100.0


def test_null_reporter_accepts_all_calls():
    """Should silently accept every callback."""
    reporter = NullProgressReporter()
    reporter.on_start(3)
    reporter.on_item_complete(0, True, "x")
    reporter.on_progress(10.0, "x")
    reporter.on_complete(False)
