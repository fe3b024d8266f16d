"""Tests for the pipeline builders."""

from pathlib import Path

from dovi_remux.executor.commands import (
    reencode_pipelines,
    remux_pipelines,
    strip_pipelines,
)

SOURCE = Path("/media/Movie (2020)/movie.mkv")
ELEMENTARY = Path("/tmp/work/dovi_tool_item_00000000.hevc")
OUTPUT = Path("/tmp/work/movie_item_00000000.mkv")


class TestRemuxPipelines:
    """Tests for remux_pipelines()."""

    def test_extract_and_convert(self, fake_tools):
        """Should pipe ffmpeg Annex B output into dovi_tool mode 1 convert."""
        convert, merge = remux_pipelines(fake_tools, SOURCE, ELEMENTARY, OUTPUT)
        ffmpeg, dovi_tool = convert.stages

        assert ffmpeg.executable == fake_tools.ffmpeg
        assert ffmpeg.writes_to_next is True
        assert ffmpeg.args[ffmpeg.args.index("-i") + 1] == str(SOURCE)
        assert "hevc_mp4toannexb" in ffmpeg.args
        assert ffmpeg.args[-3:] == ("-f", "hevc", "-")

        assert dovi_tool.reads_from_previous is True
        assert dovi_tool.args == (
            "-m",
            "1",
            "convert",
            "--discard",
            "-",
            "-o",
            str(ELEMENTARY),
        )
        assert convert.output_path == ELEMENTARY

    def test_merge_keeps_non_video_tracks(self, fake_tools):
        """Should merge the new video with everything but video from the original."""
        _, merge = remux_pipelines(fake_tools, SOURCE, ELEMENTARY, OUTPUT)
        (mkvmerge,) = merge.stages

        assert mkvmerge.command == [
            str(fake_tools.mkvmerge),
            "-o",
            str(OUTPUT),
            str(ELEMENTARY),
            "-D",
            str(SOURCE),
        ]
        assert merge.output_path == OUTPUT


class TestFallbackPipelines:
    """Tests for the strip and re-encode fallbacks."""

    def test_strip_removes_rpu(self, fake_tools):
        """Should use dovi_tool remove instead of convert."""
        strip, merge = strip_pipelines(fake_tools, SOURCE, ELEMENTARY, OUTPUT)
        dovi_tool = strip.stages[1]

        assert dovi_tool.args == ("remove", "-", "-o", str(ELEMENTARY))
        assert merge.output_path == OUTPUT

    def test_reencode_is_single_ffmpeg_stage(self, fake_tools):
        """Should re-encode with x265 HDR10 and copy other streams."""
        (pipeline,) = reencode_pipelines(fake_tools, SOURCE, OUTPUT, bitrate="8000k")
        (ffmpeg,) = pipeline.stages

        assert ffmpeg.executable == fake_tools.ffmpeg
        assert ffmpeg.args[-1] == str(OUTPUT)
        assert "libx265" in ffmpeg.args
        assert ffmpeg.args[ffmpeg.args.index("-b:v") + 1] == "8000k"
        params = ffmpeg.args[ffmpeg.args.index("-x265-params") + 1]
        assert "hdr10=1" in params
        assert (
            "master-display=G(8500,39850)B(6550,23000)R(35400,15650)"
            "WP(15635,16450)L(10000000,1)" in params
        )
        assert ffmpeg.args[ffmpeg.args.index("-c:a") + 1] == "copy"
        assert pipeline.output_path == OUTPUT
