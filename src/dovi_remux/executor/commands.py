"""Pipeline builders for the remux and fallback conversions.

Each builder returns the ordered PipelineSpecs for one source file. Paths for
intermediate and output files are chosen by the caller so that it can clean
them up whatever happens.
"""

from __future__ import annotations

from pathlib import Path

from dovi_remux.config.models import ResolvedTools
from dovi_remux.domain.models import PipelineSpec, StageSpec

# HDR10 signalling for the re-encode fallback (BT.2020 mastering display)
X265_HDR10_PARAMS = ":".join(
    [
        "repeat-headers=1",
        "sar=1",
        "hrd=1",
        "aud=1",
        "open-gop=0",
        "hdr10=1",
        "sao=0",
        "rect=0",
        "cutree=0",
        "deblock=-3,-3",
        "strong-intra-smoothing=0",
        "chromaloc=2",
        "aq-mode=1",
        "vbv-maxrate=160000",
        "vbv-bufsize=160000",
        "max-cll=0,0",
        "master-display=G(8500,39850)B(6550,23000)R(35400,15650)"
        "WP(15635,16450)L(10000000,1)",
        "preset=slow",
    ]
)

LIBPLACEBO_FILTER = (
    "hwupload,"
    "libplacebo=peak_detect=false:colorspace=9:color_primaries=9:"
    "color_trc=16:range=tv:format=yuv420p10le,"
    "hwdownload,format=yuv420p10le"
)


def extract_video_stage(ffmpeg: Path, source: Path) -> StageSpec:
    """ffmpeg: copy the first video stream as Annex B HEVC to stdout."""
    return StageSpec(
        name="ffmpeg",
        executable=ffmpeg,
        args=(
            "-nostdin",
            "-hide_banner",
            "-loglevel",
            "warning",
            "-i",
            str(source),
            "-map",
            "0:v:0",
            "-c:v",
            "copy",
            "-bsf:v",
            "hevc_mp4toannexb",
            "-f",
            "hevc",
            "-",
        ),
        writes_to_next=True,
    )


def convert_rpu_stage(dovi_tool: Path, output: Path) -> StageSpec:
    """dovi_tool mode 1: rewrite the RPU for a profile 7.6 / 8.1 MEL stream."""
    return StageSpec(
        name="dovi_tool",
        executable=dovi_tool,
        args=("-m", "1", "convert", "--discard", "-", "-o", str(output)),
        reads_from_previous=True,
        output_path=output,
    )


def remove_rpu_stage(dovi_tool: Path, output: Path) -> StageSpec:
    """dovi_tool remove: drop the RPU entirely, leaving plain HDR10."""
    return StageSpec(
        name="dovi_tool",
        executable=dovi_tool,
        args=("remove", "-", "-o", str(output)),
        reads_from_previous=True,
        output_path=output,
    )


def merge_stage(
    mkvmerge: Path, video: Path, original: Path, output: Path
) -> StageSpec:
    """mkvmerge: new video track plus every non-video track of the original."""
    return StageSpec(
        name="mkvmerge",
        executable=mkvmerge,
        args=("-o", str(output), str(video), "-D", str(original)),
        output_path=output,
    )


def reencode_stage(
    ffmpeg: Path, source: Path, output: Path, bitrate: str = "12000k"
) -> StageSpec:
    """ffmpeg: tone the video to HDR10 with libplacebo and re-encode with x265.

    Audio, subtitle and attachment streams are copied unchanged.
    """
    return StageSpec(
        name="ffmpeg",
        executable=ffmpeg,
        args=(
            "-nostdin",
            "-hide_banner",
            "-loglevel",
            "error",
            "-stats",
            "-y",
            "-i",
            str(source),
            "-map",
            "0:v:0",
            "-map",
            "0:a?",
            "-map",
            "0:s?",
            "-map",
            "0:t?",
            "-vf",
            LIBPLACEBO_FILTER,
            "-c:v",
            "libx265",
            "-b:v",
            bitrate,
            "-x265-params",
            X265_HDR10_PARAMS,
            "-c:a",
            "copy",
            "-c:s",
            "copy",
            "-c:t",
            "copy",
            str(output),
        ),
        output_path=output,
    )


def remux_pipelines(
    tools: ResolvedTools, source: Path, elementary: Path, output: Path
) -> list[PipelineSpec]:
    """Profile 8.1 to 7.6: convert the RPU, then remux with the original."""
    return [
        PipelineSpec(
            name="convert-rpu",
            stages=(
                extract_video_stage(tools.ffmpeg, source),
                convert_rpu_stage(tools.dovi_tool, elementary),
            ),
        ),
        PipelineSpec(
            name="remux",
            stages=(merge_stage(tools.mkvmerge, elementary, source, output),),
        ),
    ]


def strip_pipelines(
    tools: ResolvedTools, source: Path, elementary: Path, output: Path
) -> list[PipelineSpec]:
    """Fallback without re-encoding: remove the RPU, then remux."""
    return [
        PipelineSpec(
            name="strip-rpu",
            stages=(
                extract_video_stage(tools.ffmpeg, source),
                remove_rpu_stage(tools.dovi_tool, elementary),
            ),
        ),
        PipelineSpec(
            name="remux",
            stages=(merge_stage(tools.mkvmerge, elementary, source, output),),
        ),
    ]


def reencode_pipelines(
    tools: ResolvedTools, source: Path, output: Path, bitrate: str = "12000k"
) -> list[PipelineSpec]:
    """Fallback with a full video re-encode to HDR10."""
    return [
        PipelineSpec(
            name="reencode",
            stages=(reencode_stage(tools.ffmpeg, source, output, bitrate),),
        )
    ]
