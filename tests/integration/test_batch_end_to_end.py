"""End-to-end batch runs with stand-in tool executables.

The stand-ins are small Python scripts that mimic the argument handling of
ffmpeg, dovi_tool and mkvmerge, so the real PipelineExecutor, commit and
cleanup code run against real child processes.
"""

import sys
import textwrap
from dataclasses import replace
from pathlib import Path

import pytest

from dovi_remux.config.models import ResolvedTools
from dovi_remux.domain.enums import FallbackMode
from dovi_remux.jobs.batch import BatchProcessor
from dovi_remux.workflow.processor import ItemProcessor

pytestmark = pytest.mark.integration

FAKE_FFMPEG = """
import sys
args = sys.argv[1:]
source = args[args.index("-i") + 1]
data = open(source, "rb").read()
if args[-1] == "-":
    sys.stdout.buffer.write(data)
else:
    open(args[-1], "wb").write(b"reencoded:" + data)
"""

FAKE_DOVI_TOOL = """
import sys
args = sys.argv[1:]
data = sys.stdin.buffer.read()
if b"CORRUPT" in data:
    sys.stderr.write("Error: Invalid RPU\\n")
    sys.exit(1)
prefix = b"converted:" if "convert" in args else b"stripped:"
open(args[args.index("-o") + 1], "wb").write(prefix + data)
"""

FAKE_MKVMERGE = """
import sys
args = sys.argv[1:]
output, video = args[1], args[2]
open(output, "wb").write(b"merged:" + open(video, "rb").read())
"""


def _write_tool(directory: Path, name: str, code: str) -> Path:
    path = directory / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(code))
    path.chmod(0o755)
    return path


@pytest.fixture
def tools(tmp_path: Path) -> ResolvedTools:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return ResolvedTools(
        ffmpeg=_write_tool(bin_dir, "ffmpeg", FAKE_FFMPEG),
        dovi_tool=_write_tool(bin_dir, "dovi_tool", FAKE_DOVI_TOOL),
        mkvmerge=_write_tool(bin_dir, "mkvmerge", FAKE_MKVMERGE),
    )


def _leftovers(directory: Path) -> list[Path]:
    return sorted(directory.iterdir()) if directory.exists() else []


class TestBatchEndToEnd:
    """Batch runs through real child processes."""

    def test_mixed_batch(self, base_config, tools, make_item):
        """Should convert good files, isolate the broken one and clean up."""
        good = make_item("good")
        broken = make_item("broken")
        fallback = make_item("fallback", bl_compatibility_id=4)
        good.sources[0].path.write_bytes(b"HEVC-good")
        broken.sources[0].path.write_bytes(b"HEVC-CORRUPT")
        fallback.sources[0].path.write_bytes(b"HEVC-fallback")

        processor = ItemProcessor(base_config, tools=tools)
        summary = BatchProcessor(base_config, processor).run([good, broken, fallback])

        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.failures[0].item_id == "broken"
        assert "Invalid RPU" in summary.failures[0].message

        assert good.sources[0].path.read_bytes() == b"merged:converted:HEVC-good"
        assert broken.sources[0].path.read_bytes() == b"HEVC-CORRUPT"
        assert (
            fallback.sources[0].path.read_bytes() == b"merged:stripped:HEVC-fallback"
        )
        assert _leftovers(base_config.processing.temp_directory) == []

        logs = _leftovers(base_config.processing.log_directory)
        assert any(p.name.startswith("dovi_tool_broken_") for p in logs)

    def test_reencode_fallback(self, base_config, tools, make_item):
        """Should re-encode fallback sources in a single ffmpeg run."""
        config = replace(
            base_config,
            processing=replace(
                base_config.processing, fallback_mode=FallbackMode.REENCODE
            ),
        )
        item = make_item("fb", bl_present_flag=0)
        item.sources[0].path.write_bytes(b"HEVC")

        summary = BatchProcessor(config, ItemProcessor(config, tools=tools)).run(
            [item]
        )

        assert summary.succeeded == 1
        assert item.sources[0].path.read_bytes() == b"reencoded:HEVC"
        assert _leftovers(config.processing.temp_directory) == []

    def test_dry_run_touches_nothing(self, base_config, tools, make_item):
        """Should plan every item without creating any file."""
        config = replace(
            base_config,
            processing=replace(base_config.processing, dry_run=True),
        )
        item = make_item("good")
        item.sources[0].path.write_bytes(b"HEVC-good")

        summary = BatchProcessor(config, ItemProcessor(config, tools=tools)).run(
            [item]
        )

        assert summary.succeeded == 1
        assert item.sources[0].path.read_bytes() == b"HEVC-good"
        assert not config.processing.temp_directory.exists()
        assert not config.processing.log_directory.exists()
