"""Pipeline execution for dovi-remux.

ProcessStage owns one external process, PipelineExecutor chains stages with
pipes, and commit() atomically swaps the final output over the original.
"""

from dovi_remux.executor.artifacts import (
    cleanup_artifacts,
    cleanup_temp_file,
    validate_output,
)
from dovi_remux.executor.commands import (
    reencode_pipelines,
    remux_pipelines,
    strip_pipelines,
)
from dovi_remux.executor.commit import commit
from dovi_remux.executor.drain import StreamDrain, iter_lines
from dovi_remux.executor.exceptions import (
    CommitError,
    ItemProcessingError,
    MissingOutputError,
    PipelineTimeoutError,
    ProcessLaunchError,
    StageExitError,
    TransferError,
)
from dovi_remux.executor.pipeline import PipelineExecutor
from dovi_remux.executor.process import ProcessStage

__all__ = [
    "PipelineExecutor",
    "ProcessStage",
    "StreamDrain",
    "iter_lines",
    "commit",
    "reencode_pipelines",
    "remux_pipelines",
    "strip_pipelines",
    "cleanup_artifacts",
    "cleanup_temp_file",
    "validate_output",
    # Exceptions
    "ItemProcessingError",
    "ProcessLaunchError",
    "StageExitError",
    "TransferError",
    "MissingOutputError",
    "PipelineTimeoutError",
    "CommitError",
]
