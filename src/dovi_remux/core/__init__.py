"""Core utilities package.

Cancellation primitives, subprocess helpers and artifact naming used across
the executor, workflow and catalog modules.
"""

from dovi_remux.core.cancellation import (
    CancellationRegistration,
    CancellationToken,
    OperationCancelled,
)
from dovi_remux.core.file_utils import (
    ensure_directory,
    safe_path_component,
    unique_artifact_path,
    unique_suffix,
)
from dovi_remux.core.subprocess_utils import run_command

__all__ = [
    "CancellationRegistration",
    "CancellationToken",
    "OperationCancelled",
    "ensure_directory",
    "run_command",
    "safe_path_component",
    "unique_artifact_path",
    "unique_suffix",
]
