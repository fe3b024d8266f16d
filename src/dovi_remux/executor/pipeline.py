"""Multi-stage process pipeline executor.

Runs a PipelineSpec: every stage is spawned before any bytes move, then one
transfer thread per piped pair copies stage i's stdout into stage i+1's stdin
while one StreamDrain thread per stage copies its stderr into a log file.
Cancellation and timeouts terminate every stage, which closes the pipes and
releases every blocked thread.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from dovi_remux.core.cancellation import CancellationToken
from dovi_remux.core.file_utils import ensure_directory, unique_artifact_path
from dovi_remux.domain.enums import PipelineStatus
from dovi_remux.domain.models import (
    PipelineFailure,
    PipelineOutcome,
    PipelineSpec,
    StageResult,
)
from dovi_remux.executor.artifacts import validate_output
from dovi_remux.executor.drain import StreamDrain
from dovi_remux.executor.process import ProcessStage

logger = logging.getLogger(__name__)

# Bytes moved per read between adjacent stages
TRANSFER_CHUNK_SIZE = 64 * 1024


@dataclass
class _RunState:
    """Mutable state shared between the executor and its threads."""

    cancelled: bool = False
    timed_out: bool = False
    transfer_errors: list[tuple[int, str]] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def stopping(self) -> bool:
        return self.cancelled or self.timed_out


def _write_all(sink: IO[bytes], data: bytes) -> None:
    """Write every byte to an unbuffered sink, looping on partial writes."""
    view = memoryview(data)
    while view:
        written = sink.write(view)
        if written is None:
            # Non-blocking sink with no room; pipes here are blocking
            continue
        view = view[written:]


def _close_quietly(stream: IO[bytes] | None) -> None:
    if stream is None:
        return
    try:
        stream.close()
    except OSError as e:
        logger.debug("Error closing pipe: %s", e)


def _first_failure(
    results: tuple[StageResult, ...], transfer_errors: list[tuple[int, str]]
) -> StageResult | None:
    """Return the stage whose failure caused the pipeline to fail.

    Normally the lowest-index non-zero exit. A stage whose output transfer
    broke because the next stage had already failed exited only because its
    stdout was closed under it, so the blame moves downstream.
    """
    broken = {index for index, _ in transfer_errors}
    failed = [r for r in results if not r.success]
    for result in failed:
        if result.index in broken and not results[result.index + 1].success:
            continue
        return result
    return failed[0] if failed else None


class PipelineExecutor:
    """Executes PipelineSpecs and reports a PipelineOutcome.

    The executor itself is stateless between runs and can be reused for
    every pipeline of a batch.
    """

    DEFAULT_TERMINATE_GRACE: float = 5.0
    THREAD_JOIN_TIMEOUT: float = 5.0  # after all stages have exited

    def __init__(
        self,
        log_dir: Path | None = None,
        timeout: float | None = None,
        terminate_grace: float | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            log_dir: Directory for per-stage diagnostic logs. None disables
                log files (stderr is still drained and excerpted).
            timeout: Maximum wall-clock seconds per pipeline. None or <= 0
                means no limit.
            terminate_grace: Seconds between SIGTERM and SIGKILL.
        """
        self._log_dir = log_dir
        self._timeout = timeout if timeout and timeout > 0 else None
        self._grace = (
            terminate_grace
            if terminate_grace is not None
            else self.DEFAULT_TERMINATE_GRACE
        )

    def run(
        self,
        spec: PipelineSpec,
        cancel: CancellationToken | None = None,
        label: str = "item",
        reference_size: int | None = None,
    ) -> PipelineOutcome:
        """Run every stage of the pipeline to completion.

        Args:
            spec: Validated pipeline specification.
            cancel: Cancellation token; cancelling terminates all stages.
            label: Item identity used in log file names.
            reference_size: Size of the original media file, used to flag a
                suspiciously small output.

        Returns:
            PipelineOutcome describing success, failure or cancellation.

        Raises:
            ProcessLaunchError: If any stage cannot be started. Stages that
                were already started are terminated first.
        """
        cancel = cancel or CancellationToken()
        if cancel.is_cancelled:
            logger.info("Pipeline %s not started: cancelled", spec.name)
            return PipelineOutcome(status=PipelineStatus.CANCELLED)

        state = _RunState()
        log_dir = self._prepare_log_dir()
        logger.info(
            "Running pipeline %s (%d stages)",
            spec.name,
            len(spec.stages),
            extra={"pipeline": spec.name},
        )

        with ExitStack() as stack:
            stages: list[ProcessStage] = []
            for stage_spec in spec.stages:
                stage = ProcessStage.spawn(
                    stage_spec.executable,
                    stage_spec.args,
                    needs_stdin_pipe=stage_spec.reads_from_previous,
                    needs_stdout_pipe=stage_spec.writes_to_next,
                    name=stage_spec.name,
                    grace=self._grace,
                )
                stack.enter_context(stage)
                stages.append(stage)

            def stop_all() -> None:
                # Signal every stage first so grace periods run in parallel
                for running in stages:
                    running.request_stop()
                for running in stages:
                    running.terminate()

            def on_cancel() -> None:
                with state.lock:
                    state.cancelled = True
                logger.info("Cancelling pipeline %s", spec.name)
                stop_all()

            def on_timeout() -> None:
                with state.lock:
                    state.timed_out = True
                logger.warning(
                    "Pipeline %s timed out after %s seconds", spec.name, self._timeout
                )
                stop_all()

            registration = cancel.register(on_cancel)
            stack.callback(registration.unregister)

            if self._timeout is not None:
                timer = threading.Timer(self._timeout, on_timeout)
                timer.daemon = True
                timer.start()
                stack.callback(timer.cancel)

            drains: list[StreamDrain] = []
            threads: list[threading.Thread] = []
            for stage in stages:
                log_path = (
                    unique_artifact_path(log_dir, stage.name, label, ".log")
                    if log_dir is not None
                    else None
                )
                drain = StreamDrain(log_path)
                drains.append(drain)
                threads.append(
                    threading.Thread(
                        target=contextvars.copy_context().run,
                        args=(drain.drain, stage.stderr),
                        name=f"drain-{stage.name}",
                        daemon=True,
                    )
                )

            for index, stage_spec in enumerate(spec.stages):
                if stage_spec.writes_to_next:
                    threads.append(
                        threading.Thread(
                            target=contextvars.copy_context().run,
                            args=(
                                self._transfer,
                                stages[index],
                                stages[index + 1],
                                index,
                                state,
                            ),
                            name=f"transfer-{stages[index].name}",
                            daemon=True,
                        )
                    )

            for thread in threads:
                thread.start()

            exit_codes = [stage.wait() for stage in stages]

            for thread in threads:
                thread.join(timeout=self.THREAD_JOIN_TIMEOUT)
                if thread.is_alive():
                    logger.error(
                        "Thread %s did not finish after its process exited. "
                        "Thread will be abandoned.",
                        thread.name,
                    )

        results = tuple(
            StageResult(
                index=index,
                name=stage_spec.name,
                exit_code=exit_codes[index],
                log_path=drains[index].log_path,
                excerpt=drains[index].excerpt,
            )
            for index, stage_spec in enumerate(spec.stages)
        )
        outcome = self._build_outcome(spec, results, state, reference_size)
        self._log_outcome(spec, outcome)
        return outcome

    def _prepare_log_dir(self) -> Path | None:
        if self._log_dir is None:
            return None
        try:
            return ensure_directory(self._log_dir)
        except OSError as e:
            logger.debug(
                "Cannot create log directory %s: %s (diagnostics dropped)",
                self._log_dir,
                e,
            )
            return None

    def _transfer(
        self,
        upstream: ProcessStage,
        downstream: ProcessStage,
        index: int,
        state: _RunState,
    ) -> None:
        """Copy upstream stdout into downstream stdin until exhausted.

        Downstream stdin is always closed on exit, which is what tells the
        downstream tool that its input is complete.
        """
        source = upstream.stdout
        sink = downstream.stdin
        assert source is not None and sink is not None
        transferred = 0
        try:
            while True:
                chunk = source.read(TRANSFER_CHUNK_SIZE)
                if not chunk:
                    break
                _write_all(sink, chunk)
                transferred += len(chunk)
        except (OSError, ValueError) as e:
            if not state.stopping:
                message = (
                    f"Transfer {upstream.name} -> {downstream.name} failed after "
                    f"{transferred} bytes: {e}"
                )
                logger.debug(message)
                with state.lock:
                    state.transfer_errors.append((index, message))
            # Stop upstream from blocking on a pipe nobody reads anymore
            _close_quietly(source)
        finally:
            _close_quietly(sink)
        logger.debug(
            "Transferred %d bytes %s -> %s",
            transferred,
            upstream.name,
            downstream.name,
        )

    def _build_outcome(
        self,
        spec: PipelineSpec,
        results: tuple[StageResult, ...],
        state: _RunState,
        reference_size: int | None = None,
    ) -> PipelineOutcome:
        if state.cancelled:
            return PipelineOutcome(
                status=PipelineStatus.CANCELLED, stage_results=results
            )

        if state.timed_out:
            return PipelineOutcome(
                status=PipelineStatus.TIMED_OUT,
                stage_results=results,
                failure=PipelineFailure(
                    kind="timeout",
                    message=(
                        f"Pipeline {spec.name} timed out after {self._timeout} seconds"
                    ),
                ),
            )

        first_failed = _first_failure(results, state.transfer_errors)
        if first_failed is not None:
            return PipelineOutcome(
                status=PipelineStatus.FAILED,
                stage_results=results,
                failure=PipelineFailure(
                    kind="stage_exit",
                    message=(
                        f"{first_failed.name} exited with code {first_failed.exit_code}"
                    ),
                    stage_index=first_failed.index,
                    stage_name=first_failed.name,
                    exit_code=first_failed.exit_code,
                    excerpt=first_failed.excerpt,
                ),
            )

        if state.transfer_errors:
            index, message = min(state.transfer_errors)
            return PipelineOutcome(
                status=PipelineStatus.FAILED,
                stage_results=results,
                failure=PipelineFailure(
                    kind="transfer",
                    message=message,
                    stage_index=index,
                    stage_name=results[index].name,
                ),
            )

        output_path = spec.output_path
        if output_path is not None:
            error = validate_output(output_path, reference_size)
            if error is not None:
                return PipelineOutcome(
                    status=PipelineStatus.FAILED,
                    stage_results=results,
                    failure=PipelineFailure(
                        kind="missing_output",
                        message=error,
                        stage_index=len(results) - 1,
                        stage_name=results[-1].name,
                    ),
                )

        return PipelineOutcome(
            status=PipelineStatus.SUCCEEDED,
            stage_results=results,
            output_path=output_path,
        )

    def _log_outcome(self, spec: PipelineSpec, outcome: PipelineOutcome) -> None:
        if outcome.succeeded:
            logger.info("Pipeline %s succeeded", spec.name)
        elif outcome.cancelled:
            logger.info("Pipeline %s cancelled", spec.name)
        elif outcome.failure is not None:
            logger.warning(
                "Pipeline %s failed: %s",
                spec.name,
                outcome.failure.message,
                extra={
                    "pipeline": spec.name,
                    "failure_kind": outcome.failure.kind,
                    "stage_index": outcome.failure.stage_index,
                    "exit_code": outcome.failure.exit_code,
                },
            )
            for line in outcome.failure.excerpt[-5:]:
                logger.warning("  %s: %s", outcome.failure.stage_name, line)
