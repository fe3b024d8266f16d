"""Owned handle over one spawned external process.

ProcessStage wraps subprocess.Popen with binary pipes and guarantees on every
exit path (normal, exception, cancellation) that the process is terminated
and every pipe descriptor is closed.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for tool invocation
import threading
from pathlib import Path
from typing import IO

from dovi_remux.executor.exceptions import ProcessLaunchError

logger = logging.getLogger(__name__)


class ProcessStage:
    """Handle over a running external process.

    Use spawn() to start the process and the instance as a context manager
    to scope its lifetime:

        with ProcessStage.spawn(path, args, False, True, name="ffmpeg") as stage:
            data = stage.stdout.read()
            stage.wait()
    """

    DEFAULT_TERMINATE_GRACE: float = 5.0

    def __init__(
        self, process: subprocess.Popen, name: str, grace: float | None = None
    ) -> None:
        """Wrap an already started process.

        Args:
            process: Started Popen object with stderr piped.
            name: Stage label for logging.
            grace: Seconds between SIGTERM and SIGKILL when terminate() is
                called without one, including on context exit.
        """
        self._process = process
        self.name = name
        self.grace = self.DEFAULT_TERMINATE_GRACE if grace is None else grace
        self._terminate_lock = threading.Lock()

    @classmethod
    def spawn(
        cls,
        executable: Path | str,
        args: list[str] | tuple[str, ...],
        needs_stdin_pipe: bool,
        needs_stdout_pipe: bool,
        name: str | None = None,
        grace: float | None = None,
    ) -> ProcessStage:
        """Start an external tool.

        Args:
            executable: Path of the tool.
            args: Arguments (not including the executable).
            needs_stdin_pipe: Give the process a writable stdin pipe. When
                False, stdin is connected to /dev/null.
            needs_stdout_pipe: Give the process a readable stdout pipe. When
                False, stdout is discarded.
            name: Stage label; defaults to the executable file name.
            grace: Default termination grace period in seconds.

        Returns:
            ProcessStage owning the new process.

        Raises:
            ProcessLaunchError: If the executable is missing, not runnable,
                or the OS refuses to create the process.
        """
        label = name or Path(executable).name
        cmd = [str(executable), *args]
        logger.info("%s", " ".join(cmd), extra={"stage": label})

        try:
            process = subprocess.Popen(  # nosec B603 - argv list, no shell
                cmd,
                stdin=subprocess.PIPE if needs_stdin_pipe else subprocess.DEVNULL,
                stdout=subprocess.PIPE if needs_stdout_pipe else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except FileNotFoundError as e:
            raise ProcessLaunchError(executable, label, "executable not found") from e
        except PermissionError as e:
            raise ProcessLaunchError(executable, label, "permission denied") from e
        except OSError as e:
            raise ProcessLaunchError(executable, label, str(e)) from e

        logger.debug("Spawned %s (pid %d)", label, process.pid)
        return cls(process, label, grace)

    @property
    def pid(self) -> int:
        """OS process id."""
        return self._process.pid

    @property
    def stdin(self) -> IO[bytes] | None:
        """Writable input sink, or None if not piped."""
        return self._process.stdin

    @property
    def stdout(self) -> IO[bytes] | None:
        """Readable output source, or None if not piped."""
        return self._process.stdout

    @property
    def stderr(self) -> IO[bytes]:
        """Readable diagnostic source."""
        assert self._process.stderr is not None
        return self._process.stderr

    @property
    def returncode(self) -> int | None:
        """Exit code, or None while the process is running."""
        return self._process.returncode

    def poll(self) -> int | None:
        """Return the exit code if the process has exited, else None."""
        return self._process.poll()

    def wait(self, timeout: float | None = None) -> int:
        """Block until the process exits and return its exit code.

        Raises:
            subprocess.TimeoutExpired: If timeout elapses first.
        """
        return self._process.wait(timeout=timeout)

    def request_stop(self) -> None:
        """Send SIGTERM without waiting for the process to exit."""
        if self._process.poll() is not None:
            return
        try:
            self._process.terminate()
        except ProcessLookupError:
            pass

    def terminate(self, grace: float | None = None) -> None:
        """Stop the process: SIGTERM, then SIGKILL after ``grace`` seconds.

        Without an explicit grace the one given at spawn time is used.

        Safe to call from any thread and more than once.
        """
        grace = self.grace if grace is None else grace
        with self._terminate_lock:
            if self._process.poll() is not None:
                return
            logger.debug("Terminating %s (pid %d)", self.name, self.pid)
            try:
                self._process.terminate()
                self._process.wait(timeout=grace)
            except subprocess.TimeoutExpired:
                logger.warning(
                    "%s did not exit within %.1fs, killing", self.name, grace
                )
                self._process.kill()
                self._process.wait()
            except ProcessLookupError:
                pass

    def close(self) -> None:
        """Close every pipe owned by this handle."""
        for stream in (self._process.stdin, self._process.stdout, self._process.stderr):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as e:
                logger.debug("Error closing pipe of %s: %s", self.name, e)

    def __enter__(self) -> ProcessStage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()
        self.close()
