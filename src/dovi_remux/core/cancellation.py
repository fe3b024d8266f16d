"""Cooperative cancellation for batch and pipeline runs.

CancellationToken is shared between the thread that requests cancellation
(signal handler, host application) and the threads doing the work. Work
either checks the token between steps or registers a callback that fires
once, on the cancelling thread, when cancellation is requested.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class OperationCancelled(BaseException):
    """Raised when a cancellation request unwinds a batch or pipeline.

    Derives from BaseException (like KeyboardInterrupt) so generic
    ``except Exception`` handlers in per-item error isolation never
    swallow it.
    """


class CancellationRegistration:
    """Handle returned by CancellationToken.register().

    Calling unregister() after the protected work finishes prevents a late
    cancellation from invoking a stale callback.
    """

    def __init__(self, token: CancellationToken, callback: Callable[[], None]):
        self._token = token
        self._callback = callback

    def unregister(self) -> None:
        """Remove the callback from the token (no-op if already fired)."""
        self._token._remove(self._callback)

    def __enter__(self) -> CancellationRegistration:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unregister()


class CancellationToken:
    """Thread-safe, one-shot cancellation flag with callbacks.

    Example:
        token = CancellationToken()
        with token.register(lambda: process.terminate()):
            process.wait()
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning("Cancellation callback failed: %s", e)

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancellation or timeout; return is_cancelled."""
        return self._event.wait(timeout)

    def register(self, callback: Callable[[], None]) -> CancellationRegistration:
        """Run callback when cancellation is requested.

        If the token is already cancelled the callback runs immediately on
        the calling thread.

        Args:
            callback: Zero-argument callable. Exceptions are logged.

        Returns:
            Registration handle; use as a context manager or call
            unregister() when the protected work is done.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return CancellationRegistration(self, callback)

        callback()
        return CancellationRegistration(self, callback)

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass
