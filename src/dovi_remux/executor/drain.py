"""Diagnostic stream drain.

Copies a process's stderr into a log file line by line. The drain blocks on
the pipe and wakes only when bytes arrive or the pipe closes, so a chatty
tool never fills its stderr buffer and stalls, and a silent tool costs
nothing. A broken log file is never fatal: the drain keeps consuming the
pipe and only the diagnostics are lost.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from pathlib import Path
from typing import IO, TextIO

logger = logging.getLogger(__name__)

# Bytes requested per read. read1() returns as soon as any data is available.
READ_CHUNK_SIZE = 8192

# Unterminated output longer than this is emitted as a line of its own
MAX_LINE_LENGTH = 64 * 1024

# Default number of trailing lines kept as the diagnostic excerpt
DEFAULT_TAIL_LINES = 20


def iter_lines(
    source: IO[bytes],
    chunk_size: int = READ_CHUNK_SIZE,
    max_line_length: int = MAX_LINE_LENGTH,
) -> Iterator[str]:
    """Yield decoded lines from a binary stream until EOF.

    Both ``\\n`` and ``\\r`` end a line, so ffmpeg progress updates written
    with carriage returns show up as separate lines. Empty lines are dropped.
    A run of bytes without any terminator is cut into pieces of at most
    ``max_line_length`` bytes.

    Args:
        source: Binary stream (e.g. a process's stderr pipe).
        chunk_size: Maximum bytes per read.
        max_line_length: Longest line kept pending before it is emitted.

    Yields:
        Lines without terminators, decoded as UTF-8 with replacement.
    """
    read = getattr(source, "read1", source.read)
    pending = b""
    while True:
        chunk = read(chunk_size)
        if not chunk:
            break
        pending += chunk.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
        *complete, pending = pending.split(b"\n")
        for raw in complete:
            if raw:
                yield raw.decode("utf-8", errors="replace")
        while len(pending) >= max_line_length:
            raw, pending = pending[:max_line_length], pending[max_line_length:]
            yield raw.decode("utf-8", errors="replace")
    if pending:
        yield pending.decode("utf-8", errors="replace")


class StreamDrain:
    """Drains one diagnostic stream into a log file.

    Attributes:
        log_path: Destination log file (created on first use).
        lines_read: Number of lines read from the source.
        log_failed: True once writing to the log file failed.
    """

    def __init__(self, log_path: Path | None, tail_lines: int = DEFAULT_TAIL_LINES):
        """Initialize the drain.

        Args:
            log_path: Log file to append to. None drains without logging.
            tail_lines: Number of trailing lines kept for the excerpt.
        """
        self.log_path = log_path
        self.lines_read = 0
        self.log_failed = False
        self._tail: deque[str] = deque(maxlen=tail_lines)
        self._writer: TextIO | None = None

    @property
    def excerpt(self) -> tuple[str, ...]:
        """Last lines read from the source."""
        return tuple(self._tail)

    def drain(self, source: IO[bytes]) -> None:
        """Copy every line from source to the log until the source is exhausted.

        Returns once the producing process has closed the stream (normally at
        exit). Read errors caused by the pipe being closed from another thread
        (cancellation) end the drain quietly.
        """
        self._open()
        try:
            for line in iter_lines(source):
                self.lines_read += 1
                self._tail.append(line)
                self._write(line)
        except (ValueError, OSError) as e:
            # Pipe closed under us (process killed or handle closed)
            logger.debug("Drain for %s stopped: %s", self.log_path, e)
        finally:
            self._close()

    def _open(self) -> None:
        if self.log_path is None:
            return
        try:
            self._writer = self.log_path.open("a", encoding="utf-8")
        except OSError as e:
            self._record_fault(e)

    def _write(self, line: str) -> None:
        if self._writer is None:
            return
        try:
            self._writer.write(line + "\n")
            self._writer.flush()
        except OSError as e:
            self._record_fault(e)
            self._close()

    def _close(self) -> None:
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        try:
            writer.close()
        except OSError as e:
            self._record_fault(e)

    def _record_fault(self, error: OSError) -> None:
        if not self.log_failed:
            logger.debug(
                "Cannot write diagnostic log %s: %s (diagnostics dropped)",
                self.log_path,
                error,
            )
        self.log_failed = True
