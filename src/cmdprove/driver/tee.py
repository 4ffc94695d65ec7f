"""Fan-out of a child process's stderr to a live view and a side buffer."""
from __future__ import annotations

import logging
import sys
import threading
from collections import deque
from typing import IO, TextIO

logger = logging.getLogger("cmdprove.driver.tee")

DEFAULT_MAX_LINES = 10_000


class StderrTee:
    """Copies a byte pipe, line by line, into two sinks.

    A reader thread forwards every line to the live text stream as soon as
    it arrives (so stderr stays interleaved with the child's stdout on the
    terminal) and also appends it to a bounded buffer that can be inspected
    after the child exits.

    Attributes:
        pipe: Readable binary pipe (the child's stderr).
        live: Stream receiving the live copy. None means ``sys.stdout`` at
            the time each line is written.
        lines: Retained lines, without line terminators. Only the most
            recent ``max_lines`` lines are kept.
    """

    def __init__(self, pipe: IO[bytes], live: TextIO | None = None, max_lines: int = DEFAULT_MAX_LINES) -> None:
        self.pipe = pipe
        self.live = live
        self.lines: deque[str] = deque(maxlen=max_lines)
        self._thread = threading.Thread(target=self._copy, name="cmdprove-stderr-tee", daemon=True)

    def start(self) -> StderrTee:
        self._thread.start()
        return self

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _copy(self) -> None:
        for raw in self.pipe:
            line = raw.decode("utf-8", errors="replace")
            live = self.live or sys.stdout
            live.write(line)
            live.flush()
            self.lines.append(line.rstrip("\r\n"))
        self.pipe.close()
        logger.debug(f"stderr tee finished after {len(self.lines)} retained lines")

    def matching(self, prefix: str) -> list[str]:
        """Return the remainder of every retained line starting with ``prefix``."""
        return [line[len(prefix):] for line in self.lines if line.startswith(prefix)]
