"""Core domain types and protocols for cmdprove.

This module defines the fundamental types used throughout the harness:
- CompareMode, ValueSource, StreamName: enumerations for expectations
- ExitCode: process exit codes shared by the driver and the child
- Channel: Protocol for the sink that receives report lines
- The exception hierarchy separating usage errors, internal errors and
  harness errors from plain test failures
"""
from enum import Enum, IntEnum
from typing import Protocol


class CmdproveError(Exception):
    """Base class for every error raised by cmdprove itself.

    Test failures are never exceptions; they are recorded by the accounting
    stack. A CmdproveError means the harness could not do its job.
    """


class UsageError(CmdproveError):
    """Raised when a test script calls the API incorrectly.

    Examples are a malformed assertion invocation, a missing command, or an
    unreadable expectation file. A UsageError aborts the current script with
    ExitCode.ABORTED.
    """


class PatternError(UsageError):
    """Raised when an extended glob pattern cannot be compiled."""


class InternalError(CmdproveError):
    """Raised when an internal invariant is violated."""


class AccountingError(InternalError):
    """Raised when the accounting stack is used out of order (e.g. underflow)."""


class CaptureStoreError(InternalError):
    """Raised when no unique artifact name can be allocated."""


class HarnessError(CmdproveError):
    """Raised by the driver for failures outside any test script."""


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    USAGE = 2
    ABORTED = 3


class CompareMode(str, Enum):
    EXACT = "exact"
    PATTERN = "pattern"
    IGNORE = "ignore"


class ValueSource(str, Enum):
    LITERAL = "literal"
    FILE = "file"
    DEFAULT = "default"


class StreamName(str, Enum):
    """The three channels observed on a command under test.

    The value doubles as the artifact file extension suffix root
    (``out``, ``err``, ``ret``).
    """
    OUT = "out"
    ERR = "err"
    RET = "ret"

    @property
    def label(self) -> str:
        """Human-readable name used in report lines."""
        return {"out": "stdout", "err": "stderr", "ret": "Return code"}[self.value]


class Channel(Protocol):
    """Protocol for sinks that receive the textual test report.

    Channels are the output boundary of the accounting stack. The CLI
    implementation prints to stdout; tests substitute an in-memory double.
    """

    def write_line(self, line: str) -> None:
        """Write one already-indented report line.

        Args:
            line: The line to emit, without a trailing newline.
        """
        ...
