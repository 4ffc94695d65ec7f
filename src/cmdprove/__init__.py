"""cmdprove: test scripts that run commands and check what they print.

A test script registers test functions on a Suite; each function receives
a Tester and calls ``assert_cmd`` to run a command and compare its stdout,
stderr and exit status against expectations. The driver runs every script
in an isolated child process and prints an indented, TAP-like report.
"""

from cmdprove.assertion.primitive import Tester
from cmdprove.core.accounting import Accounting
from cmdprove.core.config import Settings
from cmdprove.core.domain import (
    AccountingError,
    CmdproveError,
    CompareMode,
    ExitCode,
    HarnessError,
    InternalError,
    UsageError,
)
from cmdprove.core.suite import Suite
from cmdprove.compare import compare

__all__ = [
    "Accounting",
    "AccountingError",
    "CmdproveError",
    "CompareMode",
    "ExitCode",
    "HarnessError",
    "InternalError",
    "Settings",
    "Suite",
    "Tester",
    "UsageError",
    "compare",
]
