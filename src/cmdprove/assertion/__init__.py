"""The assertion primitive and its argument surface.

Exports:
    Tester: API object handed to test functions (assert_cmd, note, subtest).
    parse_assert_args: Parse an assert_cmd argument list.
    run_command: Run a command with captured output.
"""

from cmdprove.assertion.options import AssertOptions, ExpectedValue, parse_assert_args
from cmdprove.assertion.primitive import DETAILS_PREFIX, Invocation, Tester, run_command

__all__ = [
    "AssertOptions",
    "DETAILS_PREFIX",
    "ExpectedValue",
    "Invocation",
    "Tester",
    "parse_assert_args",
    "run_command",
]
