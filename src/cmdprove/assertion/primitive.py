"""The assertion primitive: run a command and check its three channels.

The Tester object is what test functions receive. Its ``assert_cmd``
method runs one command with captured stdout/stderr, persists the exit
status next to them, compares each channel against its expectation and
records a single verdict in the accounting stack.
"""
from __future__ import annotations

import contextlib
import logging
import subprocess
import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import IO

from cmdprove.assertion.options import AssertOptions, ExpectedValue, parse_assert_args
from cmdprove.capture.chomp import ChompWriter
from cmdprove.capture.store import CapturePaths, CaptureStore
from cmdprove.compare.comparator import compare
from cmdprove.core.accounting import Accounting, Level
from cmdprove.core.config import Settings
from cmdprove.core.domain import CompareMode, StreamName
from cmdprove.helpers.text import decode

logger = logging.getLogger("cmdprove.assertion")

DETAILS_PREFIX = "For details, see: "

# Exit statuses a shell reports for commands it cannot run.
NOT_FOUND_STATUS = 127
NOT_EXECUTABLE_STATUS = 126


@dataclass
class Invocation:
    """One execution of a command under test and its results."""

    description: str
    command: list[str]
    expected: dict[StreamName, ExpectedValue]
    paths: CapturePaths
    preserve_newlines: bool = False
    returncode: int | None = None
    failures: list[tuple[StreamName, str]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures


def _pump(pipe: IO[bytes], path: str, preserve_newlines: bool) -> None:
    with open(path, "wb") as f:
        sink = f if preserve_newlines else ChompWriter(f)
        for line in pipe:
            sink.write(line)
        if not preserve_newlines:
            sink.close()
    pipe.close()


def run_command(
    command: list[str],
    paths: CapturePaths,
    preserve_newlines: bool = False,
    input: bytes | None = None,
) -> int:
    """Run ``command`` with stdout/stderr captured into ``paths``.

    The command's stdin is inherited from the caller unless ``input`` is
    given. Each output pipe is drained by its own thread so neither can
    fill up and block the child. Unless ``preserve_newlines`` is set, the
    newlines ending each stream are dropped on the way to disk.

    Args:
        command: Argument vector of the command.
        paths: Capture artifacts to write.
        preserve_newlines: Keep trailing newlines in the artifacts.
        input: Optional bytes fed to the command's stdin.

    Returns:
        int: The exit status. Commands killed by a signal report 128+N and
        commands that cannot be started report 127 (not found) or 126.
    """
    logger.debug(f"STDOUT will be saved to: '{paths.out}'.")
    logger.debug(f"STDERR will be saved to: '{paths.err}'.")
    logger.debug(f"RETCODE will be saved to: '{paths.ret}'.")
    try:
        process = subprocess.Popen(
            command,
            stdin=subprocess.PIPE if input is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
        returncode = NOT_FOUND_STATUS if isinstance(e, FileNotFoundError) else NOT_EXECUTABLE_STATUS
        logger.info(f"Command could not be started: {command[0]}: {e}")
        with open(paths.out, "wb"):
            pass
        with open(paths.err, "wb") as f:
            f.write(f"{command[0]}: {e.strerror or e}".encode("utf-8"))
        _write_returncode(paths, returncode)
        return returncode

    pumps = [
        threading.Thread(target=_pump, args=(process.stdout, paths.out, preserve_newlines), daemon=True),
        threading.Thread(target=_pump, args=(process.stderr, paths.err, preserve_newlines), daemon=True),
    ]
    for pump in pumps:
        pump.start()
    if input is not None:
        try:
            process.stdin.write(input)
        except BrokenPipeError:
            logger.debug("Command closed its stdin before reading all input")
        finally:
            with contextlib.suppress(BrokenPipeError):
                process.stdin.close()
    returncode = process.wait()
    for pump in pumps:
        pump.join()

    if returncode < 0:
        returncode = 128 - returncode
    _write_returncode(paths, returncode)
    logger.debug(f"Command finished with return code {returncode}")
    return returncode


def _write_returncode(paths: CapturePaths, returncode: int) -> None:
    with open(paths.ret, "w") as f:
        f.write(f"{returncode}\n")


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _compare_returncode(expected: ExpectedValue, returncode: int) -> str | None:
    if expected.mode == CompareMode.IGNORE:
        return None
    if expected.mode == CompareMode.EXACT:
        wanted = decode(expected.value).strip()
        if wanted.isdigit() and int(wanted) == returncode:
            return None
        return f"Got return code '{returncode}', expected '{wanted}'."
    return compare(expected.mode, expected.value, str(returncode).encode("ascii"), expected.preserve_newlines)


def evaluate(invocation: Invocation) -> list[tuple[StreamName, str]]:
    """Compare every channel of a finished invocation against its expectation.

    Returns:
        list: (channel, message) pairs, one per failing channel.
    """
    failures: list[tuple[StreamName, str]] = []
    for stream in StreamName:
        expected = invocation.expected[stream]
        if stream == StreamName.RET:
            result = _compare_returncode(expected, invocation.returncode)
        elif expected.mode == CompareMode.IGNORE:
            result = None
        else:
            actual = _read(invocation.paths.path_for(stream))
            result = compare(expected.mode, expected.value, actual, expected.preserve_newlines)
        if result is not None:
            failures.append((stream, result))
    return failures


class Tester:
    """API handed to every test function.

    A Tester is bound to one script run. It owns the capture store and
    writes to the shared accounting stack.

    Attributes:
        accounting: The accounting stack receiving verdicts.
        settings: Run settings (ignore defaults, artifact naming).
        store: CaptureStore for command artifacts.
        last_err_path: The stderr artifact of the most recent assertion.
    """

    def __init__(self, accounting: Accounting, settings: Settings, store: CaptureStore) -> None:
        self.accounting = accounting
        self.settings = settings
        self.store = store
        self.last_err_path: str | None = None

    @property
    def out_dir(self) -> str:
        return self.store.out_dir

    def note(self, message: str, level: int = 0) -> None:
        """Write ``message`` as a comment in the test output.

        Use this instead of a plain ``print`` so the comment is indented
        with the rest of the report.
        """
        self.accounting.note(message, level)

    def describe(self, text: str) -> None:
        """Use ``text`` as a description for the current test."""
        self.note(text)

    @contextmanager
    def subtest(self, name: str) -> Generator[Level, None, None]:
        """Group the assertions made inside the block into a nested level.

        The group counts as a single result in its parent: ok if every
        assertion inside passed, not ok otherwise.
        """
        with self.accounting.level(name) as level:
            yield level

    def assert_cmd(self, *args: str, input: bytes | str | None = None) -> int:
        """Check a command's output against expected values.

        Usage::

            t.assert_cmd("DESC", [options], "--", COMMAND...)

        Options:
            -d DESC                    description (instead of the first argument)
            -o VALUE, -op PAT, -O FILE expected stdout: literal, pattern or file
            -e VALUE, -ep PAT, -E FILE expected stderr: literal, pattern or file
            -r VALUE, -rp PAT, -R FILE expected exit status
            -oi, -ei, -ri              ignore stdout, stderr or exit status
            -p                         keep trailing newlines significant
            -f                         return the number of failed channels

        Unless given, stdout and stderr are expected to be empty and the
        exit status to be 0. Patterns are extended globs (``+([0-9])``).

        Args:
            *args: The argument list described above.
            input: Optional data fed to the command's stdin; by default the
                command reads whatever stdin the test function has.

        Returns:
            int: 0, or with ``-f`` the number of failed channels.

        Raises:
            UsageError: If the invocation itself is malformed.
        """
        opts = parse_assert_args(args, self.settings)
        invocation = self.run(opts, input=input)
        if not opts.fail_on_error:
            return 0
        return len(invocation.failures)

    def run(self, opts: AssertOptions, input: bytes | str | None = None) -> Invocation:
        """Execute a parsed assertion, report it and record its verdict."""
        paths = self.store.allocate(self.settings.test_name)
        self.last_err_path = paths.err
        invocation = Invocation(
            description=opts.description,
            command=opts.command,
            expected=opts.expected,
            paths=paths,
            preserve_newlines=opts.preserve_newlines,
        )
        if isinstance(input, str):
            input = input.encode("utf-8")

        logger.info(f"Running test command: {opts.command}")
        invocation.returncode = run_command(opts.command, paths, opts.preserve_newlines, input=input)
        invocation.failures = evaluate(invocation)

        self._report_ignored(invocation)
        self._report_failures(invocation)
        self.accounting.record(invocation.description, invocation.passed)
        if invocation.passed:
            logger.info(f"Assertion passed: {invocation.description}")
        else:
            logger.info(
                f"Assertion failed: {invocation.description} "
                f"({', '.join(s.label for s, _ in invocation.failures)})"
            )
        return invocation

    def _report_ignored(self, invocation: Invocation) -> None:
        for stream in (StreamName.OUT, StreamName.ERR):
            if invocation.expected[stream].mode != CompareMode.IGNORE:
                continue
            path = invocation.paths.path_for(stream)
            size = len(_read(path))
            if size:
                self.note(f"Ignored {stream.label} ({size} bytes). See: '{path}'")

    def _report_failures(self, invocation: Invocation) -> None:
        details: list[str] = []
        for stream, message in invocation.failures:
            if stream == StreamName.RET:
                self.note(message)
                path = invocation.paths.err
                if _read(path):
                    details.append(path)
                continue
            path = invocation.paths.path_for(stream)
            self.note("")
            self.note(f"Unexpected {stream.label}:")
            self.note("----------", level=1)
            self.note(message, level=1)
            self.note("----------", level=1)
            self.note(f"[See: '{path}']", level=1)
            self.note("")
            details.append(path)
        for path in dict.fromkeys(details):
            print(f"{DETAILS_PREFIX}{path}", file=sys.stderr, flush=True)
