"""Argument parsing for the assertion surface.

``assert_cmd`` takes a shell-like argument list::

    [-d DESC] DESC [options] -- COMMAND...

      -o VALUE   -op PATTERN   -O FILE    expected stdout
      -e VALUE   -ep PATTERN   -E FILE    expected stderr
      -r VALUE   -rp PATTERN   -R FILE    expected exit status
      -oi        -ei           -ri        ignore stdout / stderr / exit status
      -p                                  preserve trailing newlines
      -f                                  return the failed-channel count
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel

from cmdprove.core.config import Settings
from cmdprove.core.domain import CompareMode, StreamName, UsageError, ValueSource

logger = logging.getLogger("cmdprove.assertion.options")

# option -> (channel, mode, source)
VALUE_OPTIONS: dict[str, tuple[StreamName, CompareMode, ValueSource]] = {
    "-o": (StreamName.OUT, CompareMode.EXACT, ValueSource.LITERAL),
    "-op": (StreamName.OUT, CompareMode.PATTERN, ValueSource.LITERAL),
    "-O": (StreamName.OUT, CompareMode.EXACT, ValueSource.FILE),
    "-e": (StreamName.ERR, CompareMode.EXACT, ValueSource.LITERAL),
    "-ep": (StreamName.ERR, CompareMode.PATTERN, ValueSource.LITERAL),
    "-E": (StreamName.ERR, CompareMode.EXACT, ValueSource.FILE),
    "-r": (StreamName.RET, CompareMode.EXACT, ValueSource.LITERAL),
    "-rp": (StreamName.RET, CompareMode.PATTERN, ValueSource.LITERAL),
    "-R": (StreamName.RET, CompareMode.EXACT, ValueSource.FILE),
}

IGNORE_OPTIONS: dict[str, StreamName] = {
    "-oi": StreamName.OUT,
    "-ei": StreamName.ERR,
    "-ri": StreamName.RET,
}


class ExpectedValue(BaseModel):
    """Expectation for one channel.

    Attributes:
        mode: How the captured content is compared.
        source: Where ``value`` came from.
        value: Expected bytes (or the pattern, in PATTERN mode).
        preserve_newlines: Whether trailing newlines are significant.
        path: Expectation file, when ``source`` is FILE.
    """

    mode: CompareMode = CompareMode.EXACT
    source: ValueSource = ValueSource.DEFAULT
    value: bytes = b""
    preserve_newlines: bool = False
    path: str | None = None


def default_expectations(settings: Settings) -> dict[StreamName, ExpectedValue]:
    """Expectations used for channels an assertion does not mention."""
    ignored = {
        StreamName.OUT: settings.ignore_out,
        StreamName.ERR: settings.ignore_err,
        StreamName.RET: settings.ignore_ret,
    }
    return {
        stream: ExpectedValue(
            mode=CompareMode.IGNORE if ignored[stream] else CompareMode.EXACT,
            value=b"0" if stream == StreamName.RET else b"",
        )
        for stream in StreamName
    }


@dataclass
class AssertOptions:
    """Parsed form of an ``assert_cmd`` argument list."""

    description: str = ""
    command: list[str] = field(default_factory=list)
    expected: dict[StreamName, ExpectedValue] = field(default_factory=dict)
    preserve_newlines: bool = False
    fail_on_error: bool = False


def parse_assert_args(args: list[str] | tuple[str, ...], settings: Settings | None = None) -> AssertOptions:
    """Parse and validate an ``assert_cmd`` argument list.

    Expectation files are read here, so the returned options are complete.

    Args:
        args: The arguments, description first and command after ``--``.
        settings: Settings providing per-channel ignore defaults.

    Returns:
        AssertOptions: The parsed options.

    Raises:
        UsageError: On any malformed invocation or unreadable expectation file.
    """
    args = [str(a) for a in args]
    logger.debug(f"Assert: {args}")
    if len(args) < 2:
        raise UsageError("At least two arguments must be provided (description, command).")

    opts = AssertOptions(expected=default_expectations(settings or Settings()))
    given: dict[StreamName, tuple[CompareMode, ValueSource, str]] = {}

    i = 0
    if not args[0].startswith("-"):
        opts.description = args[0]
        i = 1

    found_separator = False
    while i < len(args):
        arg = args[i]
        i += 1
        if arg == "--":
            opts.command = args[i:]
            found_separator = True
            break
        if arg == "-p":
            opts.preserve_newlines = True
        elif arg == "-f":
            opts.fail_on_error = True
        elif arg in IGNORE_OPTIONS:
            given[IGNORE_OPTIONS[arg]] = (CompareMode.IGNORE, ValueSource.DEFAULT, "")
        elif arg == "-d" or arg in VALUE_OPTIONS:
            if i >= len(args):
                raise UsageError(f"Missing value for option: '{arg}'")
            value = args[i]
            i += 1
            if arg == "-d":
                opts.description = value
            else:
                stream, mode, source = VALUE_OPTIONS[arg]
                given[stream] = (mode, source, value)
        elif arg.startswith("-"):
            raise UsageError(f"Invalid option for 'assert_cmd()': '{arg}'")
        else:
            raise UsageError(
                f"Invalid argument given to the assert function: '{arg}' (arg index: {i}). "
                f"Arguments were: {args}"
            )

    if not found_separator or not opts.command:
        raise UsageError("Please specify a command to test.")
    if not opts.description:
        raise UsageError("Please specify a description for the test case.")

    for stream, (mode, source, raw) in given.items():
        opts.expected[stream] = resolve_expectation(stream, mode, source, raw, opts.preserve_newlines)
    for expected in opts.expected.values():
        expected.preserve_newlines = opts.preserve_newlines

    logger.debug(f"Command to test: {opts.command}")
    return opts


def resolve_expectation(
    stream: StreamName, mode: CompareMode, source: ValueSource, raw: str, preserve_newlines: bool
) -> ExpectedValue:
    """Turn a raw option value into an ExpectedValue, reading files as needed."""
    if source == ValueSource.FILE:
        try:
            with open(raw, "rb") as f:
                value = f.read()
        except OSError as e:
            raise UsageError(f"Failed to read masterfile (type {stream.value}) '{raw}': {e}") from e
        return ExpectedValue(mode=mode, source=source, value=value, preserve_newlines=preserve_newlines, path=raw)
    return ExpectedValue(mode=mode, source=source, value=raw.encode("utf-8"), preserve_newlines=preserve_newlines)
