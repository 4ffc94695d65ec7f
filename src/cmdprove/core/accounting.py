"""Nested pass/fail accounting and the indented test report.

The Accounting object is an explicit stack of Level frames. A root frame
is always present and holds the script-level totals; every named grouping
(a test function, or a subtest opened from inside one) pushes a frame on
top of it. Leaving a grouping pops its frame and folds its verdict into the
parent as a single ``ok``/``not ok`` line, so failures bubble up through
every enclosing level.

Report format (two spaces of indentation per depth)::

    # Subtest 1 - test_echo
      ok 1 - prints hello
      # 1 PASSED, 0 FAILED
    ok 1 - test_echo
"""
from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass

from cmdprove.core.domain import AccountingError, Channel
from cmdprove.helpers.text import prefix_lines, repeat_string

logger = logging.getLogger("cmdprove.core.accounting")

INDENT = "  "


@dataclass
class Level:
    """One frame of the accounting stack.

    Attributes:
        ordinal: 1-based position of this level within its parent.
        name: Name of the grouping; empty for the root frame.
        index: Number of results recorded so far at this level.
        passed: Number of passing results.
        failed: Number of failing results.
    """

    ordinal: int = 0
    name: str = ""
    index: int = 0
    passed: int = 0
    failed: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0


class Accounting:
    """Stack of nested pass/fail counters that renders the report.

    Attributes:
        channel: The Channel receiving report lines.
    """

    def __init__(self, channel: Channel) -> None:
        self.channel = channel
        self._stack: list[Level] = [Level()]

    @property
    def depth(self) -> int:
        """Number of open groupings (0 when only the root frame is left)."""
        return len(self._stack) - 1

    @property
    def current(self) -> Level:
        return self._stack[-1]

    @property
    def totals(self) -> Level:
        """The root frame, holding the script-level counts."""
        return self._stack[0]

    def print_indent(self, text: str) -> None:
        """Write ``text`` to the channel indented by the current depth."""
        for line in prefix_lines(repeat_string(INDENT, self.depth), text):
            self.channel.write_line(line)

    def note(self, text: str, level: int = 0) -> None:
        """Write a ``#`` comment, optionally indented ``level`` extra steps."""
        self.print_indent("\n".join(prefix_lines("# " + repeat_string(INDENT, level), text)))

    def enter(self, name: str) -> Level:
        """Open a nested grouping.

        Prints the ``Subtest <k> - <name>`` banner at the parent's depth,
        then pushes a fresh frame.

        Args:
            name: Name of the grouping.

        Returns:
            Level: The new top frame.
        """
        ordinal = self.current.index + 1
        label = f" - {name}" if name else ""
        self.note(f"Subtest {ordinal}{label}")
        level = Level(ordinal=ordinal, name=name)
        self._stack.append(level)
        logger.debug(f"Entered level {self.depth}: {name}")
        return level

    def record(self, name: str, passed: bool) -> None:
        """Record one result in the current frame and print its line.

        Args:
            name: Description of the result.
            passed: Whether it passed.
        """
        level = self.current
        level.index += 1
        if passed:
            level.passed += 1
        else:
            level.failed += 1
        label = f" - {name}" if name else ""
        self.print_indent(f"{'ok' if passed else 'not ok'} {level.index}{label}")

    def exit(self) -> bool:
        """Close the innermost grouping and fold its verdict into the parent.

        Returns:
            bool: True if the closed grouping had no failures.

        Raises:
            AccountingError: If no grouping is open (stack underflow).
        """
        if self.depth == 0:
            logger.error("Subtest stack underflow")
            raise AccountingError("Subtest stack underflow")
        level = self.current
        self.note(f"{level.passed} PASSED, {level.failed} FAILED")
        self._stack.pop()
        logger.debug(f"Left level {self.depth + 1}: {level.name} ({level.passed} passed, {level.failed} failed)")
        self.record(level.name, level.ok)
        self.print_indent("")
        return level.ok

    @contextmanager
    def level(self, name: str) -> Generator[Level, None, None]:
        """Context manager pairing ``enter`` with a guaranteed ``exit``.

        The frame is closed on every exit path, including exceptions, so
        the stack never leaks frames.

        Example:
            >>> with accounting.level("group"):
            ...     accounting.record("step", True)
        """
        level = self.enter(name)
        try:
            yield level
        finally:
            self.exit()
