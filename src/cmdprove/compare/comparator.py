"""Comparison of expected and actual channel contents.

Three modes are supported (see CompareMode): exact byte equality reported
as a unified diff, extended-glob pattern matching of the whole output, and
ignore, which always matches.
"""
import difflib
import logging

from cmdprove.compare import extglob
from cmdprove.core.domain import CompareMode, InternalError
from cmdprove.helpers.text import decode

logger = logging.getLogger("cmdprove.compare")

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def chomp(data: bytes) -> bytes:
    """Remove every trailing newline, like shell command substitution."""
    return data.rstrip(b"\n")


def _diff_lines(text: str) -> list[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith("\n"):
        lines[-1] = lines[-1] + "\n" + NO_NEWLINE_MARKER
    return lines


def unified_diff(expected: bytes, actual: bytes) -> str:
    """Render a unified diff between expected and actual contents."""
    diff = difflib.unified_diff(
        _diff_lines(decode(expected)),
        _diff_lines(decode(actual)),
        fromfile="expected",
        tofile="actual",
    )
    return "".join(diff).rstrip("\n")


def compare(mode: CompareMode, expected: bytes, actual: bytes, preserve_newlines: bool = False) -> str | None:
    """Compare ``actual`` against ``expected`` under ``mode``.

    Unless ``preserve_newlines`` is set, trailing newlines are removed from
    both values before comparing.

    Args:
        mode: The comparison mode.
        expected: Expected content, or the pattern in PATTERN mode.
        actual: Captured content.
        preserve_newlines: Keep trailing newlines significant.

    Returns:
        None when the values match, otherwise a human-readable description
        of the mismatch (a unified diff for EXACT, the pattern and the output
        for PATTERN).

    Raises:
        PatternError: If the pattern cannot be compiled.
        InternalError: If the mode is unknown.
    """
    if not preserve_newlines:
        expected = chomp(expected)
        actual = chomp(actual)

    if mode == CompareMode.IGNORE:
        return None

    if mode == CompareMode.EXACT:
        if expected == actual:
            return None
        return unified_diff(expected, actual)

    if mode == CompareMode.PATTERN:
        pattern = expected.decode("utf-8", errors="surrogateescape")
        subject = actual.decode("utf-8", errors="surrogateescape")
        if extglob.match(pattern, subject):
            return None
        logger.debug(f"Pattern {pattern!r} did not match {len(actual)} bytes of output")
        return f"Pattern not matched: '{decode(expected)}'.\nOutput was: '{decode(actual)}'."

    raise InternalError(f"Unknown comparison mode: '{mode}'.")
