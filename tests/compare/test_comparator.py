"""Tests for the output comparator.

Covers the three comparison modes, the default removal of trailing
newlines and the format of mismatch reports.
"""

import pytest

from cmdprove.compare.comparator import chomp, compare, unified_diff
from cmdprove.core.domain import CompareMode, InternalError, PatternError


class TestChomp:
    def test_chomp_removes_every_trailing_newline(self):
        """Test that chomp strips all trailing newlines but keeps inner ones."""
        assert chomp(b"a\n\nb\n\n\n") == b"a\n\nb"

    def test_chomp_keeps_trailing_spaces(self):
        """Test that only newline bytes are removed."""
        assert chomp(b"a \n") == b"a "


class TestExactMode:
    def test_equal_values_match(self):
        """Test that identical bytes produce no mismatch."""
        assert compare(CompareMode.EXACT, b"hello", b"hello") is None

    def test_trailing_newline_is_ignored_by_default(self):
        """Test that 'foo\\n' matches 'foo' unless newlines are preserved."""
        assert compare(CompareMode.EXACT, b"foo", b"foo\n") is None

    def test_preserved_newline_is_significant(self):
        """Test that preserve_newlines makes 'foo\\n' differ from 'foo'."""
        result = compare(CompareMode.EXACT, b"foo", b"foo\n", preserve_newlines=True)
        assert result is not None
        assert "No newline at end of file" in result

    def test_mismatch_returns_unified_diff(self):
        """Test that a mismatch is reported as a unified diff."""
        result = compare(CompareMode.EXACT, b"world", b"hello")
        assert result.startswith("--- expected\n+++ actual")
        assert "-world" in result
        assert "+hello" in result

    def test_diff_shows_changed_line_only_once(self):
        """Test a multi-line diff keeps unchanged lines as context."""
        result = unified_diff(b"a\nb\nc\n", b"a\nx\nc\n")
        assert " a" in result
        assert "-b" in result
        assert "+x" in result


class TestPatternMode:
    @pytest.mark.parametrize("actual", [b"12345", b"0", b"12345\n"])
    def test_digit_pattern_matches(self, actual):
        """Test that +([0-9]) matches runs of digits."""
        assert compare(CompareMode.PATTERN, b"+([0-9])", actual) is None

    def test_digit_pattern_rejects_letters(self):
        """Test that +([0-9]) does not match '12a45'."""
        result = compare(CompareMode.PATTERN, b"+([0-9])", b"12a45")
        assert result == "Pattern not matched: '+([0-9])'.\nOutput was: '12a45'."

    def test_pattern_must_match_whole_output(self):
        """Test that a pattern matching only a prefix is a mismatch."""
        assert compare(CompareMode.PATTERN, b"hello", b"hello world") is not None
        assert compare(CompareMode.PATTERN, b"hello*", b"hello world") is None

    def test_star_spans_lines(self):
        """Test that '*' matches across newlines in multi-line output."""
        assert compare(CompareMode.PATTERN, b"first*last", b"first\nmiddle\nlast") is None

    def test_invalid_pattern_raises(self):
        """Test that an unterminated group raises PatternError."""
        with pytest.raises(PatternError):
            compare(CompareMode.PATTERN, b"+(abc", b"abc")


class TestIgnoreMode:
    def test_ignore_always_matches(self):
        """Test that IGNORE matches regardless of content."""
        assert compare(CompareMode.IGNORE, b"", b"anything at all") is None


def test_unknown_mode_raises_internal_error():
    """Test that an unknown comparison mode is an internal error."""
    with pytest.raises(InternalError, match="Unknown comparison mode"):
        compare("fuzzy", b"a", b"b")
