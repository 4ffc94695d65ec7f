"""Tests for report text helpers."""

import pytest

from cmdprove.helpers.text import decode, prefix_lines, repeat_string


@pytest.mark.parametrize("count,expected", [(0, ""), (-1, ""), (3, "ababab")])
def test_repeat_string(count, expected):
    """Test repetition, including non-positive counts."""
    assert repeat_string("ab", count) == expected


def test_prefix_lines_multiline():
    """Test that each line gets the prefix and one trailing newline is dropped."""
    assert prefix_lines("> ", "a\nb\n") == ["> a", "> b"]


def test_prefix_lines_empty_text():
    """Test that empty text still yields one prefixed line."""
    assert prefix_lines("# ", "") == ["# "]


def test_prefix_lines_keeps_inner_blank_lines():
    """Test that blank lines inside the text are prefixed too."""
    assert prefix_lines("# ", "a\n\nb") == ["# a", "# ", "# b"]


def test_decode_replaces_invalid_bytes():
    """Test that undecodable bytes become replacement characters."""
    assert decode(b"ok \xff") == "ok \ufffd"
