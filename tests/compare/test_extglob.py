"""Tests for the extended-glob compiler."""

import shutil
import subprocess

import pytest

from cmdprove.compare.extglob import match, translate
from cmdprove.core.domain import PatternError


class TestBasicWildcards:
    @pytest.mark.parametrize("pattern,subject,expected", [
        ("*", "", True),
        ("*", "a\nb", True),
        ("?", "a", True),
        ("?", "ab", False),
        ("a?c", "a/c", True),
        ("hello", "hello", True),
        ("hello", "Hello", False),
    ])
    def test_star_and_question_mark(self, pattern, subject, expected):
        """Test '*' and '?' against whole subjects."""
        assert match(pattern, subject) is expected

    def test_regex_metacharacters_are_literal(self):
        """Test that '.', '+' and '$' outside groups are plain characters."""
        assert match("a.b+c$", "a.b+c$")
        assert not match("a.b", "axb")

    def test_parentheses_without_operator_are_literal(self):
        """Test that '(' not preceded by an operator is an ordinary character."""
        assert match("(a|b)", "(a|b)")

    def test_backslash_escapes_next_character(self):
        """Test that '\\*' matches only a literal star."""
        assert match("\\*", "*")
        assert not match("\\*", "x")

    def test_trailing_backslash_raises(self):
        """Test that a lone trailing backslash is rejected."""
        with pytest.raises(PatternError, match="Trailing backslash"):
            match("abc\\", "abc")


class TestBrackets:
    @pytest.mark.parametrize("pattern,subject,expected", [
        ("[abc]", "b", True),
        ("[abc]", "d", False),
        ("[a-c]x", "cx", True),
        ("[!a]", "a", False),
        ("[!a]", "b", True),
        ("[^a]", "b", True),
        ("[]a]", "]", True),
        ("[[:digit:]]", "7", True),
        ("[[:digit:]]", "x", False),
        ("[[:upper:][:digit:]]", "Q", True),
    ])
    def test_bracket_expressions(self, pattern, subject, expected):
        """Test bracket members, ranges, negation and POSIX classes."""
        assert match(pattern, subject) is expected

    def test_unterminated_bracket_is_literal(self):
        """Test that '[' without a closing ']' matches itself."""
        assert match("[abc", "[abc")


class TestGroups:
    def test_translate_one_or_more_group(self):
        """Test the regex produced for +([0-9])."""
        assert translate("+([0-9])") == "(?:[0-9])+"

    @pytest.mark.parametrize("pattern,subject,expected", [
        ("+([0-9])", "12345", True),
        ("+([0-9])", "", False),
        ("+([0-9])", "12a45", False),
        ("*(ab)", "", True),
        ("*(ab)", "abab", True),
        ("*(ab)", "aba", False),
        ("?(a)b", "b", True),
        ("?(a)b", "ab", True),
        ("?(a)b", "aab", False),
        ("@(foo|bar)", "bar", True),
        ("@(foo|bar)", "foobar", False),
        ("v+([0-9]).+([0-9])", "v1.23", True),
    ])
    def test_repetition_operators(self, pattern, subject, expected):
        """Test the +, *, ? and @ group operators."""
        assert match(pattern, subject) is expected

    @pytest.mark.parametrize("pattern,subject,expected", [
        ("!(foo)", "foo", False),
        ("!(foo)", "bar", True),
        ("!(foo)", "foobar", True),
        ("!(foo)", "", True),
        ("!(foo|bar)", "bar", False),
        ("!(foo).txt", "bar.txt", True),
        ("!(foo).txt", "foo.txt", False),
        ("!(foo)*", "foox", True),
        ("!(foo)*", "foo", True),
        ("*!(a)", "a", True),
        ("a!(b)c", "abc", False),
        ("a!(b)c", "abbc", True),
        ("a!(b)c", "ac", True),
        ("!(*.c)", "x.c", False),
        ("!(*.c)", "x.h", True),
    ])
    def test_negation(self, pattern, subject, expected):
        """Test that !(p) consumes any run of characters p does not match in full, the empty run included."""
        assert match(pattern, subject) is expected

    def test_negation_has_no_regex_form(self):
        """Test that translate() refuses a pattern containing a negated group."""
        with pytest.raises(PatternError, match="no regular expression form"):
            translate("a!(b)c")

    def test_nested_groups(self):
        """Test a group inside another group."""
        assert match("@(a+(b)|c)", "abbb")
        assert match("@(a+(b)|c)", "c")
        assert not match("@(a+(b)|c)", "a")

    def test_unterminated_group_raises(self):
        """Test that a group without ')' is rejected."""
        with pytest.raises(PatternError, match="Unterminated group"):
            translate("@(foo|bar")


def bash_match(pattern, subject):
    """Return bash's verdict for ``[[ subject == pattern ]]`` with extglob on."""
    script = "shopt -s extglob\n[[ $1 == $2 ]]"
    return subprocess.run(["bash", "-c", script, "bash", subject, pattern]).returncode == 0


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not installed")
class TestAgreesWithBash:
    @pytest.mark.parametrize("pattern,subject", [
        ("!(foo)", "foo"),
        ("!(foo)", "bar"),
        ("!(foo)", "foobar"),
        ("!(foo)*", "foox"),
        ("!(foo)*", "foo"),
        ("*!(a)", "a"),
        ("a!(b)c", "abc"),
        ("a!(b)c", "abbc"),
        ("a!(b)c", "ac"),
        ("!(foo).txt", "foo.txt"),
        ("!(foo).txt", "bar.txt"),
        ("!(*.c)", "x.c"),
        ("!(*.c)", "x.h"),
        ("+([0-9])", "12a45"),
        ("+([0-9])", "12345"),
        ("@(foo|bar)", "bar"),
        ("?(a)b", "aab"),
        ("*(ab)", "abab"),
    ])
    def test_same_verdict_as_bash(self, pattern, subject):
        """Test that match() gives the verdict bash's [[ == ]] gives."""
        assert match(pattern, subject) is bash_match(pattern, subject)
