"""Tests for assert_cmd argument parsing."""

import pytest

from cmdprove.assertion.options import parse_assert_args
from cmdprove.core.config import Settings
from cmdprove.core.domain import CompareMode, StreamName, UsageError, ValueSource


class TestParseAssertArgs:
    def test_description_and_command(self):
        """Test the minimal form: description, separator, command."""
        opts = parse_assert_args(["lists files", "--", "ls", "-l"])
        assert opts.description == "lists files"
        assert opts.command == ["ls", "-l"]
        assert opts.fail_on_error is False
        assert opts.preserve_newlines is False

    def test_defaults_expect_silence_and_success(self):
        """Test that unmentioned channels expect empty output and status 0."""
        opts = parse_assert_args(["d", "--", "true"])
        assert opts.expected[StreamName.OUT].mode == CompareMode.EXACT
        assert opts.expected[StreamName.OUT].value == b""
        assert opts.expected[StreamName.ERR].value == b""
        assert opts.expected[StreamName.RET].value == b"0"
        assert opts.expected[StreamName.RET].source == ValueSource.DEFAULT

    def test_value_options(self):
        """Test literal and pattern expectations for each channel."""
        opts = parse_assert_args(["d", "-o", "out", "-ep", "*warn*", "-r", "2", "--", "cmd"])
        assert opts.expected[StreamName.OUT].value == b"out"
        assert opts.expected[StreamName.OUT].source == ValueSource.LITERAL
        assert opts.expected[StreamName.ERR].mode == CompareMode.PATTERN
        assert opts.expected[StreamName.ERR].value == b"*warn*"
        assert opts.expected[StreamName.RET].value == b"2"

    def test_ignore_options(self):
        """Test that -oi, -ei and -ri ignore their channels."""
        opts = parse_assert_args(["d", "-oi", "-ei", "-ri", "--", "cmd"])
        assert all(e.mode == CompareMode.IGNORE for e in opts.expected.values())

    def test_flags_apply_to_every_channel(self):
        """Test that -p marks every expectation as newline-preserving."""
        opts = parse_assert_args(["d", "-p", "-f", "-o", "x", "--", "cmd"])
        assert opts.preserve_newlines is True
        assert opts.fail_on_error is True
        assert all(e.preserve_newlines for e in opts.expected.values())

    def test_explicit_description_option(self):
        """Test that -d supplies the description when no positional one is given."""
        opts = parse_assert_args(["-d", "from option", "--", "cmd"])
        assert opts.description == "from option"

    def test_command_may_contain_dashes(self):
        """Test that everything after '--' belongs to the command."""
        opts = parse_assert_args(["d", "--", "grep", "-o", "--", "x"])
        assert opts.command == ["grep", "-o", "--", "x"]

    def test_expectation_from_file(self, tmp_path):
        """Test that -O reads the expected stdout from a file as bytes."""
        master = tmp_path / "expected.txt"
        master.write_bytes(b"line one\nline two\n")
        opts = parse_assert_args(["d", "-O", str(master), "--", "cmd"])
        expected = opts.expected[StreamName.OUT]
        assert expected.value == b"line one\nline two\n"
        assert expected.source == ValueSource.FILE
        assert expected.path == str(master)

    def test_settings_ignore_defaults(self):
        """Test that Settings can make a channel ignored by default."""
        opts = parse_assert_args(["d", "--", "cmd"], Settings(ignore_err=True))
        assert opts.expected[StreamName.ERR].mode == CompareMode.IGNORE
        assert opts.expected[StreamName.OUT].mode == CompareMode.EXACT

    def test_explicit_option_overrides_ignore_default(self):
        """Test that -e still checks stderr when it is ignored by default."""
        opts = parse_assert_args(["d", "-e", "oops", "--", "cmd"], Settings(ignore_err=True))
        assert opts.expected[StreamName.ERR].mode == CompareMode.EXACT


class TestUsageErrors:
    @pytest.mark.parametrize("args,message", [
        (["only one"], "At least two arguments"),
        (["d", "-o"], "Missing value for option: '-o'"),
        (["d", "-x", "--", "cmd"], "Invalid option for 'assert_cmd()': '-x'"),
        (["d", "stray", "--", "cmd"], "Invalid argument given to the assert function: 'stray'"),
        (["d", "-o", "x"], "Please specify a command to test."),
        (["d", "--"], "Please specify a command to test."),
        (["-o", "x", "--", "cmd"], "Please specify a description for the test case."),
    ])
    def test_malformed_invocations(self, args, message):
        """Test that each malformed argument list raises a UsageError."""
        with pytest.raises(UsageError) as excinfo:
            parse_assert_args(args)
        assert message in str(excinfo.value)

    def test_unreadable_expectation_file(self, tmp_path):
        """Test that a missing expectation file is a usage error."""
        missing = str(tmp_path / "missing.txt")
        with pytest.raises(UsageError, match="Failed to read masterfile"):
            parse_assert_args(["d", "-E", missing, "--", "cmd"])
