"""Command-line interface for cmdprove.

This module provides the CLI entry point. It handles argument parsing,
configuration from the environment (and an optional ``.env`` file), and
driver setup.

The CLI supports three commands: 'run' executes test scripts, 'init'
writes a starter test script, and 'help' prints the test-script API
documentation.
"""
import argparse
import inspect
import logging
import os
import sys

import dotenv

from cmdprove.assertion.primitive import Tester
from cmdprove.core.config import Settings
from cmdprove.core.domain import ExitCode, HarnessError, UsageError
from cmdprove.driver.driver import Driver, parse_targets

logger = logging.getLogger("cmdprove.cli")

EXAMPLE_TEMPLATE = '''\
"""cmdprove test script.

Register test functions with @suite.test; each one receives a Tester.
Run the script:  cmdprove run test_example.py
Run one test:    cmdprove run test_example.py::test_echo
"""

from cmdprove import Suite

suite = Suite()


@suite.test
def test_echo(t):
    t.describe("echo prints its arguments")
    t.assert_cmd("prints hello", "-o", "hello", "--", "echo", "hello")


@suite.test
def test_exit_status(t):
    t.assert_cmd("false fails", "-r", "1", "--", "false")
    t.assert_cmd("ls reports missing files", "-rp", "+([0-9])", "-ei", "--", "ls", "/nonexistent")


# --- Nested groups ---
#
# @suite.test
# def test_grouped(t):
#     with t.subtest("patterns"):
#         t.assert_cmd("digits", "-op", "+([0-9])", "--", "date", "+%s")
'''

HELP_TOPICS = {
    "assert": Tester.assert_cmd,
    "note": Tester.note,
    "describe": Tester.describe,
    "subtest": Tester.subtest,
}


def api_help(topic: str | None = None) -> str:
    """Return help text for one API function, or the list of topics.

    Raises:
        UsageError: If ``topic`` is unknown.
    """
    if topic is None:
        lines = ["Test script API (cmdprove help TOPIC):", ""]
        for name, fn in HELP_TOPICS.items():
            summary = (inspect.getdoc(fn) or "").splitlines()[0]
            lines.append(f"  {name:<10} {summary}")
        return "\n".join(lines)
    try:
        fn = HELP_TOPICS[topic]
    except KeyError:
        raise UsageError(f"No help for '{topic}'. Topics: {', '.join(HELP_TOPICS)}")
    return inspect.getdoc(fn) or ""


def close_stdin() -> None:
    """Point fd 0 at the null device; test scripts must not read our stdin."""
    devnull = os.open(os.devnull, os.O_RDONLY)
    os.dup2(devnull, 0)
    os.close(devnull)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cmdprove")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="run test scripts")
    run_parser.add_argument("--out-dir", default=None, help="directory for capture artifacts (TEST_OUT_DIR)")
    run_parser.add_argument("--pattern", default=None, help="test function name pattern (TEST_FUNC_PATTERN)")
    run_parser.add_argument("--name", default=None, help="base name of capture artifacts (TEST_NAME)")
    run_parser.add_argument("--debug", action="store_true", help="print debug messages (TEST_DEBUG)")
    run_parser.add_argument("targets", nargs="*", metavar="SCRIPT[::TEST]")

    init_parser = subparsers.add_parser("init", help="write a starter test script")
    init_parser.add_argument("path", nargs="?", default=".")

    help_parser = subparsers.add_parser("help", help="show test-script API help")
    help_parser.add_argument("topic", nargs="?", default=None)
    return parser


def main() -> None:
    """Main entry point for the cmdprove CLI.

    Commands:
        run: Execute test scripts with the following options:
            --out-dir: Directory for capture artifacts and logs
                (default: $TEST_OUT_DIR or a new temporary directory)
            --pattern: Glob for test function names (default: test_*)
            --name: Base name for capture artifacts (default: test)
            --debug: Print debug messages on stderr
            targets: Test scripts; SCRIPT::TEST runs only TEST from SCRIPT
                (repeatable)

        init: Write test_example.py into PATH (default: current directory).

        help: Print help for a test-script API function.

    Raises:
        SystemExit: 0 when every script passed, 1 when tests failed, 2 for
            usage errors, 3 when the harness itself failed.

    Examples:
        cmdprove run tests/test_cli.py
        cmdprove run --out-dir build/out tests/*.py
        cmdprove run tests/test_cli.py::test_version
        cmdprove help assert
    """
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(ExitCode.SUCCESS)

    logger.debug(f"CLI args parsed: command={args.command}")

    if args.command == "run":
        dotenv.load_dotenv()
        settings = Settings.from_env()
        updates = {}
        if args.out_dir is not None:
            updates["out_dir"] = args.out_dir
        if args.pattern is not None:
            updates["func_pattern"] = args.pattern
        if args.name is not None:
            updates["test_name"] = args.name
        if args.debug:
            updates["debug"] = True
        settings = settings.model_copy(update=updates)

        try:
            scripts, include = parse_targets(args.targets)
            if not scripts:
                raise UsageError("No tests given. Pass '--help' to see usage.")
        except UsageError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(ExitCode.USAGE)

        driver = Driver(settings)
        close_stdin()
        try:
            rc = driver.run_all(scripts, include)
        except HarnessError as e:
            logger.error(str(e))
            print(f"TEST ERROR: {e}", file=sys.stderr)
            sys.exit(ExitCode.ABORTED)
        sys.exit(rc)

    elif args.command == "init":
        path = os.path.realpath(args.path)
        target = os.path.join(path, "test_example.py")
        if os.path.exists(target):
            print(f"Error: test_example.py already exists in {path}", file=sys.stderr)
            sys.exit(ExitCode.FAILURE)
        try:
            with open(target, "w") as f:
                f.write(EXAMPLE_TEMPLATE)
        except FileNotFoundError:
            print(f"Error: directory does not exist: {path}", file=sys.stderr)
            sys.exit(ExitCode.FAILURE)
        except PermissionError:
            print(f"Error: no write permission for {path}", file=sys.stderr)
            sys.exit(ExitCode.FAILURE)
        print(f"Created test_example.py in {path}")
        print()
        print("Run it:")
        print("  cmdprove run test_example.py")
        print()
        print("Environment variables:")
        print("  TEST_OUT_DIR       Directory for capture artifacts (default: temporary)")
        print("  TEST_NAME          Base name for capture artifacts (default: test)")
        print("  TEST_FUNC_PATTERN  Test function name pattern (default: test_*)")
        print("  TEST_DEBUG         Print debug messages when set")
        print("  TEST_IGNORE_OUT    Ignore stdout by default (also TEST_IGNORE_ERR, TEST_IGNORE_RET)")

    elif args.command == "help":
        try:
            print(api_help(args.topic))
        except UsageError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(ExitCode.USAGE)


if __name__ == "__main__":
    main()
