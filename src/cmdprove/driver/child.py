"""Entry point of the isolated child process that runs one test script.

The driver starts ``python -m cmdprove.driver.child SCRIPT`` with an
explicit environment. This module loads the script, runs its registered
tests and maps the outcome to an exit code:

- 0: every test passed
- 1: some tests failed
- 3: the script could not be loaded, misused the API, broke an internal
  invariant, exited early (``sys.exit()`` or an interrupt), or named tests
  in the inclusion list that do not exist
"""
from __future__ import annotations

import importlib.util
import logging
import os
import sys
import traceback

from cmdprove.assertion.primitive import DETAILS_PREFIX
from cmdprove.channels.cli import CliChannel
from cmdprove.core.config import Settings, configure_logging
from cmdprove.core.domain import CmdproveError, ExitCode, UsageError
from cmdprove.core.runner import ScriptRunner
from cmdprove.core.suite import Suite

logger = logging.getLogger("cmdprove.driver.child")


def load_suite(path: str) -> Suite:
    """Dynamically load a test script and return its ``suite``.

    The script's directory is put first on ``sys.path`` so it can import
    helper modules that sit next to it.

    Args:
        path: File path of the test script.

    Returns:
        Suite: The script's ``suite`` attribute.

    Raises:
        FileNotFoundError: If the module spec cannot be created.
        UsageError: If the script has no ``suite`` Suite instance.
    """
    script_dir = os.path.dirname(os.path.abspath(path))
    if script_dir not in sys.path:
        sys.path.insert(0, script_dir)
    module_name = os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise FileNotFoundError(path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    suite = getattr(module, "suite", None)
    if not isinstance(suite, Suite):
        raise UsageError(f"{path} has no 'suite' attribute (expected a cmdprove.Suite)")
    return suite


def _abort(message: str, last_err_path: str | None) -> int:
    print(message, file=sys.stderr, flush=True)
    if last_err_path:
        print(f"{DETAILS_PREFIX}{last_err_path}", file=sys.stderr, flush=True)
    return ExitCode.ABORTED


def run(script_path: str, settings: Settings, include: list[str]) -> int:
    """Load and run one script; return its exit code."""
    runner: ScriptRunner | None = None
    try:
        runner = ScriptRunner(script_path, settings, CliChannel(), include)
        suite = load_suite(script_path)
        result = runner.run(suite)
    except CmdproveError as e:
        logger.error(f"Test script aborted: {type(e).__name__}: {e}")
        return _abort(f"TEST ERROR: {e}", runner.tester.last_err_path if runner else None)
    except Exception as e:
        logger.error(f"Test script crashed: {type(e).__name__}: {e}")
        traceback.print_exc()
        return _abort("ERROR: Test script execution failed.", runner.tester.last_err_path if runner else None)
    except (SystemExit, KeyboardInterrupt) as e:
        # An early exit must never be mistaken for the script's own verdict.
        logger.error(f"Test script exited early: {type(e).__name__}: {e}")
        return _abort("ERROR: Test script execution failed.", runner.tester.last_err_path if runner else None)

    for name in result.missing:
        print(
            f"TEST ERROR: '{name}': Subtest in inclusion list not found in script: '{script_path}'",
            file=sys.stderr,
            flush=True,
        )
    if result.missing:
        return ExitCode.ABORTED
    return ExitCode.FAILURE if result.failed else ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: python -m cmdprove.driver.child SCRIPT", file=sys.stderr)
        return ExitCode.USAGE
    script_path = argv[0]
    settings = Settings.from_env()
    stem = os.path.splitext(os.path.basename(script_path))[0]
    configure_logging(settings, log_name=f"{settings.run_id}-{stem}.log")
    include = os.environ.get("TEST_INCLUDE_SUBTESTS", "").split()
    logger.info(f"Child started for {script_path}")
    return int(run(script_path, settings, include))


if __name__ == "__main__":
    sys.exit(main())
