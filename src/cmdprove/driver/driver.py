"""Test-run driver: runs test scripts in isolated child processes.

Each script runs in its own Python process so that state set up by one
script (imported modules, globals, environment changes) cannot leak into
the driver or into the next script. The child's stdout goes straight to
the driver's stdout; its stderr goes through a StderrTee so it is shown
live and also retained. The two streams reach the terminal by different
routes, so a stderr line may show up slightly before or after the stdout
line written next to it; only the order within each stream is kept. When a
script fails, every ``For details, see: <path>`` line found in the retained
stderr is replayed as a delimited block holding the referenced artifact.
"""
from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
from collections.abc import Iterable, Mapping

import cmdprove
from cmdprove.assertion.primitive import DETAILS_PREFIX
from cmdprove.core.config import Settings, configure_logging
from cmdprove.core.domain import ExitCode, HarnessError, UsageError
from cmdprove.driver.tee import StderrTee

logger = logging.getLogger("cmdprove.driver")

STATUS_MESSAGES = {
    ExitCode.SUCCESS: "All tests passed in: '{script}'",
    ExitCode.FAILURE: "Some tests failed in: '{script}'",
    ExitCode.ABORTED: "Test script did not finish gracefully.",
}

TARGET_SEPARATOR = "::"


def parse_targets(targets: Iterable[str]) -> tuple[list[str], dict[str, str]]:
    """Split ``SCRIPT`` / ``SCRIPT::TEST`` arguments.

    Args:
        targets: Command-line targets.

    Returns:
        tuple: The ordered, de-duplicated script list and the inclusion
        filter mapping test names to their script.

    Example:
        >>> parse_targets(["a.py::test_x", "a.py::test_y", "b.py"])
        (['a.py', 'b.py'], {'test_x': 'a.py', 'test_y': 'a.py'})
    """
    scripts: list[str] = []
    include: dict[str, str] = {}
    for target in targets:
        script, sep, test = target.partition(TARGET_SEPARATOR)
        if sep and not test:
            raise UsageError(f"Missing test name in target: '{target}'")
        if script not in scripts:
            scripts.append(script)
        if test:
            include[test] = script
    return scripts, include


def _same_file(a: str, b: str) -> bool:
    return os.path.realpath(a) == os.path.realpath(b)


class Driver:
    """Runs test scripts and aggregates their results.

    Each Driver represents one run of the harness and includes:
    - A unique 8-character hex ID shared with every child (``run_id``)
    - An output directory for capture artifacts and log files
    - A per-run log file in that directory

    Attributes:
        id: Unique identifier for this run.
        settings: Run settings, with ``out_dir`` always set.
        live: Text stream for the live view. None means ``sys.stdout``.
    """

    def __init__(self, settings: Settings | None = None, live=None) -> None:
        """Initialize a driver.

        Creates the output directory (a fresh temporary directory when
        ``settings.out_dir`` is unset) and configures logging into it.

        Args:
            settings: Run settings. Defaults to ``Settings.from_env()``.
            live: Optional stream for the live view of child output.
        """
        settings = settings or Settings.from_env()
        self.id: str = settings.run_id
        out_dir = settings.out_dir or tempfile.mkdtemp(prefix="cmdprove.")
        os.makedirs(out_dir, exist_ok=True)
        self.settings = settings.model_copy(update={"out_dir": os.path.abspath(out_dir), "run_id": self.id})
        self.live = live
        configure_logging(self.settings)
        logger.info(f"Driver initialized: run_id={self.id}")
        logger.debug(f"Output dir: {self.settings.out_dir}")

    @property
    def out(self):
        return self.live or sys.stdout

    def child_env(self, script: str, include: list[str]) -> dict[str, str]:
        """Build the complete environment for a script's child process.

        The driver's own environment is inherited so exported configuration
        stays visible; the harness variables are then set explicitly.
        """
        env = dict(os.environ)
        env.pop("TEST_INCLUDE_SUBTESTS", None)
        env.update(self.settings.to_env())
        env["TEST_SOURCE_PATH"] = script
        env["TEST_SOURCE_DIR"] = os.path.dirname(script)
        env["PYTHONUNBUFFERED"] = "1"
        package_root = os.path.dirname(os.path.dirname(os.path.abspath(cmdprove.__file__)))
        env["PYTHONPATH"] = os.pathsep.join(p for p in [package_root, env.get("PYTHONPATH", "")] if p)
        if include:
            env["TEST_INCLUDE_SUBTESTS"] = " ".join(include)
        return env

    def run_script(self, script: str, include: Mapping[str, str] | None = None) -> int:
        """Run one test script in a child process.

        Args:
            script: Path of the test script.
            include: Inclusion filter (test name -> script). Only the
                entries that belong to ``script`` apply.

        Returns:
            int: The child's exit code (0, 1, 3 or another unexpected value).

        Raises:
            HarnessError: If the script file does not exist.
        """
        if not os.path.isfile(script):
            raise HarnessError(f"Test file not found: '{script}'.")

        subtests = [name for name, owner in (include or {}).items() if _same_file(owner, script)]
        script_path = os.path.abspath(script)
        self.out.write(f"# [RUNNING: {script}]\n")
        self.out.flush()
        logger.info(f"Running test script: {script} (include={subtests})")

        process = subprocess.Popen(
            [sys.executable, "-m", "cmdprove.driver.child", script_path],
            env=self.child_env(script_path, subtests),
            stdin=subprocess.DEVNULL,
            stdout=self.live if self.live is not None and _has_fileno(self.live) else None,
            stderr=subprocess.PIPE,
        )
        tee = StderrTee(process.stderr, live=self.live).start()
        rc = process.wait()
        tee.join()
        logger.info(f"Test script finished: {script} (retcode={rc})")

        try:
            status = ExitCode(rc)
        except ValueError:
            status = None
        if status in STATUS_MESSAGES:
            self.out.write(STATUS_MESSAGES[status].format(script=script) + "\n")
        else:
            self.out.write(f"Unknown error when executing test script (retcode: {rc}).\n")

        if rc != 0:
            self.replay_details(tee.matching(DETAILS_PREFIX))
        self.out.flush()
        return rc

    def replay_details(self, paths: list[str]) -> None:
        """Print every referenced artifact as a delimited error-detail block."""
        for path in dict.fromkeys(paths):
            try:
                with open(path, encoding="utf-8", errors="replace") as f:
                    content = f.read()
            except OSError as e:
                logger.error(f"Error file not found or not readable: '{path}': {e}")
                print(f"ERROR: Error file not found or not readable: '{path}'", file=sys.stderr, flush=True)
                continue
            self.out.write(f"-----[{path}]\n{content}\n-----\n")

    def run_all(self, scripts: list[str], include: Mapping[str, str] | None = None) -> int:
        """Run every script in order.

        Returns:
            int: ExitCode.SUCCESS if every script passed, else ExitCode.FAILURE.

        Raises:
            UsageError: If ``scripts`` is empty.
            HarnessError: If a script file does not exist.
        """
        if not scripts:
            raise UsageError("No tests given. Pass '--help' to see usage.")
        failures = 0
        for script in scripts:
            if self.run_script(script, include) != 0:
                failures += 1
        logger.info(f"Run complete: {len(scripts)} scripts, {failures} failed")
        return ExitCode.SUCCESS if failures == 0 else ExitCode.FAILURE


def _has_fileno(stream) -> bool:
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError):
        return False
    return True


def run_all(scripts: list[str], include: Mapping[str, str] | None = None, settings: Settings | None = None) -> int:
    """Convenience wrapper: run ``scripts`` with a fresh Driver."""
    return Driver(settings).run_all(scripts, include)
