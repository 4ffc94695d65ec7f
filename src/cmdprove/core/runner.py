"""Execution of one test script's functions.

The ScriptRunner is the engine that runs inside the isolated child
process. It brings together a Suite (the registered test functions), the
Accounting stack and a Tester, and manages the lifecycle of each test:
- Discovers the script's own test functions in declaration order
- Applies the optional inclusion filter
- Runs every test inside its own accounting level
- Turns exceptions and non-zero returns into recorded failures
- Reports inclusion-filter entries that were never executed
"""
from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field

from cmdprove.assertion.primitive import Tester
from cmdprove.capture.store import CaptureStore
from cmdprove.core.accounting import Accounting
from cmdprove.core.config import Settings
from cmdprove.core.domain import Channel, CmdproveError, HarnessError
from cmdprove.core.suite import Suite, TestFunction

logger = logging.getLogger("cmdprove.core.runner")


@dataclass
class ScriptResult:
    """Outcome of running one script's test functions.

    Attributes:
        executed: Names of the test functions that ran, in order.
        failed: Names of the test functions whose level failed.
        missing: Inclusion-filter entries not found in the script.
    """

    executed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.missing


def _signals_failure(result: object) -> bool:
    if result is None or result is True:
        return False
    return result is False or bool(result)


class ScriptRunner:
    """Runs the registered tests of one script.

    Attributes:
        script_path: Path of the test script.
        settings: Run settings.
        include: Names of the tests to run; empty means all.
        accounting: The accounting stack for this script.
        tester: The Tester passed to every test function.
    """

    def __init__(
        self,
        script_path: str,
        settings: Settings,
        channel: Channel,
        include: list[str] | None = None,
        out_dir: str | None = None,
    ) -> None:
        """Initialize a runner for ``script_path``.

        Args:
            script_path: Path of the test script.
            settings: Run settings.
            channel: Channel receiving the report.
            include: Optional inclusion list of test names.
            out_dir: Artifact directory; defaults to ``settings.out_dir``.
        """
        self.script_path = script_path
        self.settings = settings
        self.include = list(include or [])
        self.accounting = Accounting(channel)
        out_dir = out_dir or settings.out_dir
        if not out_dir:
            raise HarnessError("No output directory configured for capture artifacts.")
        self.tester = Tester(self.accounting, settings, CaptureStore(out_dir))
        logger.info(f"ScriptRunner initialized: script={script_path}, include={self.include}")

    def run(self, suite: Suite) -> ScriptResult:
        """Run every selected test of ``suite``.

        Returns:
            ScriptResult: Executed, failed and missing test names.

        Raises:
            CmdproveError: Usage and internal errors propagate unchanged.
        """
        result = ScriptResult()
        tests = suite.discover(self.script_path, self.settings.func_pattern)
        logger.info(f"Discovered {len(tests)} test functions in {self.script_path}")
        wanted = dict.fromkeys(self.include, False)

        for name, fn in tests:
            if wanted:
                if name not in wanted:
                    continue
                wanted[name] = True
            result.executed.append(name)
            if not self.run_test(name, fn):
                result.failed.append(name)

        result.missing = [name for name, done in wanted.items() if not done]
        for name in result.missing:
            logger.error(f"Inclusion list entry not found: {name}")
        return result

    def run_test(self, name: str, fn: TestFunction) -> bool:
        """Run one test function inside its own accounting level.

        Returns:
            bool: True if the level passed.
        """
        logger.info(f"Test started: {name}")
        with self.accounting.level(name) as level:
            try:
                returned = fn(self.tester)
            except CmdproveError:
                raise
            except Exception as e:
                logger.error(f"Test function raised: {name} - {type(e).__name__}: {e}")
                traceback.print_exc()
                self.accounting.record(f"Exception from test function: '{name}'", False)
            else:
                if _signals_failure(returned):
                    self.accounting.record(f"Non-zero retcode from test function: '{name}'", False)
        logger.info(f"Test completed: {name} ({level.passed} passed, {level.failed} failed)")
        return level.ok
