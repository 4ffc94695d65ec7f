"""Shared pytest fixtures and test utilities.

This module provides test doubles and factory fixtures for testing cmdprove
assertions and script runs without writing to the real stdout.
"""

import logging
import os
import textwrap

import pytest

from cmdprove.assertion.primitive import Tester
from cmdprove.capture.store import CaptureStore
from cmdprove.core.accounting import Accounting
from cmdprove.core.config import Settings


class TestChannel:
    """In-memory test double for report channels.

    Captures report lines without performing I/O, enabling verification of
    the accounting output in tests.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write_line(self, line: str) -> None:
        """Capture one report line.

        Args:
            line: Report line without trailing newline.
        """
        self.lines.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@pytest.fixture
def channel():
    """Provide a fresh in-memory report channel."""
    return TestChannel()


@pytest.fixture
def out_dir(tmp_path):
    """Provide an artifact directory inside the test's temporary directory."""
    return str(tmp_path / "out")


@pytest.fixture
def settings(out_dir):
    """Provide Settings pointing at the temporary artifact directory."""
    return Settings(out_dir=out_dir, run_id="0badc0de")


@pytest.fixture
def accounting(channel):
    """Provide an Accounting stack writing to the in-memory channel."""
    return Accounting(channel)


@pytest.fixture
def tester(accounting, settings):
    """Provide a Tester bound to the accounting stack and artifact directory."""
    return Tester(accounting, settings, CaptureStore(settings.out_dir))


@pytest.fixture
def tester_factory(accounting, out_dir):
    """Factory fixture for Testers with custom settings.

    Returns:
        Callable: Function accepting Settings field overrides and returning a
        Tester that shares the test's accounting stack.
    """
    def _create(**overrides):
        settings = Settings(out_dir=out_dir, run_id="0badc0de", **overrides)
        return Tester(accounting, settings, CaptureStore(out_dir))

    return _create


@pytest.fixture
def write_script(tmp_path):
    """Factory fixture writing a test script into the temporary directory.

    Returns:
        Callable: Function taking a file name and source text (dedented) and
        returning the script's path.
    """
    def _write(name: str, source: str) -> str:
        path = os.path.join(str(tmp_path), name)
        with open(path, "w") as f:
            f.write(textwrap.dedent(source))
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers that a test attached to the ``cmdprove`` logger."""
    yield
    logger = logging.getLogger("cmdprove")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
