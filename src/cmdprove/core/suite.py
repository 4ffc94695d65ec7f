"""Registry of test functions for one test script.

A test script creates a Suite named ``suite`` and registers its test
functions with the ``@suite.test`` decorator (or ``suite.register(fn)``).
Discovery then keeps only the functions whose name matches the configured
pattern and whose code lives in the script file itself, in declaration
order.

Typical usage::

    from cmdprove import Suite

    suite = Suite()

    @suite.test
    def test_echo(t):
        t.assert_cmd("prints hello", "-o", "hello", "--", "echo", "hello")
"""
from __future__ import annotations

import inspect
import logging
import os
from typing import Any, Callable

from cmdprove.compare import extglob

logger = logging.getLogger("cmdprove.core.suite")

TestFunction = Callable[..., Any]


def _source_file(fn: TestFunction) -> str | None:
    code = getattr(inspect.unwrap(fn), "__code__", None)
    if code is None:
        return None
    return os.path.realpath(code.co_filename)


def _source_line(fn: TestFunction) -> int:
    code = getattr(inspect.unwrap(fn), "__code__", None)
    return code.co_firstlineno if code is not None else 0


class Suite:
    """Explicit registry of the test functions declared by a script.

    Attributes:
        tests: Mapping of test names to their functions, in registration
            order.
    """

    def __init__(self) -> None:
        self.tests: dict[str, TestFunction] = {}

    def register(self, fn: TestFunction, name: str | None = None) -> TestFunction:
        """Register ``fn`` as a test function.

        Args:
            fn: The test function. It receives a Tester as its only argument.
            name: Registry name; defaults to ``fn.__name__``.

        Returns:
            The function, unchanged.
        """
        name = name or fn.__name__
        self.tests[name] = fn
        logger.debug(f"Test function registered: {name}")
        return fn

    def test(self, fn: TestFunction) -> TestFunction:
        """Decorator form of :meth:`register`."""
        return self.register(fn)

    def discover(self, source_path: str, pattern: str = "test_*") -> list[tuple[str, TestFunction]]:
        """List the tests physically defined in ``source_path``.

        Functions registered from a shared helper module are skipped, as
        are names that do not match ``pattern`` (an extended glob).

        Args:
            source_path: Path of the test script.
            pattern: Name pattern, ``test_*`` by default.

        Returns:
            list: (name, function) pairs sorted by declaration line.
        """
        script = os.path.realpath(source_path)
        found = []
        for name, fn in self.tests.items():
            if not extglob.match(pattern, name):
                logger.debug(f"Skipping {name}: does not match '{pattern}'")
                continue
            if _source_file(fn) != script:
                logger.debug(f"Skipping {name}: not defined in {source_path}")
                continue
            found.append((name, fn))
        found.sort(key=lambda item: _source_line(item[1]))
        return found
