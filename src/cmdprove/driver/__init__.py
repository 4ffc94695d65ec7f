"""Test-run driver for cmdprove.

The driver runs each test script in an isolated child process
(``cmdprove.driver.child``), shows the child's output live, keeps a side
copy of its stderr and aggregates script results into an exit code.

Exports:
    Driver: Runs scripts and replays error details for failing ones.
    StderrTee: Fan-out of a pipe into a live stream and a bounded buffer.
    parse_targets: Split SCRIPT::TEST command-line targets.
    run_all: Run a list of scripts with a fresh Driver.
"""

from cmdprove.driver.driver import Driver, parse_targets, run_all
from cmdprove.driver.tee import StderrTee

__all__ = ["Driver", "StderrTee", "parse_targets", "run_all"]
