"""CLI channel implementation for cmdprove reports.

This module provides the CliChannel class, which implements the Channel
protocol for command-line environments. Report lines go to stdout with
flush=True so they interleave correctly with the output of the commands
under test.
"""
import logging
import sys
from typing import TextIO

logger = logging.getLogger("cmdprove.channels.cli")


class CliChannel:
    """Channel adapter writing the test report to a text stream.

    Attributes:
        stream: The text stream receiving report lines. None means whatever
            ``sys.stdout`` is at write time.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the CLI channel.

        Args:
            stream: Optional stream to write to. Defaults to sys.stdout,
                looked up on every write so that redirections apply.
        """
        self.stream = stream
        logger.debug("CliChannel initialized")

    def write_line(self, line: str) -> None:
        """Print one report line and flush immediately.

        Args:
            line: Report line without trailing newline.
        """
        print(line, file=self.stream or sys.stdout, flush=True)
