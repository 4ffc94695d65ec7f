"""Output channels for cmdprove reports.

Exports:
    CliChannel: Writes report lines to stdout.
"""

from cmdprove.channels.cli import CliChannel

__all__ = ["CliChannel"]
