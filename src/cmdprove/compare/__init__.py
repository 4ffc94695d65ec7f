"""Comparison of command output against expectations.

Exports:
    compare: Compare expected and actual bytes under a CompareMode.
    chomp: Strip trailing newlines the way assertions do by default.
"""

from cmdprove.compare.comparator import chomp, compare

__all__ = ["chomp", "compare"]
