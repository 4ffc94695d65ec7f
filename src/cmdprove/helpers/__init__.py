"""Helper utilities for cmdprove.

Exports:
    prefix_lines: Prefix every line of a text block.
    repeat_string: Repeat a string a number of times.
    decode: Lenient UTF-8 decoding of captured output.
"""

from cmdprove.helpers.text import decode, prefix_lines, repeat_string

__all__ = ["decode", "prefix_lines", "repeat_string"]
