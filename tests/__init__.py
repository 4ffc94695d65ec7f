"""Test suite for cmdprove.

Unit tests for the comparator, capture store, accounting stack and assertion
primitive, plus end-to-end runs of test scripts through the driver and CLI.
Commands under test are real programs (echo, printf, sh); I/O is replaced at
the report channel and, where needed, at the subprocess boundary.
"""
