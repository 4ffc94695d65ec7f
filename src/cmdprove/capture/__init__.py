"""Capture of command output into on-disk artifacts.

Exports:
    CaptureStore: Allocates unique ``.out``/``.err``/``.ret`` paths.
    CapturePaths: The three paths of one allocation.
    ChompWriter: Writer that discards newlines at end of stream.
"""

from cmdprove.capture.chomp import ChompWriter
from cmdprove.capture.store import CapturePaths, CaptureStore

__all__ = ["CapturePaths", "CaptureStore", "ChompWriter"]
