"""Unique on-disk artifacts for captured command output."""
import logging
import os
from dataclasses import dataclass

from cmdprove.core.domain import CaptureStoreError, StreamName

logger = logging.getLogger("cmdprove.capture.store")

MAX_CANDIDATES = 100


@dataclass(frozen=True)
class CapturePaths:
    """Artifact paths for one assertion: stdout, stderr and exit status."""

    out: str
    err: str
    ret: str

    def path_for(self, stream: StreamName) -> str:
        return getattr(self, stream.value)


class CaptureStore:
    """Allocates uniquely-named capture files inside an output directory.

    Names have the form ``<base><NN>.<ext>`` where ``NN`` is a two-digit
    counter. The first counter for which none of the ``.out``, ``.err`` and
    ``.ret`` files exists is used, and the three files are created at once,
    so later allocations in the same directory never reuse them.

    Attributes:
        out_dir: Directory where artifacts are written.
    """

    def __init__(self, out_dir: str) -> None:
        self.out_dir = out_dir
        os.makedirs(out_dir, exist_ok=True)

    def allocate(self, base_name: str = "test") -> CapturePaths:
        """Reserve a fresh set of capture paths.

        Args:
            base_name: Prefix for the artifact names.

        Returns:
            CapturePaths: Paths of the newly created, empty artifacts.

        Raises:
            CaptureStoreError: If all 100 candidates are already taken.
        """
        base = os.path.join(self.out_dir, base_name)
        for i in range(MAX_CANDIDATES):
            candidate = CapturePaths(*(f"{base}{i:02d}.{s.value}" for s in StreamName))
            paths = [candidate.out, candidate.err, candidate.ret]
            if any(os.path.exists(p) for p in paths):
                continue
            for p in paths:
                with open(p, "xb"):
                    pass
            logger.debug(f"Capture files allocated: {base}{i:02d}.*")
            return candidate
        raise CaptureStoreError(
            f"Could not determine a unique file name after {MAX_CANDIDATES} attempts: {base}"
        )
