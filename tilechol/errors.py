# --- Purpose: Error kinds raised or reported by the tiling and verification code. ---

from dataclasses import dataclass


class AllocationFailure(MemoryError):
    """A matrix or tile buffer could not be allocated."""


class DimensionMismatch(ValueError):
    """Matrix, grid or array dimensions are inconsistent (e.g. size % num_tiles != 0)."""


@dataclass(frozen=True)
class VerificationMismatch:
    """
    Diagnostic record for an element that failed verification.
    `error` is the absolute or relative difference that was compared
    against the tolerance.
    """
    index: int
    reference: float
    candidate: float
    error: float

    def __str__(self):
        return f"Error detected at i = {self.index}: ref {self.reference} actual {self.candidate}"


class VerificationError(AssertionError):
    """Raised by callers that treat a verification mismatch as a hard failure."""

    def __init__(self, mismatch: VerificationMismatch):
        super().__init__(str(mismatch))
        self.mismatch = mismatch
