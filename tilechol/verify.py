# --- Purpose: Compares a computed factor against a trusted reference. ---

import logging
from typing import List, Optional

import numpy as np

from .config import ABSOLUTE_THRESHOLD, DTYPE, RELATIVE_TOLERANCE
from .core import DenseMatrix
from .errors import DimensionMismatch, VerificationMismatch

logger = logging.getLogger(__name__)

# Elements checked per step of the early-exit scan
_SCAN_CHUNK = 1 << 16


def _as_flat(values) -> np.ndarray:
    if isinstance(values, DenseMatrix):
        return np.asarray(values.data, dtype=DTYPE)
    return np.asarray(values, dtype=DTYPE).reshape(-1)


def _element_errors(candidate: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """
    |reference - candidate|, divided by reference wherever |reference| is
    above ABSOLUTE_THRESHOLD, so near-zero references use absolute error.
    """
    diff = reference - candidate
    relative = np.abs(reference) > ABSOLUTE_THRESHOLD
    np.divide(diff, reference, out=diff, where=relative)
    return np.abs(diff)


def _checked_pair(candidate, reference):
    cand = _as_flat(candidate)
    ref = _as_flat(reference)
    if cand.shape[0] != ref.shape[0]:
        raise DimensionMismatch(
            f"Candidate has {cand.shape[0]} elements but reference has {ref.shape[0]}."
        )
    return cand, ref


def _mismatch_at(index: int, cand: np.ndarray, ref: np.ndarray, errors: np.ndarray, offset: int = 0):
    return VerificationMismatch(
        index=offset + index,
        reference=float(ref[offset + index]),
        candidate=float(cand[offset + index]),
        error=float(errors[index]),
    )


def find_first_mismatch(candidate, reference) -> Optional[VerificationMismatch]:
    """
    Scans in index order and returns the first element whose error exceeds
    RELATIVE_TOLERANCE, or None when everything is within tolerance.
    Elements after the first failing chunk are never examined.
    """
    cand, ref = _checked_pair(candidate, reference)

    for start in range(0, cand.shape[0], _SCAN_CHUNK):
        stop = min(start + _SCAN_CHUNK, cand.shape[0])
        errors = _element_errors(cand[start:stop], ref[start:stop])
        failing = np.flatnonzero(errors > RELATIVE_TOLERANCE)
        if failing.size:
            # flatnonzero is ascending, so this is the lowest failing index.
            return _mismatch_at(int(failing[0]), cand, ref, errors, offset=start)
    return None


def find_all_mismatches(candidate, reference) -> List[VerificationMismatch]:
    """Every element outside tolerance, in index order."""
    cand, ref = _checked_pair(candidate, reference)
    errors = _element_errors(cand, ref)
    return [_mismatch_at(int(i), cand, ref, errors) for i in np.flatnonzero(errors > RELATIVE_TOLERANCE)]


def verify_results(candidate, reference) -> bool:
    """
    Pass/fail check of `candidate` against `reference`.
    On failure the first offending element is logged and False is returned.
    """
    mismatch = find_first_mismatch(candidate, reference)
    if mismatch is not None:
        logger.error(str(mismatch))
        return False
    return True
