# --- Purpose: Dense numeric primitives consumed by the generator and the driver. ---

import logging

import numpy as np

from .core import DenseMatrix
from .errors import DimensionMismatch

logger = logging.getLogger(__name__)


def gemm(alpha: float, a: np.ndarray, b: np.ndarray, beta: float = 0.0, c: np.ndarray = None,
         trans_a: bool = False, trans_b: bool = False) -> np.ndarray:
    """
    General matrix multiply: C = alpha * op(A) @ op(B) + beta * C.

    Operands are row-major 2-D arrays; op(X) is X or X.T depending on the
    transpose flag. When beta is 0 the previous contents of C are not read,
    so an uninitialized or NaN-filled C is fine. C is updated in place
    when given and returned either way.
    """
    op_a = a.T if trans_a else a
    op_b = b.T if trans_b else b
    if op_a.shape[1] != op_b.shape[0]:
        raise DimensionMismatch("Inner dimensions must match for multiplication.")

    result_shape = (op_a.shape[0], op_b.shape[1])
    if c is None:
        c = np.empty(result_shape, dtype=np.result_type(a, b))
    elif c.shape != result_shape:
        raise DimensionMismatch(f"Output has shape {c.shape}, expected {result_shape}.")

    product = op_a @ op_b
    if alpha != 1.0:
        product *= alpha
    if beta == 0.0:
        c[...] = product
    else:
        c *= beta
        c += product
    return c


def reference_cholesky(matrix: DenseMatrix, lower: bool = True) -> DenseMatrix:
    """
    Reference Cholesky factorization (the role LAPACK dpotrf plays in the benchmark).
    Returns L (lower=True) or L^T (lower=False) with the other triangle zeroed.
    Raises numpy.linalg.LinAlgError when the input is not positive-definite.
    """
    logger.debug(f"Reference factorization of {matrix!r} (lower={lower})")
    factor = np.linalg.cholesky(matrix.as_2d())
    if not lower:
        factor = factor.T
    return DenseMatrix.from_array(factor)


def lower_triangle(matrix: DenseMatrix) -> DenseMatrix:
    """Copy of `matrix` with everything above the diagonal set to zero."""
    return DenseMatrix.from_array(np.tril(matrix.as_2d()))


def upper_triangle(matrix: DenseMatrix) -> DenseMatrix:
    """Copy of `matrix` with everything below the diagonal set to zero."""
    return DenseMatrix.from_array(np.triu(matrix.as_2d()))
