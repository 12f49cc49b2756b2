# --- Purpose: Builds the input matrices for the tiled Cholesky benchmark. ---

import logging

import numpy as np

from .backend import gemm
from .core import DenseMatrix

logger = logging.getLogger(__name__)


def generate_spd_matrix(matrix_size: int, seed: int = None) -> DenseMatrix:
    """
    Generates a random symmetric positive-definite matrix.

    1. Fill the upper triangle of a scratch matrix A with uniform values in
       [0, 1) and mirror it, so A is symmetric.
    2. P = A @ A^T through the GEMM primitive (positive semi-definite).
    3. Replace every diagonal entry with 1.0 plus the sum of its full row,
       which makes P strictly diagonally dominant and hence positive-definite.

    Args:
        matrix_size: Number of rows (and columns), must be positive.
        seed: Seed for the random stream. Defaults to `matrix_size`, so the
            same size always yields the same matrix.
    """
    if matrix_size <= 0:
        raise ValueError(f"Matrix size must be positive, got {matrix_size}.")
    if seed is None:
        seed = matrix_size
    logger.debug(f"Generating {matrix_size}x{matrix_size} SPD matrix (seed={seed})")

    rng = np.random.default_rng(seed)

    # Scratch matrix, symmetric by construction
    draws = rng.random((matrix_size, matrix_size))
    scratch = np.triu(draws) + np.triu(draws, k=1).T

    result = DenseMatrix(matrix_size)
    product = result.as_2d()
    gemm(1.0, scratch, scratch, beta=0.0, c=product, trans_a=False, trans_b=True)
    del scratch

    # Floating point products may differ in the last bit across the diagonal;
    # mirror the upper triangle so symmetry holds exactly.
    lower_idx = np.tril_indices(matrix_size, k=-1)
    product[lower_idx] = product.T[lower_idx]

    # Row sums include the diagonal itself and are taken before any overwrite.
    diagonals = 1.0 + product.sum(axis=1)
    np.fill_diagonal(product, diagonals)

    return result


def generate_pascal_matrix(n: int) -> DenseMatrix:
    """
    Symmetric Pascal matrix: first row and column are ones, every other
    entry is the sum of its left and upper neighbours.
    """
    if n <= 0:
        raise ValueError(f"Matrix size must be positive, got {n}.")

    matrix = DenseMatrix(n)
    square = matrix.as_2d()
    square[0, :] = 1.0
    for i in range(1, n):
        # M[i][j] = M[i][j-1] + M[i-1][j] with M[i][0] = 1 is a running sum of row i-1.
        square[i, :] = np.cumsum(square[i - 1, :])
    return matrix
