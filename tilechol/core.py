# --- Purpose: Owns the flat, row-major representation of a dense square matrix. ---

import math
import os

import numpy as np

from .config import DTYPE
from .errors import AllocationFailure, DimensionMismatch


def allocate(count: int) -> np.ndarray:
    """
    Single allocation path for matrix and tile buffers.
    Returns a zero-filled, contiguous 1-D buffer of `count` elements.
    """
    if count < 0:
        raise AllocationFailure(f"Cannot allocate a buffer of {count} elements.")
    try:
        return np.zeros(count, dtype=DTYPE)
    except MemoryError as exc:
        raise AllocationFailure(f"Failed to allocate {count} elements of {np.dtype(DTYPE).name}.") from exc


class DenseMatrix:
    """
    A size x size matrix held in one contiguous row-major buffer.
    Element (r, c) lives at offset r * size + c of `data`.
    """
    def __init__(self, size: int, data: np.ndarray = None):
        if not isinstance(size, (int, np.integer)) or size <= 0:
            raise ValueError(f"Matrix size must be a positive integer, got {size!r}.")
        self.size = int(size)
        self.dtype = np.dtype(DTYPE)

        if data is None:
            self.data = allocate(self.size * self.size)
        else:
            if data.ndim != 1 or data.shape[0] != self.size * self.size:
                raise DimensionMismatch(
                    f"Buffer of shape {data.shape} cannot hold a {self.size}x{self.size} matrix."
                )
            if data.dtype != self.dtype or not data.flags["C_CONTIGUOUS"]:
                raise TypeError(
                    f"Matrix buffers must be contiguous {self.dtype.name}, got {data.dtype.name}."
                )
            self.data = data

    @classmethod
    def from_array(cls, array) -> 'DenseMatrix':
        """
        Builds a matrix from a square 2-D array or a flat array of perfect-square length.
        The input is always copied, so the new matrix owns its buffer.
        """
        values = np.asarray(array, dtype=DTYPE)
        if values.ndim == 2:
            if values.shape[0] != values.shape[1]:
                raise DimensionMismatch(f"Matrix must be square, got shape {values.shape}.")
            size = values.shape[0]
        elif values.ndim == 1:
            size = math.isqrt(values.shape[0])
            if size * size != values.shape[0]:
                raise DimensionMismatch(f"Flat length {values.shape[0]} is not a perfect square.")
        else:
            raise DimensionMismatch(f"Expected a 1-D or 2-D array, got {values.ndim} dimensions.")

        matrix = cls(size)
        matrix.data[:] = values.reshape(-1)
        return matrix

    @classmethod
    def load(cls, filepath: str, size: int) -> 'DenseMatrix':
        """Reads a raw row-major binary file written by `save`."""
        expected_bytes = size * size * np.dtype(DTYPE).itemsize
        actual_bytes = os.path.getsize(filepath)
        if actual_bytes != expected_bytes:
            raise DimensionMismatch(
                f"File size of {actual_bytes} does not match "
                f"expected size of {expected_bytes} for a {size}x{size} matrix"
            )

        mapped = np.memmap(filepath, dtype=DTYPE, mode='r', shape=(size * size,))
        matrix = cls(size)
        matrix.data[:] = mapped
        # Release the file handle right away; the matrix keeps its own copy.
        if mapped._mmap is not None:
            mapped._mmap.close()
        return matrix

    def save(self, filepath: str):
        """Writes the buffer to disk in row-major order."""
        mapped = np.memmap(filepath, dtype=self.dtype, mode='w+', shape=self.data.shape)
        mapped[:] = self.data
        mapped.flush()
        if mapped._mmap is not None:
            mapped._mmap.close()

    def as_2d(self) -> np.ndarray:
        """Row-major 2-D view sharing memory with `data`."""
        return self.data.reshape(self.size, self.size)

    def element(self, r: int, c: int) -> float:
        return float(self.data[r * self.size + c])

    def copy(self) -> 'DenseMatrix':
        return DenseMatrix(self.size, self.data.copy())

    def is_symmetric(self) -> bool:
        # Exact comparison: generated matrices are symmetric by construction.
        square = self.as_2d()
        return bool(np.array_equal(square, square.T))

    def __eq__(self, other):
        if not isinstance(other, DenseMatrix):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self.data, other.data))

    __hash__ = None

    def __len__(self):
        return self.data.shape[0]

    def __repr__(self):
        return f"DenseMatrix(size={self.size}, dtype={self.dtype.name})"
