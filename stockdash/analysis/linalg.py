"""Small dense linear-algebra kernel used by the minimum-variance solver."""

from __future__ import annotations

from typing import Sequence

import numpy as np

_PIVOT_EPS = 1e-10


class SingularMatrixError(ArithmeticError):
    """Raised when a matrix is singular or nearly singular."""


def invert_matrix(matrix: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Invert a square matrix via Gauss-Jordan elimination on ``[A|I]``.

    Rows are swapped so the pivot is the largest magnitude entry in the
    current column (ties keep the upper row).

    Raises:
        ValueError: if the matrix is not square.
        SingularMatrixError: if a chosen pivot is smaller than 1e-10.
    """
    a = np.array(matrix, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {a.shape}")

    n = a.shape[0]
    augmented = np.hstack([a, np.eye(n)])

    for i in range(n):
        max_row = i
        for k in range(i + 1, n):
            if abs(augmented[k, i]) > abs(augmented[max_row, i]):
                max_row = k
        if max_row != i:
            augmented[[i, max_row]] = augmented[[max_row, i]]

        pivot = augmented[i, i]
        if abs(pivot) < _PIVOT_EPS:
            raise SingularMatrixError("Matrix is singular or nearly singular")

        augmented[i] /= pivot
        for k in range(n):
            if k != i:
                augmented[k] -= augmented[k, i] * augmented[i]

    return augmented[:, n:]


def multiply_matrix_vector(
    matrix: Sequence[Sequence[float]] | np.ndarray,
    vector: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Row-by-row dot product of ``matrix`` and ``vector``."""
    m = np.asarray(matrix, dtype=float)
    v = np.asarray(vector, dtype=float)
    if m.ndim != 2 or v.ndim != 1 or m.shape[1] != v.shape[0]:
        raise ValueError(
            f"Cannot multiply matrix of shape {m.shape} by vector of shape {v.shape}"
        )
    return np.array([float(row @ v) for row in m])
