# linalg/cholesky.py
"""
Random covariance synthesis through lower-triangular factors.

A covariance built as ``L @ L.T`` is symmetric positive semi-definite for any
real ``L``, so no repair step is ever needed. The factor is the object that
drift adjustment moves around; the covariance is always derived from it.
"""
from __future__ import annotations

import numpy as np

from ..custom_types import Array, ArrayLike, PRNG
from ..array_backend.utils import _ensure_square_matrix


def random_lower_factor(dim: int, rng: PRNG) -> Array:
    """
    Draw a random lower-triangular factor of shape (dim, dim).

    Entries below the diagonal are U(-1, 1), diagonal entries are U(0, 1) and
    everything above the diagonal is zero. Values are drawn row by row, left to
    right, one uniform per stored entry.
    """
    dim = int(dim)
    if dim < 1:
        raise ValueError(f"dim must be >= 1. Got {dim}.")

    L = np.zeros((dim, dim), dtype=float)
    for j in range(dim):
        for k in range(j):
            L[j, k] = rng.uniform(-1.0, 1.0)
        L[j, j] = rng.uniform(0.0, 1.0)
    return L


def covariance_from_factor(factor: ArrayLike) -> Array:
    """Return ``L @ L.T``; entry (j, k) is sum_m L[j, m] * L[k, m]."""
    L = _ensure_square_matrix(factor, copy=False)
    C = L @ L.T
    # matmul rounding can leave C[j, k] and C[k, j] a few ulps apart
    return 0.5 * (C + C.T)


def canonical_lower_factor(factor: ArrayLike) -> Array:
    """Zero the strict upper triangle and flip negative diagonal entries."""
    L = np.tril(_ensure_square_matrix(factor))
    diag_idcs = np.diag_indices(L.shape[0])
    L[diag_idcs] = np.abs(L[diag_idcs])
    return L

