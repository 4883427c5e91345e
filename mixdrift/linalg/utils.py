# linalg/utils.py

from __future__ import annotations

import numpy as np

from ..custom_types import Array, ArrayLike
from ..array_backend.utils import (
    _ensure_real_scalar,
    _ensure_square_matrix
)


def add_diag_jitter(matrix: ArrayLike, jitter: float | ArrayLike = 1e-6, *, copy: bool = True) -> Array:
    """
    Return matrix + jitter * I.

    Args:
      matrix: 2D square array-like
      jitter: scalar, or array-like of length n added elementwise to the diagonal
      copy: if True (default) the input is left untouched. If False and the
            input is already a float ndarray, its diagonal is updated in place.

    Raises:
        ValueError on invalid shapes or non-real jitter values.
    """
    mat = _ensure_square_matrix(matrix, copy=copy)
    n = mat.shape[0]

    jitter_arr = np.asarray(jitter)
    if jitter_arr.ndim == 0:
        jitter_arr = np.full((n,), _ensure_real_scalar(jitter_arr), dtype=float)
    elif jitter_arr.ndim == 1:
        if jitter_arr.shape != (n,):
            raise ValueError(f"add_diag_jitter: jitter must be scalar or shape ({n},). Got {jitter_arr.shape}.")
        if np.iscomplexobj(jitter_arr):
            raise ValueError("add_diag_jitter: jitter contains complex values.")
    else:
        raise ValueError(f"add_diag_jitter: jitter must be scalar or 1D array. Got ndim={jitter_arr.ndim}.")

    diag_idcs = np.diag_indices(n)
    mat[diag_idcs] = mat[diag_idcs] + jitter_arr.astype(float, copy=False)
    return mat


def is_symmetric(matrix: ArrayLike, *, atol: float = 1e-12) -> bool:
    """True if the square matrix equals its transpose within `atol`."""
    C = _ensure_square_matrix(matrix, copy=False)
    return bool(np.allclose(C, C.T, rtol=0.0, atol=atol))


def is_positive_semidefinite(matrix: ArrayLike, *, jitter: float = 1e-10) -> bool:
    """
    Check a covariance by re-decomposing it.

    Rank deficient covariances are valid here, so a tiny jitter is added to the
    diagonal before attempting the Cholesky factorization.
    """
    if not is_symmetric(matrix, atol=1e-10):
        return False
    try:
        np.linalg.cholesky(add_diag_jitter(matrix, jitter=jitter))
    except np.linalg.LinAlgError:
        return False
    return True
