# array_backend/utils.py
"""
Array canonicalization helpers used throughout mixdrift.

Points handed to a mixture are accepted either as a single vector of shape
(d,) or as a batch of shape (n, d); weights are 1-D vectors; factors and
covariances are square matrices. The helpers below convert user input into
those canonical shapes and raise `ValueError` with a short message naming the
helper when the input cannot be converted.

All helpers that return arrays accept `copy: bool = True`. When `copy=True`
the returned array is guaranteed to be a different object from the input, so
callers can store the result without aliasing the caller's buffer.
"""

from __future__ import annotations

import numpy as np
from typing import Any

from ..custom_types import Array, ArrayLike


def _as_array(x: Any, dtype: Any = None) -> Array:
    try:
        return np.asarray(x, dtype=dtype)
    except Exception as e:
        raise TypeError(
            f"Could not convert input to array.\n"
            f"Input type: {type(x).__name__}\n"
            f"Input value: {repr(x)}\n"
            f"Original error: {e}"
        ) from e


def _is_numpy_scalar(x: Any) -> bool:
    """Return true if object is a numpy generic or Python scalar"""
    return np.isscalar(x) or isinstance(x, np.generic)


def _ensure_real_scalar(x: Any) -> float:
    """
    Return a Python float for inputs holding a single real value.

    Accepts Python scalars, numpy scalar types and arrays with exactly one
    element.

    Raises:
      ValueError if the input holds more than one element or is complex.
    """
    if _is_numpy_scalar(x):
        if np.iscomplexobj(x):
            raise ValueError(f"_ensure_real_scalar: input is complex-valued: {x!r}")
        return float(x)

    arr = _as_array(x)
    if arr.size != 1:
        raise ValueError(f"_ensure_real_scalar: input must contain exactly one element; got size={arr.size}, shape={arr.shape}")
    if np.iscomplexobj(arr):
        raise ValueError(f"_ensure_real_scalar: input is complex-valued (shape={arr.shape}).")
    return float(arr.item())


def _ensure_vector(x: ArrayLike, *, length: int | None = None, copy: bool = True) -> Array:
    """
    Return input as a 1-D float vector of shape (n,).

    Scalars become length-1 vectors; (n, 1) and (1, n) matrices are flattened.

    Raises:
      ValueError for ndim > 2, 2-D input that is not a row or column, or a
      length that differs from `length`.
    """
    arr = _as_array(x, dtype=float)

    if arr.ndim == 0:
        out = arr.reshape((1,))
    elif arr.ndim == 1:
        out = arr
    elif arr.ndim == 2 and 1 in arr.shape:
        out = np.ravel(arr)
    elif arr.ndim == 2:
        raise ValueError(f"_ensure_vector: 2D input has shape {arr.shape}, which is not a vector (expected (n,1) or (1,n)).")
    else:
        raise ValueError(f"_ensure_vector: input has too many dimensions (ndim={arr.ndim}).")

    if length is not None and out.size != length:
        raise ValueError(f"_ensure_vector: required length {length}. Got {out.size}.")

    return out.copy() if copy else out


def _ensure_square_matrix(x: ArrayLike, n: int | None = None, *, copy: bool = True) -> Array:
    """Return input as a 2-D square float matrix, optionally of size `n`."""
    arr = _as_array(x, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    if arr.ndim != 2:
        raise ValueError(f"_ensure_square_matrix: Input cannot be converted to a 2D matrix. Shape {arr.shape}")

    num_rows, num_cols = arr.shape
    if num_rows != num_cols:
        raise ValueError(f"Array is not square. Shape {arr.shape}")
    if n is not None and num_rows != n:
        raise ValueError(f"Required matrix dimension {n}. Got {num_rows}.")

    return arr.copy() if copy else arr


def _ensure_points(x: ArrayLike, dim: int, *, copy: bool = True) -> Array:
    """Return a batch of points with shape (n, dim).

    - scalar -> (1, 1), only valid when dim == 1
    - (dim,) -> (1, dim), a single point
    - (n, dim) -> unchanged
    - (n,) with dim == 1 -> (n, 1)
    """
    arr = _as_array(x, dtype=float)

    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr.reshape(-1, 1) if (dim == 1 and arr.shape[0] != 1) else arr.reshape(1, -1)
    elif arr.ndim != 2:
        raise ValueError(f"_ensure_points: Array of shape {arr.shape} is not a batch of points. Require shape (n, d).")

    if arr.shape[1] != dim:
        raise ValueError(f"_ensure_points: Required point dimension {dim}. Got {arr.shape[1]}.")

    return arr.copy() if copy else arr


def _ensure_probability_vector(x: ArrayLike, *, length: int | None = None) -> Array:
    """Validate non-negative weights and normalize them to sum to one."""
    w = _ensure_vector(x, length=length)
    if w.size < 1:
        raise ValueError("_ensure_probability_vector: at least one weight is required.")
    if not np.all(np.isfinite(w)):
        raise ValueError("_ensure_probability_vector: weights must be finite.")
    if np.any(w < 0):
        raise ValueError("_ensure_probability_vector: weights must be nonnegative.")
    s = float(w.sum())
    if s <= 0:
        raise ValueError("_ensure_probability_vector: weights cannot all be zero.")
    return w / s
