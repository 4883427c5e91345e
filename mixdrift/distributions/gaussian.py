# gaussian.py
from __future__ import annotations

import numpy as np
from scipy.stats import multivariate_normal

from ..custom_types import Array, ArrayLike, Float, PRNG
from ..array_backend.utils import (
    _ensure_vector,
    _ensure_square_matrix,
    _ensure_points,
)
from ..linalg.cholesky import covariance_from_factor
from .distribution import Distribution


class Gaussian(Distribution[Float]):
    """
    Multivariate normal component parameterized by its lower Cholesky factor.

    The covariance is always ``L @ L.T`` and is never repaired, so a factor
    with zeros on the diagonal gives a singular covariance. Densities are
    computed with ``allow_singular=True`` and whatever SciPy returns for a
    degenerate covariance is passed through unchanged.

    Args:
        mean: Mean vector, shape (d,).
        lower_chol: Lower-triangular factor, shape (d, d).
        rng: Generator used by `sample` when no generator is passed in.
    """

    def __init__(self, mean: ArrayLike, lower_chol: ArrayLike,
                 *, rng: PRNG | None = None):
        mean = _ensure_vector(mean)
        self._dim = len(mean)
        L = _ensure_square_matrix(lower_chol)
        if L.shape[0] != self._dim:
            raise ValueError(f"Dimension mismatch between mean {mean.shape} and factor {L.shape}.")

        self._mean = mean
        self._lower_chol = L
        self._cov = covariance_from_factor(L)
        self._rng = rng or np.random.default_rng()
        self._mvn = multivariate_normal(mean=self._mean, cov=self._cov, allow_singular=True)

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def mean(self) -> Array[Float]:
        return self._mean

    @property
    def cov(self) -> Array[Float]:
        return self._cov

    @property
    def lower_chol(self) -> Array[Float]:
        return self._lower_chol

    def sample(self, n_samples: int = 1, *, rng: PRNG | None = None) -> Array[Float]:
        """
        Draw (n, d) samples as ``mean + L z`` with standard normal z.
        """
        rng = rng or self._rng
        Z = rng.standard_normal(size=(self.dim, int(n_samples)))
        return self._mean + (self._lower_chol @ Z).T

    def density(self, x: ArrayLike) -> Array[Float]:
        X = _ensure_points(x, self.dim)
        return np.atleast_1d(np.asarray(self._mvn.pdf(X), dtype=float))

    def log_density(self, x: ArrayLike) -> Array[Float]:
        X = _ensure_points(x, self.dim)
        return np.atleast_1d(np.asarray(self._mvn.logpdf(X), dtype=float))

    def __repr__(self) -> str:
        return f"Gaussian(dim={self.dim}, mean={np.array2string(self._mean, precision=3)})"
