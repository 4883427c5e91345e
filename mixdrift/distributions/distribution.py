# distributions/distribution.py
from __future__ import annotations

from typing import Generic
from abc import ABC, abstractmethod

from ..custom_types import Array, ArrayLike, Float, T

__all__ = [
    "Distribution",
]

# -------------------------- Abstract Classes ----------------------------


class Distribution(Generic[T], ABC):
    """
    Abstract base class for real-vector distributions with a fixed dimension d.

    Shape policy:
      - sample(n) -> (n, d)
      - density(x), log_density(x) -> (n,) for x of shape (d,) or (n, d)
    """

    @property
    @abstractmethod
    def dim(self) -> int:
        """Number of coordinates d."""
        raise NotImplementedError

    @abstractmethod
    def sample(self, n_samples: int = 1) -> Array[T]:
        """
        Sample n_samples points from the distribution.
        Returns an array of shape (n_samples, d).
        """
        raise NotImplementedError

    @abstractmethod
    def density(self, x: ArrayLike) -> Array[Float]:
        """
        Compute p(x) under this distribution, one value per point in `x`.
        """
        raise NotImplementedError

    @abstractmethod
    def log_density(self, x: ArrayLike) -> Array[Float]:
        """
        Compute log p(x); points with zero density give -inf.
        """
        raise NotImplementedError
