# divergence/monte_carlo.py
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from ..custom_types import ArrayLike
from ..array_backend.utils import _ensure_vector


@dataclass
class MonteCarloState:
    """Running mean and variance of Monte Carlo integrand values.

    Single values go through Welford's update. Whole batches are reduced to
    their own (n, mean, m2) and folded in with the pairwise merge of Chan et
    al., which gives the same result as feeding the values one by one, up to
    rounding, and lets independent batches be combined in any order.

    Attributes:
        n: Number of values seen.
        mean: Running mean.
        m2: Sum of squared deviations from the running mean.
    """
    n: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def push(self, x: float) -> None:
        self.n += 1
        delta = x - self.mean
        self.mean += delta / self.n
        self.m2 += delta * (x - self.mean)

    def update(self, values: ArrayLike) -> None:
        v = _ensure_vector(values, copy=False)
        if v.size == 0:
            return
        batch_mean = float(v.mean())
        batch = MonteCarloState(
            n=int(v.size),
            mean=batch_mean,
            m2=float(np.sum((v - batch_mean) ** 2)),
        )
        self.merge(batch)

    def merge(self, other: MonteCarloState) -> None:
        """Fold `other` into this state in place."""
        if other.n == 0:
            return
        if self.n == 0:
            self.n, self.mean, self.m2 = other.n, other.mean, other.m2
            return
        n = self.n + other.n
        delta = other.mean - self.mean
        self.mean += delta * other.n / n
        self.m2 += other.m2 + delta * delta * self.n * other.n / n
        self.n = n

    @property
    def variance(self) -> float:
        """Unbiased sample variance; nan with fewer than two values."""
        if self.n < 2:
            return math.nan
        return self.m2 / (self.n - 1)

    @property
    def std_error(self) -> float:
        """Standard error of the running mean."""
        if self.n < 2:
            return math.inf
        return math.sqrt(max(self.variance, 0.0) / self.n)
