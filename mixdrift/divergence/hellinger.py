# divergence/hellinger.py
"""
Monte Carlo estimation of the Hellinger distance between two mixtures.

    H(f1, f2) = sqrt(1 - integral sqrt(f1(x) f2(x)) dx)

The overlap integral is estimated by drawing points uniformly from the cube
[-R/2, R/2]^d and scaling the running mean of sqrt(f1 f2) by the volume R^d.
The loop stops once the standard error of the overlap falls below a
tolerance, or once the estimate has moved further from a caller-supplied
target than the error bound allows. In the second case the estimate is still
returned; it is flagged `out_of_reach` and the caller is expected to try a
different candidate rather than trust it.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from ..custom_types import Array
from ..distributions.mixture import MixtureModel
from ..random_streams import MONTE_CARLO_STREAM, make_rng, reseed_in_place
from .monte_carlo import MonteCarloState

__all__ = [
    "MonteCarloSettings",
    "HellingerResult",
    "HellingerEstimator",
    "integration_range",
    "hellinger_distance",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloSettings:
    """
    Stopping rule of the Monte Carlo loop.

    Attributes:
        min_samples: Samples drawn before any stopping test is applied.
        tolerance: Target standard error of the overlap integral (before the
            sqrt transform).
        max_samples: Hard cap on samples per query.
        batch_size: Points drawn and evaluated per vectorized step.
        divergence_factor: The query stops as out of reach once
            |target**2 - (1 - overlap)| exceeds this multiple of the error.
        n_std: Standard deviations of margin used by `integration_range`.
    """
    min_samples: int = 1_000_000
    tolerance: float = 1e-3
    max_samples: int = 20_000_000
    batch_size: int = 100_000
    divergence_factor: float = 2.0
    n_std: float = 5.0

    def __post_init__(self):
        if self.min_samples < 2:
            raise ValueError("min_samples must be >= 2.")
        if self.max_samples < self.min_samples:
            raise ValueError("max_samples must be >= min_samples.")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        if self.tolerance <= 0:
            raise ValueError("tolerance must be > 0.")


@dataclass(frozen=True)
class HellingerResult:
    """Outcome of one distance query.

    `error` is the standard error of the overlap integral, which is also the
    standard error of `squared_distance`.
    """
    distance: float
    squared_distance: float
    overlap: float
    error: float
    n_samples: int
    integrate_range: float
    converged: bool
    out_of_reach: bool

    @property
    def distance_error(self) -> float:
        """Error on `distance` propagated through the square root."""
        if self.distance <= 0.0:
            return math.sqrt(self.error)
        return self.error / (2.0 * self.distance)


def integration_range(*models: MixtureModel, n_std: float = 5.0) -> float:
    """
    Side length R of a cube [-R/2, R/2]^d covering the bulk of every model.

    R is twice the largest ``|mean_j| + n_std * sqrt(cov_jj)`` over all
    components and coordinates.
    """
    if not models:
        raise ValueError("integration_range needs at least one model.")
    reach = 0.0
    for model in models:
        for i in range(model.num_components):
            comp = model.component(i)
            spread = np.abs(comp.mean) + n_std * np.sqrt(np.clip(np.diag(comp.cov), 0.0, None))
            reach = max(reach, float(spread.max()))
    return 2.0 * reach


class HellingerEstimator:
    """
    Monte Carlo Hellinger distance between two mixtures.

    The estimator owns one random stream. It is reset from `seed` at the start
    of every query, so repeated queries on the same models give the same
    answer and H(A, B) equals H(B, A) exactly.

    Args:
        seed: Seed of the Monte Carlo stream.
        settings: Stopping rule; defaults to `MonteCarloSettings()`.
        integrate_range: Fixed cube side length. When None it is computed per
            query with `integration_range`.
    """

    def __init__(self, seed: int = 1, settings: MonteCarloSettings | None = None,
                 *, integrate_range: float | None = None):
        self._seed = int(seed)
        self._rng = make_rng(self._seed, MONTE_CARLO_STREAM)
        self.settings = settings or MonteCarloSettings()
        if integrate_range is not None and integrate_range <= 0:
            raise ValueError("integrate_range must be > 0.")
        self.integrate_range = integrate_range

    @property
    def seed(self) -> int:
        return self._seed

    def reseed(self, seed: int) -> None:
        self._seed = int(seed)
        reseed_in_place(self._rng, self._seed, MONTE_CARLO_STREAM)

    def _integrand(self, mm1: MixtureModel, mm2: MixtureModel, points: Array) -> Array:
        return np.sqrt(mm1.density(points) * mm2.density(points))

    def estimate(
        self,
        mm1: MixtureModel,
        mm2: MixtureModel,
        target: float | None = None,
        *,
        cancel: Callable[[], bool] | None = None,
    ) -> HellingerResult:
        """
        Estimate H(mm1, mm2).

        Args:
            mm1, mm2: Mixtures of the same dimension.
            target: Distance the caller hopes for. When given, the loop exits
                early once the estimate is clearly away from it.
            cancel: Polled after every batch; returning True ends the query
                the same way as the out-of-reach exit.
        """
        if mm1.dim != mm2.dim:
            raise ValueError(f"Dimension mismatch: {mm1.dim} vs {mm2.dim}.")

        s = self.settings
        d = mm1.dim
        R = self.integrate_range or integration_range(mm1, mm2, n_std=s.n_std)
        half = 0.5 * R
        volume = R ** d
        target_sq = None if target is None else float(target) ** 2

        reseed_in_place(self._rng, self._seed, MONTE_CARLO_STREAM)
        state = MonteCarloState()
        overlap = 0.0
        error = math.inf
        converged = False
        out_of_reach = False

        while True:
            n_batch = min(s.batch_size, s.max_samples - state.n)
            points = self._rng.uniform(-half, half, size=(n_batch, d))
            state.update(self._integrand(mm1, mm2, points))
            overlap = volume * state.mean
            error = volume * state.std_error

            if cancel is not None and cancel():
                out_of_reach = True
                logger.debug("Monte Carlo query cancelled at N=%d", state.n)
                break

            if state.n < s.min_samples:
                continue

            if error < s.tolerance:
                converged = True
                break

            if target_sq is not None and abs(target_sq - (1.0 - overlap)) > s.divergence_factor * error:
                out_of_reach = True
                logger.debug(
                    "Out of limits at N=%d: 1 - overlap=%.6f, error=%.6f, target=%.4f",
                    state.n, 1.0 - overlap, error, target,
                )
                break

            if state.n >= s.max_samples:
                logger.debug("Sample cap reached at N=%d with error %.6f", state.n, error)
                break

        squared = min(max(1.0 - overlap, 0.0), 1.0)
        result = HellingerResult(
            distance=math.sqrt(squared),
            squared_distance=squared,
            overlap=overlap,
            error=error,
            n_samples=state.n,
            integrate_range=R,
            converged=converged,
            out_of_reach=out_of_reach,
        )
        logger.debug(
            "Hellinger distance estimated as %.6f (+/- %.6f on H^2) after %d samples; target %s",
            result.distance, error, state.n, target,
        )
        return result

    def distance(self, mm1: MixtureModel, mm2: MixtureModel, target: float | None = None) -> float:
        return self.estimate(mm1, mm2, target).distance


def hellinger_distance(mm1: MixtureModel, mm2: MixtureModel, *, seed: int = 1,
                       settings: MonteCarloSettings | None = None) -> float:
    """One-off distance query with a fresh estimator."""
    return HellingerEstimator(seed, settings).distance(mm1, mm2)
