# distributions/mixture.py
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.special import logsumexp

from ..custom_types import Array, ArrayLike, Float, Int, PRNG
from ..array_backend.utils import (
    _ensure_points,
    _ensure_probability_vector,
    _ensure_real_scalar,
    _ensure_square_matrix,
    _ensure_vector,
)
from ..linalg.cholesky import random_lower_factor
from ..random_streams import RandomStreams
from .distribution import Distribution
from .gaussian import Gaussian

__all__ = [
    "Instance",
    "MixtureModel",
    "weighted_index",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instance:
    """One labeled draw: attribute vector `x`, component label `y`.

    `header` is whatever the caller passed to `next_instance`; it is carried
    through untouched.
    """
    x: Array
    y: int
    header: Any = None


def weighted_index(weights: ArrayLike, u: float | ArrayLike) -> int | Array[Int]:
    """
    Inverse-CDF selection of a component index.

    `u` is uniform on [0, 1). An index is returned for the first cumulative
    weight strictly greater than `u`, so zero-weight components are never
    selected and ties go to the lower index. Any `u` left over when the
    weights sum to slightly less than one goes to the last component with
    positive weight.
    """
    w = _ensure_vector(weights, copy=False)
    cw = np.cumsum(w)
    idx = np.searchsorted(cw, u, side="right")
    positive = np.flatnonzero(w > 0.0)
    last = positive[-1] if positive.size else w.shape[0] - 1
    idx = np.minimum(idx, last)
    if np.ndim(idx) == 0:
        return int(idx)
    return idx.astype(int)


class MixtureModel(Distribution[Float]):
    """
    Weighted mixture of multivariate Gaussian components.

    Component weights, means and covariance factors are drawn from the model
    stream at construction; component indices and Gaussian draws come from
    the instance stream. Weights are always kept normalized.

    Args:
        num_components: Number of components, >= 1.
        dim: Dimension of each point, >= 1.
        instance_seed: Seed of the stream used to draw instances.
        model_seed: Seed of the stream used to build the model.
        range_scale: Mean coordinates are drawn from
            U(-range_scale/2, range_scale/2). Defaults to `num_components`, so
            components spread out as the mixture grows.

    Raises:
        ValueError: If `num_components` or `dim` is not positive.
    """

    def __init__(
        self,
        num_components: int,
        dim: int,
        instance_seed: int = 1,
        model_seed: int = 1,
        *,
        range_scale: float | None = None,
    ):
        self._init_empty(num_components, dim, instance_seed, model_seed, range_scale)

        rng = self._streams.model
        weights = np.empty(self._k, dtype=float)
        components = []
        for i in range(self._k):
            weights[i] = rng.random()
            components.append(self._make_component(self._random_mean(rng), random_lower_factor(self._d, rng)))

        self._components = components
        self._weights = weights / weights.sum()

    def _init_empty(self, num_components, dim, instance_seed, model_seed, range_scale) -> None:
        num_components = int(num_components)
        dim = int(dim)
        if num_components < 1:
            raise ValueError(f"num_components must be >= 1. Got {num_components}.")
        if dim < 1:
            raise ValueError(f"dim must be >= 1. Got {dim}.")

        self._k = num_components
        self._d = dim
        self._range_scale = float(num_components if range_scale is None else range_scale)
        self._streams = RandomStreams(instance_seed, model_seed)
        self._weights = np.full(self._k, 1.0 / self._k)
        self._components: list[Gaussian] = []

    @classmethod
    def from_model(
        cls,
        source: MixtureModel,
        num_components: int,
        target_distance: float,
        instance_seed: int,
        model_seed: int,
        *,
        range_scale: float | None = None,
    ) -> MixtureModel:
        """
        Build a model at a tunable distance from `source`.

        Indices present in `source` start from its weights and means and keep
        its covariance factors unmodified; other indices draw fresh values and
        a fresh factor. Every weight and mean is then blended with a freshly
        drawn random value,

            new = t**2 * fresh + (1 - t**2) * base,    t = target_distance,

        and the weights are renormalized. This moves the model away from
        `source` by an amount that grows with `target_distance` without a
        distance query.
        """
        t = _ensure_real_scalar(target_distance)
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"target_distance must lie in [0, 1]. Got {t}.")

        model = cls.__new__(cls)
        model._init_empty(num_components, source.dim, instance_seed, model_seed, range_scale)
        rng = model._streams.model
        blend = t * t

        weights = np.empty(model._k, dtype=float)
        components = []
        for i in range(model._k):
            if i < source.num_components:
                base_weight = source.weight(i)
                base_mean = source.mean(i)
                factor = source.lower_chol(i)
            else:
                base_weight = rng.random()
                base_mean = model._random_mean(rng)
                factor = random_lower_factor(model._d, rng)

            weights[i] = blend * rng.random() + (1.0 - blend) * base_weight
            mean = blend * model._random_mean(rng) + (1.0 - blend) * base_mean
            components.append(model._make_component(mean, factor))

        model._components = components
        model._weights = _ensure_probability_vector(weights)
        return model

    # ----------------------------- helpers -----------------------------

    def _random_mean(self, rng: PRNG) -> Array[Float]:
        half = 0.5 * self._range_scale
        return rng.uniform(-half, half, size=self._d)

    def _make_component(self, mean: ArrayLike, lower_chol: ArrayLike) -> Gaussian:
        return Gaussian(mean, lower_chol, rng=self._streams.instance)

    def _check_index(self, index: int) -> int:
        index = int(index)
        if not 0 <= index < self._k:
            raise IndexError(f"component index {index} out of range for {self._k} components.")
        return index

    # --------------------------- introspection ---------------------------

    @property
    def dim(self) -> int:
        return self._d

    @property
    def num_components(self) -> int:
        return self._k

    @property
    def instance_seed(self) -> int:
        return self._streams.instance_seed

    @property
    def model_seed(self) -> int:
        return self._streams.model_seed

    @property
    def range_scale(self) -> float:
        return self._range_scale

    @property
    def weights(self) -> Array[Float]:
        """A copy of the normalized weight vector, shape (k,)."""
        return self._weights.copy()

    def weight(self, index: int) -> float:
        return float(self._weights[self._check_index(index)])

    def component(self, index: int) -> Gaussian:
        return self._components[self._check_index(index)]

    def mean(self, index: int) -> Array[Float]:
        """A copy of the mean of component `index`, shape (d,)."""
        return self.component(index).mean.copy()

    def cov(self, index: int) -> Array[Float]:
        """A copy of the covariance of component `index`, shape (d, d)."""
        return self.component(index).cov.copy()

    def lower_chol(self, index: int) -> Array[Float]:
        """A copy of the covariance factor of component `index`, shape (d, d)."""
        return self.component(index).lower_chol.copy()

    def copy(self) -> MixtureModel:
        """Deep copy of the geometry; streams restart from the stored seeds."""
        model = self.__class__.__new__(self.__class__)
        model._init_empty(self._k, self._d, self.instance_seed, self.model_seed, self._range_scale)
        model._weights = self._weights.copy()
        model._components = [model._make_component(c.mean, c.lower_chol) for c in self._components]
        return model

    # ----------------------------- mutation -----------------------------

    def set_component(self, index: int, *, mean: ArrayLike | None = None,
                      lower_chol: ArrayLike | None = None) -> None:
        """Replace the mean and/or factor of component `index` in place."""
        old = self.component(index)
        mean = old.mean if mean is None else _ensure_vector(mean, length=self._d)
        L = old.lower_chol if lower_chol is None else _ensure_square_matrix(lower_chol, self._d)
        self._components[self._check_index(index)] = self._make_component(mean, L)

    def assign_weights(self, weights: ArrayLike) -> None:
        """Replace the whole weight vector; it is validated and normalized."""
        self._weights = _ensure_probability_vector(weights, length=self._k)

    def set_weight(self, index: int, weight: float) -> None:
        """
        Set the weight of one component and rescale the rest proportionally.

        Out-of-range values are clamped to [0, 1] with a RuntimeWarning. The
        other weights are scaled by ``(1 - weight) / sum(others)``; if they
        all are zero the remainder is split evenly between them.
        """
        index = self._check_index(index)
        w = _ensure_real_scalar(weight)
        if not 0.0 <= w <= 1.0:
            clamped = min(max(w, 0.0), 1.0)
            warnings.warn(
                f"weight {w} for component {index} is outside [0, 1]; clamped to {clamped}.",
                RuntimeWarning,
            )
            w = clamped

        if self._k == 1:
            if w != 1.0:
                warnings.warn(
                    "a single-component mixture always has weight 1.0; request ignored.",
                    RuntimeWarning,
                )
            return

        others = np.ones(self._k, dtype=bool)
        others[index] = False
        remaining = float(self._weights[others].sum())
        if remaining > 0.0:
            self._weights[others] *= (1.0 - w) / remaining
        else:
            self._weights[others] = (1.0 - w) / (self._k - 1)
        self._weights[index] = w

    def set_weights(self, num_majority: int, majority_total: float) -> None:
        """
        Redraw weights for a class-imbalanced stream.

        The first `num_majority` components form the majority block and share
        `majority_total`; the rest share ``1 - majority_total``. Weights within
        each block are fresh uniform draws from the model stream.
        """
        num_majority = int(num_majority)
        total = _ensure_real_scalar(majority_total)
        if not 1 <= num_majority < self._k:
            raise ValueError(
                f"num_majority must satisfy 1 <= num_majority < {self._k}. Got {num_majority}."
            )
        if not 0.0 <= total <= 1.0:
            raise ValueError(f"majority_total must lie in [0, 1]. Got {total}.")

        rng = self._streams.model
        raw = rng.random(self._k)
        majority = raw[:num_majority]
        minority = raw[num_majority:]
        self._weights = np.concatenate([
            total * majority / majority.sum(),
            (1.0 - total) * minority / minority.sum(),
        ])

    def concept_assignments(self, num_majority: int) -> Array[Int]:
        """
        Sub-concept id of each component within its class block.

        Majority components are numbered 0..num_majority-1 and minority
        components 0..k-num_majority-1.
        """
        num_majority = int(num_majority)
        if not 1 <= num_majority < self._k:
            raise ValueError(
                f"num_majority must satisfy 1 <= num_majority < {self._k}. Got {num_majority}."
            )
        idx = np.arange(self._k)
        return np.where(idx < num_majority, idx, idx - num_majority)

    def restart(self, instance_seed: int, model_seed: int) -> None:
        """Reseed both streams; weights and components are left as they are."""
        self._streams.reseed(instance_seed, model_seed)
        logger.debug("restarted mixture with instance_seed=%d model_seed=%d",
                     self.instance_seed, self.model_seed)

    # ----------------------------- sampling -----------------------------

    def next_instance(self, header: Any = None) -> Instance:
        """
        Draw one labeled point.

        One uniform from the instance stream picks the component, then that
        component draws a point from the same stream. The label is the
        component index.
        """
        rng = self._streams.instance
        index = weighted_index(self._weights, rng.random())
        x = self._components[index].sample(1, rng=rng)[0]
        return Instance(x=x, y=index, header=header)

    def sample_labeled(self, n_samples: int) -> tuple[Array[Float], Array[Int]]:
        """
        Draw `n_samples` labeled points at once, returning ``(X, y)``.

        The draws come from the instance stream in a batched order, so the
        sequence differs from calling `next_instance` repeatedly.
        """
        n = int(n_samples)
        rng = self._streams.instance
        y = weighted_index(self._weights, rng.random(n))
        X = np.empty((n, self._d), dtype=float)
        for i, comp in enumerate(self._components):
            mask = y == i
            count = int(mask.sum())
            if count:
                X[mask] = comp.sample(count, rng=rng)
        return X, y

    def sample(self, n_samples: int = 1) -> Array[Float]:
        X, _ = self.sample_labeled(n_samples)
        return X

    def density(self, x: ArrayLike) -> Array[Float]:
        """
        Mixture pdf: sum_i w_i * N(x | mean_i, cov_i). Returns (n,).
        """
        X = _ensure_points(x, self._d, copy=False)
        out = np.zeros(X.shape[0], dtype=float)
        for w, comp in zip(self._weights, self._components):
            out += w * comp.density(X)
        return out

    def log_density(self, x: ArrayLike) -> Array[Float]:
        """
        Log pdf via log-sum-exp over components. Returns (n,).
        """
        X = _ensure_points(x, self._d, copy=False)
        logs = np.stack([comp.log_density(X) for comp in self._components])
        return logsumexp(logs, axis=0, b=self._weights[:, None])

    def __repr__(self) -> str:
        return (f"MixtureModel(num_components={self._k}, dim={self._d}, "
                f"instance_seed={self.instance_seed}, model_seed={self.model_seed})")
