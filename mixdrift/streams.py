# streams.py
"""
Infinite instance streams built on mixture models.

`DriftStream` moves from a pre-drift mixture to a post-drift mixture over a
drift window; `ImbalancedStream` draws a binary class-imbalanced stream whose
classes are themselves mixtures of sub-concepts.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from .distributions.mixture import Instance, MixtureModel
from .divergence.hellinger import HellingerEstimator, MonteCarloSettings
from .drift.search import DriftSearch, SearchPolicy
from .random_streams import BLEND_STREAM, make_rng, reseed_in_place

__all__ = [
    "DriftType",
    "linear_blend",
    "logistic_blend",
    "DriftStreamConfig",
    "DriftStream",
    "ImbalancedStream",
]

logger = logging.getLogger(__name__)

# Steepness of the logistic ramp; the ramp is rescaled to hit 0 and 1 exactly
# at the ends of the window.
LOGISTIC_STEEPNESS = 10.0


def linear_blend(position: float) -> float:
    """Probability of drawing from the post model at `position` in [0, 1]."""
    return min(max(position, 0.0), 1.0)


def logistic_blend(position: float, steepness: float = LOGISTIC_STEEPNESS) -> float:
    """Logistic ramp through 0.5 at the middle of the window."""
    p = min(max(position, 0.0), 1.0)
    lo = 1.0 / (1.0 + math.exp(0.5 * steepness))
    hi = 1.0 / (1.0 + math.exp(-0.5 * steepness))
    raw = 1.0 / (1.0 + math.exp(-steepness * (p - 0.5)))
    return (raw - lo) / (hi - lo)


class DriftType(enum.Enum):
    """How the stream moves between concepts inside the drift window."""
    INCREMENTAL = "incremental"
    GRADUAL = "gradual"

    def blend(self, position: float) -> float:
        if self is DriftType.INCREMENTAL:
            return linear_blend(position)
        return logistic_blend(position)


@dataclass(frozen=True)
class DriftStreamConfig:
    """Settings of a drift stream built with `DriftStream.from_config`."""
    dim: int = 10
    num_components_pre: int = 2
    num_components_post: int = 2
    burn_in: int = 10_000
    drift_duration: int = 0
    drift_magnitude: float = 0.5
    precision: float = 0.01
    drift_type: DriftType = DriftType.INCREMENTAL
    instance_seed: int = 1
    model_seed: int = 1
    monte_carlo: MonteCarloSettings = MonteCarloSettings()
    policy: SearchPolicy = SearchPolicy()


class DriftStream:
    """
    Stream that switches from `pre` to `post`.

    The first `burn_in` instances come from `pre`. During the next
    `drift_duration` instances each one is drawn from `post` with probability
    ``drift_type.blend(position)``, position running from 0 to 1 across the
    window. Everything after that comes from `post`.
    """

    def __init__(self, pre: MixtureModel, post: MixtureModel, *,
                 burn_in: int = 10_000, drift_duration: int = 0,
                 drift_type: DriftType = DriftType.INCREMENTAL, seed: int = 1):
        if pre.dim != post.dim:
            raise ValueError(f"Dimension mismatch: {pre.dim} vs {post.dim}.")
        if burn_in < 0 or drift_duration < 0:
            raise ValueError("burn_in and drift_duration must be >= 0.")

        self.pre = pre
        self.post = post
        self.burn_in = int(burn_in)
        self.drift_duration = int(drift_duration)
        self.drift_type = DriftType(drift_type)
        self._seed = int(seed)
        self._seeds = ((pre.instance_seed, pre.model_seed), (post.instance_seed, post.model_seed))
        self._rng = make_rng(self._seed, BLEND_STREAM)
        self.num_instances = 0

    @classmethod
    def from_config(cls, config: DriftStreamConfig, *, seed: int | None = None) -> DriftStream:
        estimator = HellingerEstimator(config.instance_seed + config.model_seed, config.monte_carlo)
        search = DriftSearch(
            config.num_components_pre,
            config.num_components_post,
            config.dim,
            config.drift_magnitude,
            config.precision,
            instance_seed=config.instance_seed,
            model_seed=config.model_seed,
            estimator=estimator,
            policy=config.policy,
        )
        result = search.run()
        logger.info("drift stream built: Hellinger distance %.4f between concepts", result.distance)
        return cls(result.pre, result.post, burn_in=config.burn_in,
                   drift_duration=config.drift_duration, drift_type=config.drift_type,
                   seed=config.instance_seed if seed is None else seed)

    @property
    def dim(self) -> int:
        return self.pre.dim

    def post_probability(self, position: int) -> float:
        """Probability that instance number `position` comes from `post`."""
        if position < self.burn_in:
            return 0.0
        if position >= self.burn_in + self.drift_duration:
            return 1.0
        return self.drift_type.blend((position - self.burn_in) / self.drift_duration)

    def next_instance(self, header: Any = None) -> Instance:
        p = self.post_probability(self.num_instances)
        self.num_instances += 1
        if p <= 0.0:
            return self.pre.next_instance(header)
        if p >= 1.0:
            return self.post.next_instance(header)
        model = self.post if self._rng.random() < p else self.pre
        return model.next_instance(header)

    def has_more_instances(self) -> bool:
        return True

    def estimated_remaining_instances(self) -> int:
        return -1

    def restart(self) -> None:
        """Rewind to the first instance."""
        self.num_instances = 0
        (pi, pm), (qi, qm) = self._seeds
        self.pre.restart(pi, pm)
        self.post.restart(qi, qm)
        reseed_in_place(self._rng, self._seed, BLEND_STREAM)


class ImbalancedStream:
    """
    Binary stream with one majority class and one minority class.

    The mixture has ``num_majority + num_minority`` components; the first
    `num_majority` carry `majority_fraction` of the weight and are labeled
    class 0, the rest are labeled class 1. With `concept_marked`, the
    sub-concept id of the generating component is prepended to `x`.
    """

    def __init__(self, num_majority: int, num_minority: int, dim: int, *,
                 majority_fraction: float = 0.9, concept_marked: bool = False,
                 instance_seed: int = 1, model_seed: int = 1):
        if num_majority < 1 or num_minority < 1:
            raise ValueError("num_majority and num_minority must both be >= 1.")
        if not 0.5 < majority_fraction <= 1.0:
            raise ValueError(f"majority_fraction must lie in (0.5, 1]. Got {majority_fraction}.")

        self.num_majority = int(num_majority)
        self.num_minority = int(num_minority)
        self.majority_fraction = float(majority_fraction)
        self.concept_marked = bool(concept_marked)
        self._seeds = (int(instance_seed), int(model_seed))
        self.mixture = MixtureModel(self.num_majority + self.num_minority, dim,
                                    instance_seed, model_seed)
        self._prepare()

    def _prepare(self) -> None:
        self.num_instances = 0
        self.mixture.set_weights(self.num_majority, self.majority_fraction)
        self._concepts = self.mixture.concept_assignments(self.num_majority)

    @property
    def dim(self) -> int:
        """Length of the attribute vector, including the concept mark."""
        return self.mixture.dim + int(self.concept_marked)

    def next_instance(self, header: Any = None) -> Instance:
        inst = self.mixture.next_instance(header)
        x = inst.x
        if self.concept_marked:
            x = np.concatenate([[float(self._concepts[inst.y])], x])
        label = 0 if inst.y < self.num_majority else 1
        self.num_instances += 1
        return Instance(x=x, y=label, header=header)

    def has_more_instances(self) -> bool:
        return True

    def estimated_remaining_instances(self) -> int:
        return -1

    def restart(self) -> None:
        """Reseed the mixture and redraw the class weights from the seeds."""
        self.mixture = MixtureModel(self.num_majority + self.num_minority, self.mixture.dim,
                                    *self._seeds)
        self._prepare()
