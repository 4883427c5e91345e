# drift/search.py
"""
Search for a post-drift mixture at a target Hellinger distance from a
pre-drift mixture.

The search is a small state machine:

    SEARCHING_PRE -> SEARCHING_POST -> ADJUSTING -> CONVERGED
          ^                |  ^            |
          |                |  +------------+   candidate abandoned
          +----------------+                   attempt budget spent

and ABANDONED once the restart budget of the `SearchPolicy` is spent.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

import numpy as np

from ..custom_types import PRNG
from ..distributions.mixture import MixtureModel
from ..divergence.hellinger import HellingerEstimator, HellingerResult
from ..linalg.cholesky import canonical_lower_factor
from ..random_streams import JITTER_STREAM, make_rng

__all__ = [
    "SearchState",
    "SearchPolicy",
    "DriftCandidate",
    "DriftResult",
    "DriftSearch",
    "DriftSearchError",
    "adjust_mixture_model",
]

logger = logging.getLogger(__name__)


class DriftSearchError(RuntimeError):
    """Raised when the restart budget runs out before a post model is found."""


class SearchState(enum.Enum):
    SEARCHING_PRE = "searching_pre"
    SEARCHING_POST = "searching_post"
    ADJUSTING = "adjusting"
    CONVERGED = "converged"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class SearchPolicy:
    """
    Budgets of the drift search.

    Attributes:
        max_attempts: Fresh post candidates tried per pre model.
        miss_budget: Cumulative |miss| allowed while adjusting one candidate.
        max_restarts: New pre models tried after the first one. None means
            no limit, which can loop forever on an unreachable target.
        jitter: Half-width of the uniform noise added by each adjustment.
        confidence: Standard errors of the accepted estimate that must also
            fit inside the precision band.
    """
    max_attempts: int = 100
    miss_budget: float = 5.0
    max_restarts: int | None = 10
    jitter: float = 0.01
    confidence: float = 3.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1.")
        if self.miss_budget <= 0:
            raise ValueError("miss_budget must be > 0.")
        if self.max_restarts is not None and self.max_restarts < 0:
            raise ValueError("max_restarts must be >= 0 or None.")
        if self.jitter < 0:
            raise ValueError("jitter must be >= 0.")
        if self.confidence < 0:
            raise ValueError("confidence must be >= 0.")


@dataclass
class DriftCandidate:
    pre: MixtureModel
    post: MixtureModel
    miss: float
    measurement: HellingerResult


@dataclass
class DriftResult:
    pre: MixtureModel
    post: MixtureModel
    distance: float
    measurement: HellingerResult
    attempts: int
    restarts: int
    state: SearchState = SearchState.CONVERGED
    history: list[SearchState] = field(default_factory=list, repr=False)


def adjust_mixture_model(post: MixtureModel, pre: MixtureModel, miss: float,
                         rng: PRNG, *, jitter: float = 0.01) -> None:
    """
    Nudge `post` in place according to its signed distance miss.

    For every index shared by both models, each weight, mean coordinate and
    lower-triangular factor entry moves by ``miss * (pre - post)`` plus
    U(-jitter, jitter) noise. A positive miss (too far) pulls `post` towards
    `pre`, a negative miss pushes it away. Indices only `post` has get the
    noise alone. Factor diagonals are kept non-negative and weights are
    renormalized.
    """
    if post.dim != pre.dim:
        raise ValueError(f"Dimension mismatch: {post.dim} vs {pre.dim}.")

    d = post.dim
    shared = min(post.num_components, pre.num_components)
    tril = np.tril(np.ones((d, d), dtype=bool))

    weights = post.weights
    for i in range(post.num_components):
        mean = post.mean(i)
        L = post.lower_chol(i)
        if i < shared:
            weights[i] += miss * (pre.weight(i) - weights[i])
            mean += miss * (pre.mean(i) - mean)
            L += miss * (pre.lower_chol(i) - L)
        weights[i] += rng.uniform(-jitter, jitter)
        mean += rng.uniform(-jitter, jitter, size=d)
        L[tril] += rng.uniform(-jitter, jitter, size=int(tril.sum()))
        post.set_component(i, mean=mean, lower_chol=canonical_lower_factor(L))

    weights = np.clip(weights, 0.0, None)
    if weights.sum() <= 0.0:
        weights = np.ones_like(weights)
    post.assign_weights(weights)


class DriftSearch:
    """
    Find a post-drift mixture whose Hellinger distance to a pre-drift mixture
    is `target_distance` within `precision`.

    Candidates are built with `MixtureModel.from_model`, which already places
    them roughly at the right distance, then adjusted with
    `adjust_mixture_model` until the measured miss, widened by
    `policy.confidence` standard errors, is within `precision` or the
    cumulative miss budget is spent. Each attempt and each restart uses a
    new seed pair derived from the base seeds.

    Args:
        num_components_pre: Components of the pre-drift mixture.
        num_components_post: Components of the post-drift mixture.
        dim: Dimension of both mixtures.
        target_distance: Hellinger distance to reach, in (0, 1).
        precision: Accepted absolute deviation from the target.
        instance_seed, model_seed: Base seeds. The pre model of restart r
            uses ``seed + r * (max_attempts + 1)``; attempt a of that restart
            adds ``a + 1`` on top.
        estimator: Distance estimator; a default one seeded from the base
            seeds is created when omitted.
        policy: Search budgets.
    """

    def __init__(
        self,
        num_components_pre: int,
        num_components_post: int,
        dim: int,
        target_distance: float,
        precision: float,
        *,
        instance_seed: int = 1,
        model_seed: int = 1,
        estimator: HellingerEstimator | None = None,
        policy: SearchPolicy | None = None,
    ):
        if not 0.0 < target_distance < 1.0:
            raise ValueError(f"target_distance must lie in (0, 1). Got {target_distance}.")
        if precision <= 0.0:
            raise ValueError(f"precision must be > 0. Got {precision}.")

        self.num_components_pre = int(num_components_pre)
        self.num_components_post = int(num_components_post)
        self.dim = int(dim)
        self.target_distance = float(target_distance)
        self.precision = float(precision)
        self.instance_seed = int(instance_seed)
        self.model_seed = int(model_seed)
        self.estimator = estimator or HellingerEstimator(self.instance_seed + self.model_seed)
        self.policy = policy or SearchPolicy()
        self._rng = make_rng(self.model_seed, JITTER_STREAM)
        self.state = SearchState.SEARCHING_PRE
        self.history: list[SearchState] = []

    def _enter(self, state: SearchState) -> None:
        logger.debug("drift search: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _seed_offset(self, restart: int, attempt: int = -1) -> int:
        return restart * (self.policy.max_attempts + 1) + attempt + 1

    def _measure(self, pre: MixtureModel, post: MixtureModel) -> DriftCandidate:
        """
        Estimate the distance of a candidate. An estimate that lands inside
        the precision band without converging is repeated without a target,
        so it runs to the tolerance or the sample cap.
        """
        res = self.estimator.estimate(pre, post, self.target_distance)
        if abs(res.distance - self.target_distance) <= self.precision and not res.converged:
            logger.debug("confirming unconverged estimate %.4f (N=%d)", res.distance, res.n_samples)
            res = self.estimator.estimate(pre, post)
        return DriftCandidate(pre=pre, post=post, miss=res.distance - self.target_distance, measurement=res)

    def _accepts(self, candidate: DriftCandidate) -> bool:
        margin = self.policy.confidence * candidate.measurement.distance_error
        return abs(candidate.miss) + margin <= self.precision

    def _adjust(self, candidate: DriftCandidate) -> DriftCandidate:
        """Adjust one candidate until it is accepted or over budget."""
        cumulative = abs(candidate.miss)
        while not self._accepts(candidate) and cumulative < self.policy.miss_budget:
            adjust_mixture_model(candidate.post, candidate.pre, candidate.miss,
                                 self._rng, jitter=self.policy.jitter)
            candidate = self._measure(candidate.pre, candidate.post)
            cumulative += abs(candidate.miss)
        return candidate

    def _build_pre(self, restart: int) -> MixtureModel:
        offset = self._seed_offset(restart)
        return MixtureModel(self.num_components_pre, self.dim,
                            self.instance_seed + offset, self.model_seed + offset)

    def _build_post(self, pre: MixtureModel, restart: int, attempt: int) -> MixtureModel:
        offset = self._seed_offset(restart, attempt)
        return MixtureModel.from_model(pre, self.num_components_post, self.target_distance,
                                       self.instance_seed + offset, self.model_seed + offset)

    def run(self, pre: MixtureModel | None = None) -> DriftResult:
        """
        Run the search.

        Args:
            pre: Pre-drift mixture to use for the first round. If the attempt
                budget is spent on it, later rounds build their own.

        Raises:
            DriftSearchError: If `policy.max_restarts` is exhausted.
        """
        if pre is not None and pre.dim != self.dim:
            raise ValueError(f"pre has dim {pre.dim}, expected {self.dim}.")

        self.state = SearchState.SEARCHING_PRE
        self.history = [self.state]
        restart = 0
        attempts = 0

        while True:
            if pre is None:
                pre = self._build_pre(restart)

            for attempt in range(self.policy.max_attempts):
                self._enter(SearchState.SEARCHING_POST)
                attempts += 1
                candidate = self._measure(pre, self._build_post(pre, restart, attempt))

                if not self._accepts(candidate):
                    self._enter(SearchState.ADJUSTING)
                    candidate = self._adjust(candidate)

                if self._accepts(candidate):
                    self._enter(SearchState.CONVERGED)
                    logger.info(
                        "drift search converged: distance %.4f (target %.4f) after %d attempts, %d restarts",
                        candidate.measurement.distance, self.target_distance, attempts, restart,
                    )
                    return DriftResult(
                        pre=candidate.pre,
                        post=candidate.post,
                        distance=candidate.measurement.distance,
                        measurement=candidate.measurement,
                        attempts=attempts,
                        restarts=restart,
                        state=self.state,
                        history=list(self.history),
                    )

                logger.debug("candidate %d abandoned with miss %.4f", attempt, candidate.miss)

            restart += 1
            pre = None
            if self.policy.max_restarts is not None and restart > self.policy.max_restarts:
                self._enter(SearchState.ABANDONED)
                raise DriftSearchError(
                    f"no post model within {self.precision} of distance {self.target_distance} "
                    f"after {attempts} attempts and {restart - 1} restarts."
                )
            logger.info("drift search restarting with a new pre model (restart %d)", restart)
            self._enter(SearchState.SEARCHING_PRE)
