import math

import numpy as np
import pytest

from mixdrift.distributions.mixture import MixtureModel
from mixdrift.divergence.hellinger import (
    HellingerEstimator,
    MonteCarloSettings,
    hellinger_distance,
    integration_range,
)


def _single_gaussian(mean, scale, seed=1):
    mm = MixtureModel(1, 2, seed, seed)
    mm.set_component(0, mean=mean, lower_chol=scale * np.eye(2))
    return mm


def test_self_distance_is_zero_within_error(estimator, two_component):
    res = estimator.estimate(two_component, two_component)
    assert res.squared_distance <= 3.0 * res.error + 1e-3
    assert res.n_samples >= estimator.settings.min_samples


def test_symmetry(estimator, two_component):
    other = MixtureModel.from_model(two_component, 2, 0.6, 2, 2)
    ab = estimator.estimate(two_component, other)
    ba = estimator.estimate(other, two_component)
    assert ab.distance == pytest.approx(ba.distance, abs=1e-12)
    assert ab.n_samples == ba.n_samples


def test_repeated_queries_are_reproducible(estimator, two_component):
    other = MixtureModel.from_model(two_component, 2, 0.4, 3, 3)
    assert estimator.distance(two_component, other) == estimator.distance(two_component, other)


def test_one_off_helper_matches_estimator(estimator, fast_settings, two_component):
    other = MixtureModel.from_model(two_component, 2, 0.4, 3, 3)
    d = hellinger_distance(two_component, other, seed=11, settings=fast_settings)
    assert d == estimator.distance(two_component, other)


def test_matches_closed_form_for_two_gaussians(estimator):
    # equal isotropic covariances: H^2 = 1 - exp(-|mu1 - mu2|^2 / (8 s^2))
    p = _single_gaussian([0.0, 0.0], 1.0)
    q = _single_gaussian([1.5, 0.0], 1.0)
    expected = math.sqrt(1.0 - math.exp(-1.5 ** 2 / 8.0))
    res = estimator.estimate(p, q)
    assert res.distance == pytest.approx(expected, abs=0.02)


def test_far_apart_mixtures_approach_one(estimator):
    p = _single_gaussian([-10.0, 0.0], 0.5)
    q = _single_gaussian([10.0, 0.0], 0.5)
    assert estimator.distance(p, q) == pytest.approx(1.0, abs=0.02)


def test_out_of_reach_exit_is_flagged(two_component):
    settings = MonteCarloSettings(min_samples=50_000, tolerance=1e-6,
                                  max_samples=2_000_000, batch_size=50_000)
    est = HellingerEstimator(seed=3, settings=settings)
    res = est.estimate(two_component, two_component, target=0.9)
    assert res.out_of_reach
    assert not res.converged
    assert res.n_samples < settings.max_samples


def test_sample_cap_bounds_the_query(two_component):
    settings = MonteCarloSettings(min_samples=10_000, tolerance=1e-9,
                                  max_samples=60_000, batch_size=25_000)
    est = HellingerEstimator(seed=3, settings=settings)
    res = est.estimate(two_component, MixtureModel.from_model(two_component, 2, 0.5, 4, 4))
    assert res.n_samples == 60_000
    assert not res.converged and not res.out_of_reach


def test_cancel_ends_query_like_out_of_reach(estimator, two_component):
    res = estimator.estimate(two_component, two_component, cancel=lambda: True)
    assert res.out_of_reach
    assert res.n_samples == estimator.settings.batch_size


def test_fixed_integrate_range(fast_settings, two_component):
    est = HellingerEstimator(seed=1, settings=fast_settings, integrate_range=30.0)
    assert est.estimate(two_component, two_component).integrate_range == 30.0
    with pytest.raises(ValueError):
        HellingerEstimator(integrate_range=-1.0)


def test_reseed_changes_the_stream(estimator, two_component):
    other = MixtureModel.from_model(two_component, 2, 0.5, 2, 2)
    before = estimator.distance(two_component, other)
    estimator.reseed(12345)
    assert estimator.seed == 12345
    assert estimator.distance(two_component, other) != before


def test_integration_range_covers_means(two_component):
    R = integration_range(two_component)
    for i in range(two_component.num_components):
        assert np.all(np.abs(two_component.mean(i)) <= R / 2)
    with pytest.raises(ValueError):
        integration_range()


def test_dimension_mismatch(estimator):
    with pytest.raises(ValueError):
        estimator.estimate(MixtureModel(2, 2, 1, 1), MixtureModel(2, 3, 1, 1))


@pytest.mark.parametrize("kwargs", [
    dict(min_samples=1),
    dict(min_samples=100, max_samples=10),
    dict(batch_size=0),
    dict(tolerance=0.0),
])
def test_settings_validation(kwargs):
    with pytest.raises(ValueError):
        MonteCarloSettings(**kwargs)
