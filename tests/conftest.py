import pytest
import numpy as np

from mixdrift.distributions.mixture import MixtureModel
from mixdrift.divergence.hellinger import HellingerEstimator, MonteCarloSettings

@pytest.fixture
def rng():
    return np.random.default_rng(42)

@pytest.fixture
def mixture():
    return MixtureModel(3, 2, instance_seed=5, model_seed=7)

@pytest.fixture
def two_component():
    return MixtureModel(2, 2, instance_seed=1, model_seed=1)

@pytest.fixture
def fast_settings():
    # loose enough to keep each query well under a second
    return MonteCarloSettings(min_samples=100_000, tolerance=5e-3,
                              max_samples=400_000, batch_size=50_000)

@pytest.fixture
def estimator(fast_settings):
    return HellingerEstimator(seed=11, settings=fast_settings)
