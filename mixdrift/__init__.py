from mixdrift.distributions.gaussian import Gaussian
from mixdrift.distributions.mixture import Instance, MixtureModel, weighted_index
from mixdrift.divergence.hellinger import (
    HellingerEstimator,
    HellingerResult,
    MonteCarloSettings,
    hellinger_distance,
    integration_range,
)
from mixdrift.divergence.monte_carlo import MonteCarloState
from mixdrift.drift.search import (
    DriftResult,
    DriftSearch,
    DriftSearchError,
    SearchPolicy,
    SearchState,
    adjust_mixture_model,
)
from mixdrift.random_streams import RandomStreams
from mixdrift.streams import DriftStream, DriftStreamConfig, DriftType, ImbalancedStream

__version__ = "0.1.0"
