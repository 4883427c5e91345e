from .monte_carlo import MonteCarloState
from .hellinger import (
    HellingerEstimator,
    HellingerResult,
    MonteCarloSettings,
    hellinger_distance,
    integration_range,
)
