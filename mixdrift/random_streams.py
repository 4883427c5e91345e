# random_streams.py
"""
Independently seeded random streams for a mixture model.

The construction stream draws weights, means and covariance factors; the
instance stream draws component indices and Gaussian samples. Keeping them
apart means that resampling instances never perturbs the geometry of a model,
and that a model can be rebuilt exactly from its two seeds.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .custom_types import PRNG

# Stream tags mixed into the seed so that equal seeds still give
# uncorrelated construction and instance sequences.
MODEL_STREAM = 0
INSTANCE_STREAM = 1
MONTE_CARLO_STREAM = 2
JITTER_STREAM = 3
BLEND_STREAM = 4


def make_rng(seed: int, stream: int) -> PRNG:
    """Deterministically create the generator for `stream` from `seed`."""
    return np.random.default_rng(np.random.SeedSequence([int(seed), int(stream)]))


def reseed_in_place(rng: PRNG, seed: int, stream: int) -> None:
    """Reset `rng` to the state `make_rng(seed, stream)` would start from.

    Objects holding a reference to `rng` see the new state.
    """
    rng.bit_generator.state = make_rng(seed, stream).bit_generator.state


@dataclass
class RandomStreams:
    instance_seed: int
    model_seed: int
    model: PRNG = field(init=False, repr=False)
    instance: PRNG = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.instance_seed = int(self.instance_seed)
        self.model_seed = int(self.model_seed)
        self.model = make_rng(self.model_seed, MODEL_STREAM)
        self.instance = make_rng(self.instance_seed, INSTANCE_STREAM)

    def reseed(self, instance_seed: int, model_seed: int) -> None:
        """Reseed both streams in place."""
        self.instance_seed = int(instance_seed)
        self.model_seed = int(model_seed)
        reseed_in_place(self.model, self.model_seed, MODEL_STREAM)
        reseed_in_place(self.instance, self.instance_seed, INSTANCE_STREAM)
