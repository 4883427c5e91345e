from .distribution import Distribution
from .gaussian import Gaussian
from .mixture import Instance, MixtureModel, weighted_index
