from .cholesky import (
    canonical_lower_factor,
    covariance_from_factor,
    random_lower_factor,
)
from .utils import add_diag_jitter, is_positive_semidefinite, is_symmetric
