from .search import (
    DriftCandidate,
    DriftResult,
    DriftSearch,
    DriftSearchError,
    SearchPolicy,
    SearchState,
    adjust_mixture_model,
)
