import math

import numpy as np
import pytest

from mixdrift.divergence.monte_carlo import MonteCarloState


def test_push_matches_numpy(rng):
    x = rng.normal(size=1000)
    state = MonteCarloState()
    for v in x:
        state.push(float(v))
    assert state.n == 1000
    assert state.mean == pytest.approx(x.mean(), abs=1e-12)
    assert state.variance == pytest.approx(x.var(ddof=1), rel=1e-10)
    assert state.std_error == pytest.approx(x.std(ddof=1) / math.sqrt(1000), rel=1e-10)


def test_batch_update_equals_sequential(rng):
    x = rng.exponential(size=5000)
    seq = MonteCarloState()
    for v in x:
        seq.push(float(v))

    batched = MonteCarloState()
    for chunk in np.array_split(x, 7):
        batched.update(chunk)

    assert batched.n == seq.n
    assert batched.mean == pytest.approx(seq.mean, rel=1e-12)
    assert batched.m2 == pytest.approx(seq.m2, rel=1e-9)


def test_merge_is_order_independent(rng):
    x = rng.uniform(size=3000)
    a, b = MonteCarloState(), MonteCarloState()
    a.update(x[:1000])
    b.update(x[1000:])

    ab = MonteCarloState()
    ab.merge(a)
    ab.merge(b)
    ba = MonteCarloState()
    ba.merge(b)
    ba.merge(a)

    for s in (ab, ba):
        assert s.n == 3000
        assert s.mean == pytest.approx(x.mean(), rel=1e-12)
        assert s.variance == pytest.approx(x.var(ddof=1), rel=1e-10)


def test_degenerate_states():
    state = MonteCarloState()
    assert math.isnan(state.variance)
    assert state.std_error == math.inf
    state.update([])
    assert state.n == 0
    state.push(2.0)
    assert state.mean == 2.0
    assert math.isnan(state.variance)
