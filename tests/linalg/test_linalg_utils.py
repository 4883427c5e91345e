# tests/linalg/test_linalg_utils.py
import numpy as np
import pytest

from mixdrift.linalg import utils as U


def test_add_diag_jitter():
    M = np.eye(3)
    out = U.add_diag_jitter(M, jitter=1e-3, copy=True)
    assert out is not M
    assert np.allclose(np.diag(out), np.diag(M) + 1e-3)

    jitter_arr = np.array([1e-3, 2e-3, 3e-3])
    out2 = U.add_diag_jitter(M, jitter=jitter_arr, copy=True)
    assert np.allclose(np.diag(out2), np.ones(3) + jitter_arr)

    M2 = np.eye(3)
    ret = U.add_diag_jitter(M2, jitter=1e-4, copy=False)
    assert ret is M2
    assert np.allclose(np.diag(M2), np.ones(3) + 1e-4)

    with pytest.raises(ValueError):
        U.add_diag_jitter(np.eye(3), jitter=np.array([1e-3, 2e-3]))


def test_is_symmetric():
    A = np.array([[1.0, 0.3], [0.3, 2.0]])
    assert U.is_symmetric(A)
    A[0, 1] = 0.4
    assert not U.is_symmetric(A)


def test_is_positive_semidefinite_accepts_singular_and_rejects_indefinite():
    assert U.is_positive_semidefinite(np.eye(2))
    # rank one, still a valid covariance
    v = np.array([[1.0], [2.0]])
    assert U.is_positive_semidefinite(v @ v.T)
    assert not U.is_positive_semidefinite(np.array([[1.0, 0.0], [0.0, -1.0]]))
    assert not U.is_positive_semidefinite(np.array([[1.0, 0.5], [0.2, 1.0]]))
