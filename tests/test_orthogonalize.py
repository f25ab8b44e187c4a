import numpy as np
import pytest
import torch

from krylov_orthogonalization import orthogonalize
from krylov_orthogonalization.utils import orthogonal
from krylov_orthogonalization.utils.orthogonal import (
    get_method,
    get_method_names,
    method_accepts_skip,
    register_method,
)
from krylov_orthogonalization.utils.orthogonal_ops import (
    SkipCountError,
    qr_orthogonalization,
)


@torch.no_grad()
def _is_orth(Q, atol=1e-10):
    I = torch.eye(Q.shape[1], dtype=Q.dtype)
    return torch.allclose(Q.mH @ Q, I, atol=atol)


def test_default_methods_registered():
    assert set(get_method_names()) == {
        "gs",
        "mgs",
        "twice_is_enough",
        "qr",
        "partial",
        "jens_wehner",
    }


def test_unknown_method():
    with pytest.raises(ValueError, match="Unknown orthogonalization method"):
        get_method("householder")
    with pytest.raises(ValueError):
        orthogonalize(torch.randn(4, 2), 0, "householder")


@pytest.mark.parametrize("method", ["gs", "mgs", "twice_is_enough", "qr", "jens_wehner"])
def test_full_orthogonalization(method):
    torch.manual_seed(0)
    A = torch.randn(12, 5, dtype=torch.float64)
    Q = orthogonalize(A, 0, method)
    assert Q is A
    assert _is_orth(Q)


def test_default_method_is_mgs():
    torch.manual_seed(1)
    A = torch.randn(8, 3, dtype=torch.float64)
    expected = get_method("mgs")(A.clone(), 0)
    assert torch.equal(orthogonalize(A), expected)


@pytest.mark.parametrize("method", ["gs", "mgs", "twice_is_enough", "partial", "jens_wehner"])
def test_skip_guard_through_dispatcher(method):
    A = torch.randn(6, 4, dtype=torch.float64)
    with pytest.raises(SkipCountError):
        orthogonalize(A, 4, method)
    with pytest.raises(SkipCountError):
        orthogonalize(A, -1, method)


def test_qr_ignores_skip():
    torch.manual_seed(2)
    A = torch.randn(7, 4, dtype=torch.float64)
    expected = qr_orthogonalization(A.clone())
    orthogonalize(A, 2, "qr")
    assert torch.equal(A, expected)
    assert not method_accepts_skip("qr")
    assert method_accepts_skip("jens_wehner")


def test_numpy_array_mutated_in_place():
    arr = np.random.default_rng(0).standard_normal((10, 4))
    out = orthogonalize(arr, 0, "mgs")
    assert out is arr
    np.testing.assert_allclose(arr.T @ arr, np.eye(4), atol=1e-12)


def test_numpy_extension_keeps_prefix():
    rng = np.random.default_rng(1)
    prefix = np.linalg.qr(rng.standard_normal((10, 3)))[0]
    arr = np.concatenate([prefix, rng.standard_normal((10, 2))], axis=1)
    orthogonalize(arr, 3, "jens_wehner")
    np.testing.assert_array_equal(arr[:, :3], prefix)
    np.testing.assert_allclose(arr.T @ arr, np.eye(5), atol=1e-12)


def test_register_custom_method(monkeypatch):
    monkeypatch.setattr(orthogonal, "_METHODS", dict(orthogonal._METHODS))
    monkeypatch.setattr(orthogonal, "_SKIP_AWARE", set(orthogonal._SKIP_AWARE))

    def scale_only(matrix, left_cols_to_skip=0):
        matrix[:, left_cols_to_skip:] *= 2
        return matrix

    register_method("scale_only", scale_only)
    assert "scale_only" in get_method_names()
    A = torch.ones(3, 2)
    orthogonalize(A, 1, "scale_only")
    assert torch.equal(A, torch.tensor([[1.0, 2.0], [1.0, 2.0], [1.0, 2.0]]))
