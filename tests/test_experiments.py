import torch

from krylov_orthogonalization.experiments.krylov_extension import (
    grow_krylov_basis,
    random_hermitian,
)
from krylov_orthogonalization.experiments.orthogonality_sweep import (
    Config,
    build_test_matrix,
    plot_sweep,
    run_sweep,
)


def _small_cfg():
    cfg = Config()
    cfg.matrix.rows = 30
    cfg.matrix.cols = 6
    cfg.sweep.methods = ["mgs", "qr"]
    cfg.sweep.condition_numbers = [1e1, 1e3]
    cfg.sweep.n_trials = 2
    return cfg


def test_build_test_matrix_condition_number():
    generator = torch.Generator().manual_seed(0)
    A = build_test_matrix(20, 5, 1e3, generator)
    assert A.shape == (20, 5)
    s = torch.linalg.svdvals(A)
    assert abs((s[0] / s[-1]).item() / 1e3 - 1) < 1e-8


def test_build_test_matrix_complex():
    generator = torch.Generator().manual_seed(0)
    A = build_test_matrix(10, 3, 1e2, generator, dtype=torch.complex128)
    assert A.dtype == torch.complex128


def test_run_sweep_and_plot(tmp_path):
    cfg = _small_cfg()
    results = run_sweep(cfg)
    assert set(results) == {(m, c) for m in ["mgs", "qr"] for c in [1e1, 1e3]}
    assert results[("qr", 1e3)] < 1e-12
    assert results[("mgs", 1e1)] < 1e-12
    out = plot_sweep(results, cfg, tmp_path)
    assert out.exists()


def test_krylov_extension_jens_wehner():
    generator = torch.Generator().manual_seed(0)
    A = random_hermitian(60, generator)
    start = torch.randn(60, 2, generator=generator, dtype=torch.float64)
    basis, history = grow_krylov_basis(A, start, 5, "jens_wehner")
    assert basis.shape == (60, 12)
    assert len(history) == 5
    assert all(h["prefix_intact"] == 1.0 for h in history)
    assert history[-1]["orth_dev"] < 1e-8


def test_krylov_extension_partial_loses_block_orthogonality():
    generator = torch.Generator().manual_seed(1)
    A = random_hermitian(40, generator)
    start = torch.randn(40, 3, generator=generator, dtype=torch.float64)
    _, partial = grow_krylov_basis(A, start, 3, "partial")
    _, mgs = grow_krylov_basis(A, start, 3, "mgs")
    assert all(h["prefix_intact"] == 1.0 for h in partial)
    assert partial[-1]["orth_dev"] > mgs[-1]["orth_dev"]
