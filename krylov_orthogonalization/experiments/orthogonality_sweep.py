"""Orthogonality Sweep
===================
Measures how much orthogonality each method loses as the input gets closer
to rank deficiency.

For every pair (method, condition number)
* ``n_trials`` random ``n x m`` matrices ``A = U diag(s) V^H`` are built with
  singular values spread log-uniformly between ``1`` and ``1 / cond``,
* ``A`` is orthogonalized from scratch (``left_cols_to_skip = 0``),
* the deviation ``||Q^H Q - I||_F`` is recorded and averaged over the trials.

One output is saved in the working directory Hydra places us in
(``${hydra:runtime.output_dir}``):

* **orthogonality_sweep.png** – log-log curves of deviation vs condition
  number, one per method.

Run with e.g.::

    python -m krylov_orthogonalization.experiments.orthogonality_sweep \
        sweep.methods="[gs,mgs,twice_is_enough,qr]" \
        sweep.condition_numbers="[1e2,1e6,1e10]" \
        matrix.dtype=complex128 wandb.mode=online
"""

from __future__ import annotations

import itertools
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

import hydra
import matplotlib.pyplot as plt
import numpy as np
import torch
import wandb
from omegaconf import DictConfig, OmegaConf
from tqdm import tqdm

from krylov_orthogonalization.utils.metrics import orthogonality_deviation
from krylov_orthogonalization.utils.orthogonal import orthogonalize
from krylov_orthogonalization.utils.type_traits import element_type


# -----------------------------------------------------------------------------
#  Hyper-parameter / experiment configuration handled by Hydra
# -----------------------------------------------------------------------------


@dataclass
class MatrixCfg:
    seed: int = 0
    rows: int = 200
    cols: int = 40
    dtype: str = "float64"
    device: str = "cpu"


@dataclass
class SweepCfg:
    methods: List[str] = field(
        default_factory=lambda: ["gs", "mgs", "twice_is_enough", "qr"]
    )
    condition_numbers: List[float] = field(
        default_factory=lambda: [1e1, 1e3, 1e5, 1e7, 1e9, 1e11]
    )
    n_trials: int = 3


@dataclass
class WandbCfg:
    project: str = "krylov-orthogonalization"
    mode: str = "disabled"


@dataclass
class Config:
    matrix: MatrixCfg = field(default_factory=MatrixCfg)
    sweep: SweepCfg = field(default_factory=SweepCfg)
    wandb: WandbCfg = field(default_factory=WandbCfg)


# -----------------------------------------------------------------------------
#  Matrix utilities
# -----------------------------------------------------------------------------


def resolve_device(name: str) -> torch.device:
    if name == "cuda" and not torch.cuda.is_available():
        raise RuntimeError("CUDA is not available, but 'device' is set to 'cuda'.")
    return torch.device(name)


def build_test_matrix(
    rows: int,
    cols: int,
    cond: float,
    generator: torch.Generator,
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """Random ``rows x cols`` matrix with 2-norm condition number ``cond``."""

    U = torch.linalg.qr(torch.randn(rows, cols, generator=generator, dtype=dtype))[0]
    V = torch.linalg.qr(torch.randn(cols, cols, generator=generator, dtype=dtype))[0]
    s = torch.logspace(0, -math.log10(cond), cols, dtype=element_type(dtype))
    return (U * s) @ V.mH


def run_sweep(cfg: Config) -> Dict[Tuple[str, float], float]:
    """Return the mean orthogonality deviation for every (method, cond) pair."""

    generator = torch.Generator().manual_seed(cfg.matrix.seed)
    dtype = getattr(torch, cfg.matrix.dtype)
    device = resolve_device(cfg.matrix.device)

    results: Dict[Tuple[str, float], float] = {}
    grid = list(itertools.product(cfg.sweep.methods, cfg.sweep.condition_numbers))
    for method, cond in tqdm(grid, desc="sweep"):
        deviations = []
        for _ in range(cfg.sweep.n_trials):
            A = build_test_matrix(
                cfg.matrix.rows, cfg.matrix.cols, cond, generator, dtype
            ).to(device)
            Q = orthogonalize(A, 0, method)
            deviations.append(orthogonality_deviation(Q))
        results[(method, cond)] = float(np.mean(deviations))
    return results


# -----------------------------------------------------------------------------
#  Plotting utilities
# -----------------------------------------------------------------------------


def plot_sweep(
    results: Dict[Tuple[str, float], float],
    cfg: Config,
    workdir: Path,
) -> Path:
    """Save deviation-vs-condition curves, one line per method."""

    conds = cfg.sweep.condition_numbers
    fig, ax = plt.subplots(figsize=(6, 4))
    for method in cfg.sweep.methods:
        # a deviation of exactly 0 cannot be drawn on a log axis
        devs = [max(results[(method, c)], np.finfo(float).tiny) for c in conds]
        ax.loglog(conds, devs, marker="o", label=method)
    ax.set_xlabel("condition number κ(A)")
    ax.set_ylabel("||Q^H Q - I||_F")
    ax.set_title(f"{cfg.matrix.rows}x{cfg.matrix.cols} {cfg.matrix.dtype}")
    ax.grid(True, which="both", linestyle=":", linewidth=0.6, alpha=0.7)
    ax.legend(fontsize="small")
    fig.tight_layout()
    out_path = workdir / "orthogonality_sweep.png"
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    print(f"Saved orthogonality sweep → {out_path}")
    return out_path


# -----------------------------------------------------------------------------
#  Main driver
# -----------------------------------------------------------------------------


@hydra.main(version_base="1.3", config_path=None, config_name=None)
def main(cfg: DictConfig):  # noqa: D401  – Hydra passes DictConfig
    cfg = OmegaConf.merge(OmegaConf.structured(Config()), cfg)
    print("Loaded configuration:\n" + OmegaConf.to_yaml(cfg))

    torch.manual_seed(cfg.matrix.seed)
    np.random.seed(cfg.matrix.seed)

    workdir = Path(os.getcwd())  # Hydra changes cwd → output dir

    wandb.init(
        project=cfg.wandb.project,
        mode=cfg.wandb.mode,
        config=OmegaConf.to_container(cfg, resolve=True),
    )
    results = run_sweep(cfg)
    for (method, cond), dev in results.items():
        print(f"{method:>16s} | κ={cond:8.1e} | orth_dev={dev:.3e}")
        wandb.log({f"{method}/orth_dev": dev, "log10_cond": math.log10(cond)})

    plot_sweep(results, cfg, workdir)
    wandb.finish()


if __name__ == "__main__":
    main()
