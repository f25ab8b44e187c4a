"""Block Krylov basis growth.

Extends an orthonormal basis one block at a time, the way a block
Arnoldi/Lanczos iteration does: the next block is ``A @ last_block`` and is
orthogonalized with ``left_cols_to_skip`` equal to the current basis width.
After every step the loss of orthogonality of the whole basis is recorded,
together with whether the already-built prefix survived bit-for-bit.

Saves **krylov_extension.png** (deviation vs basis width, one line per
method) in the Hydra run directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import hydra
import matplotlib.pyplot as plt
import numpy as np
import torch
import wandb
from omegaconf import DictConfig, OmegaConf
from tqdm import tqdm

from krylov_orthogonalization.experiments.orthogonality_sweep import (
    WandbCfg,
    resolve_device,
)
from krylov_orthogonalization.utils.metrics import orthogonality_deviation
from krylov_orthogonalization.utils.orthogonal import orthogonalize
from krylov_orthogonalization.utils.orthogonal_ops import qr_orthogonalization


@dataclass
class KrylovCfg:
    seed: int = 0
    dim: int = 300
    block_size: int = 4
    n_steps: int = 15
    dtype: str = "float64"
    device: str = "cpu"
    methods: List[str] = field(
        default_factory=lambda: [
            "gs",
            "mgs",
            "twice_is_enough",
            "partial",
            "jens_wehner",
        ]
    )


@dataclass
class Config:
    krylov: KrylovCfg = field(default_factory=KrylovCfg)
    wandb: WandbCfg = field(default_factory=WandbCfg)


def random_hermitian(
    dim: int, generator: torch.Generator, dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    B = torch.randn(dim, dim, generator=generator, dtype=dtype)
    return 0.5 * (B + B.mH)


def grow_krylov_basis(
    operator: torch.Tensor,
    start_block: torch.Tensor,
    n_steps: int,
    method: str,
) -> tuple[torch.Tensor, List[Dict[str, float]]]:
    """Build ``[V_0, V_1, ...]`` with ``V_{i+1} = orth(A V_i)`` against everything before.

    Returns the basis and one record per extension step.
    """

    dim, block = start_block.shape
    basis = torch.zeros(
        dim, block * (n_steps + 1), dtype=start_block.dtype, device=start_block.device
    )
    basis[:, :block] = start_block
    qr_orthogonalization(basis[:, :block])

    history: List[Dict[str, float]] = []
    for step in range(n_steps):
        width = block * (step + 1)
        basis[:, width : width + block] = operator @ basis[:, width - block : width]
        prefix = basis[:, :width].clone()

        current = basis[:, : width + block]
        orthogonalize(current, width, method)

        history.append(
            {
                "step": step,
                "width": width + block,
                "orth_dev": orthogonality_deviation(current),
                "prefix_intact": float(torch.equal(prefix, basis[:, :width])),
            }
        )
    return basis, history


def plot_histories(
    histories: Dict[str, List[Dict[str, float]]], cfg: Config, workdir: Path
) -> Path:
    fig, ax = plt.subplots(figsize=(6, 4))
    for method, history in histories.items():
        widths = [h["width"] for h in history]
        devs = [max(h["orth_dev"], np.finfo(float).tiny) for h in history]
        ax.semilogy(widths, devs, marker=".", label=method)
    ax.set_xlabel("basis width")
    ax.set_ylabel("||V^H V - I||_F")
    ax.set_title(f"block Krylov, n={cfg.krylov.dim}, block={cfg.krylov.block_size}")
    ax.grid(True, which="both", linestyle=":", linewidth=0.6, alpha=0.7)
    ax.legend(fontsize="small")
    fig.tight_layout()
    out_path = workdir / "krylov_extension.png"
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    print(f"Saved Krylov extension curves → {out_path}")
    return out_path


@hydra.main(version_base="1.3", config_path=None, config_name=None)
def main(cfg: DictConfig):
    cfg = OmegaConf.merge(OmegaConf.structured(Config()), cfg)
    print("Loaded configuration:\n" + OmegaConf.to_yaml(cfg))

    kcfg = cfg.krylov
    device = resolve_device(kcfg.device)
    dtype = getattr(torch, kcfg.dtype)
    generator = torch.Generator().manual_seed(kcfg.seed)
    operator = random_hermitian(kcfg.dim, generator, dtype).to(device)
    start_block = torch.randn(
        kcfg.dim, kcfg.block_size, generator=generator, dtype=dtype
    ).to(device)

    wandb.init(
        project=cfg.wandb.project,
        mode=cfg.wandb.mode,
        config=OmegaConf.to_container(cfg, resolve=True),
    )

    histories: Dict[str, List[Dict[str, float]]] = {}
    for method in tqdm(kcfg.methods, desc="methods"):
        _, history = grow_krylov_basis(operator, start_block, kcfg.n_steps, method)
        histories[method] = history
        for h in history:
            wandb.log(
                {
                    f"{method}/orth_dev": h["orth_dev"],
                    f"{method}/prefix_intact": h["prefix_intact"],
                    "width": h["width"],
                }
            )
        final = history[-1]
        print(
            f"{method:>16s} | width={final['width']:4d} | "
            f"orth_dev={final['orth_dev']:.3e} | "
            f"prefix intact: {all(h['prefix_intact'] for h in history)}"
        )

    plot_histories(histories, cfg, Path(os.getcwd()))
    wandb.finish()


if __name__ == "__main__":
    main()
