"""Per-scalar-type numeric limits for eigensolver thresholds.

``safe_min`` is the smallest positive value that can be safely used as a
breakdown/convergence floor. It is exact for the built-in IEEE types and
falls back to ``epsilon ** 3`` for everything else (half precision, bfloat16,
...).
"""

from __future__ import annotations

from typing import Union

import numpy as np
import torch

DTypeLike = Union[torch.dtype, np.dtype, type, str]

_TORCH_SAFE_MIN = {
    torch.float32: torch.finfo(torch.float32).tiny,
    torch.float64: torch.finfo(torch.float64).tiny,
}

_NUMPY_SAFE_MIN = {
    np.dtype(np.float32): float(np.finfo(np.float32).tiny),
    np.dtype(np.float64): float(np.finfo(np.float64).tiny),
    np.dtype(np.longdouble): np.finfo(np.longdouble).tiny,
}


def element_type(dtype: DTypeLike):
    """Real element type of a scalar type, e.g. ``complex128 -> float64``."""
    if isinstance(dtype, torch.dtype):
        return torch.empty((), dtype=dtype).real.dtype
    return np.finfo(np.dtype(dtype)).dtype


def epsilon(dtype: DTypeLike) -> float:
    real = element_type(dtype)
    if isinstance(real, torch.dtype):
        return torch.finfo(real).eps
    return float(np.finfo(real).eps)


def safe_min(dtype: DTypeLike):
    """Smallest safe positive value; ``epsilon ** 3`` for non built-in types."""
    real = element_type(dtype)
    table = _TORCH_SAFE_MIN if isinstance(real, torch.dtype) else _NUMPY_SAFE_MIN
    if real in table:
        return table[real]
    eps = epsilon(real)
    return eps * eps * eps
