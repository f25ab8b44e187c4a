"""Name registry and single entry point for the orthogonalization routines.

Implements:
- classical, modified and twice-is-enough Gram-Schmidt ("gs", "mgs", "twice_is_enough")
- Householder QR ("qr"), which ignores the skip count
- partial and Jens-Wehner basis extension ("partial", "jens_wehner")
"""

from __future__ import annotations

from typing import Callable, Dict, Union

import numpy as np
import torch

from .orthogonal_ops import (
    gs_orthogonalization,
    jens_wehner_orthogonalization,
    mgs_orthogonalization,
    partial_orthogonalization,
    qr_orthogonalization,
    twice_is_enough_orthogonalization,
)

Orthogonalizer = Callable[[torch.Tensor, int], torch.Tensor]

_METHODS: Dict[str, Orthogonalizer] = {}
_SKIP_AWARE = set()


def get_method_names() -> list[str]:
    """Get names of all registered orthogonalization methods."""
    return list(_METHODS.keys())


def register_method(name: str, fn: Orthogonalizer, accepts_skip: bool = True):
    _METHODS[name] = fn
    if accepts_skip:
        _SKIP_AWARE.add(name)
    else:
        _SKIP_AWARE.discard(name)


def get_method(name: str) -> Orthogonalizer:
    if name not in _METHODS:
        raise ValueError(f"Unknown orthogonalization method {name}")
    return _METHODS[name]


def method_accepts_skip(name: str) -> bool:
    get_method(name)
    return name in _SKIP_AWARE


def orthogonalize(
    matrix: Union[torch.Tensor, np.ndarray],
    left_cols_to_skip: int = 0,
    method: str = "mgs",
):
    """Orthogonalize ``matrix`` in place with the named method and return it.

    NumPy arrays are wrapped without copying, so the array passed in is the
    one that gets mutated and returned.
    """
    fn = get_method(method)
    if isinstance(matrix, np.ndarray):
        fn(torch.from_numpy(matrix), left_cols_to_skip)
        return matrix
    return fn(matrix, left_cols_to_skip)


def _qr_ignoring_skip(matrix: torch.Tensor, left_cols_to_skip: int = 0) -> torch.Tensor:
    return qr_orthogonalization(matrix)


# Register defaults
register_method("gs", gs_orthogonalization)
register_method("mgs", mgs_orthogonalization)
register_method("twice_is_enough", twice_is_enough_orthogonalization)
register_method("qr", _qr_ignoring_skip, accepts_skip=False)
register_method("partial", partial_orthogonalization)
register_method("jens_wehner", jens_wehner_orthogonalization)
