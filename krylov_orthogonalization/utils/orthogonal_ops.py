"""In-place orthogonalization of the columns of a basis matrix.

Every routine takes a 2-D tensor whose columns are vectors, mutates it in
place and returns it. Columns ``[0, left_cols_to_skip)`` are treated as an
already-orthonormal frame and are never written; the remaining columns are
orthogonalized. Inner products are Hermitian, so real and complex dtypes are
handled by the same code.
"""

from __future__ import annotations

import torch


class SkipCountError(ValueError):
    """Raised when ``left_cols_to_skip`` is outside ``[0, cols)``."""


# ---------------------------------------------------------------------------
# Guards and helpers
# ---------------------------------------------------------------------------


def check_left_cols_to_skip(matrix: torch.Tensor, left_cols_to_skip: int) -> None:
    if matrix.dim() != 2:
        raise ValueError(f"Expected a 2-D matrix, got shape {tuple(matrix.shape)}")
    if left_cols_to_skip >= matrix.size(1):
        raise SkipCountError("left_cols_to_skip is larger than columns of matrix")
    if left_cols_to_skip < 0:
        raise SkipCountError("left_cols_to_skip is negative")


def normalize_columns_(block: torch.Tensor) -> torch.Tensor:
    """Scale every column of ``block`` to unit Euclidean norm, in place.

    Exactly-zero columns are left as they are.
    """
    norms = torch.linalg.vector_norm(block, dim=0, keepdim=True)
    block /= torch.where(norms > 0, norms, torch.ones_like(norms))
    return block


def treat_first_column(matrix: torch.Tensor, left_cols_to_skip: int) -> int:
    """Bootstrap the recurrence: with nothing skipped, normalize column 0 and skip it."""
    if left_cols_to_skip == 0:
        normalize_columns_(matrix[:, :1])
        left_cols_to_skip = 1
    return left_cols_to_skip


# ---------------------------------------------------------------------------
# Gram-Schmidt family
# ---------------------------------------------------------------------------


@torch.no_grad()
def gs_orthogonalization(matrix: torch.Tensor, left_cols_to_skip: int = 0) -> torch.Tensor:
    """Classical Gram-Schmidt: project each column against all previous ones in one product."""
    check_left_cols_to_skip(matrix, left_cols_to_skip)
    left_cols_to_skip = treat_first_column(matrix, left_cols_to_skip)

    for j in range(left_cols_to_skip, matrix.size(1)):
        Q = matrix[:, :j]
        col = matrix[:, j]
        col -= Q @ (Q.mH @ col)
        normalize_columns_(matrix[:, j : j + 1])
    return matrix


@torch.no_grad()
def mgs_orthogonalization(matrix: torch.Tensor, left_cols_to_skip: int = 0) -> torch.Tensor:
    """Modified Gram-Schmidt.

    Column ``k`` is updated after every single projection, so each coefficient
    ``<q_j, a_k>`` is taken against the running vector rather than the
    original one.
    """
    check_left_cols_to_skip(matrix, left_cols_to_skip)
    left_cols_to_skip = treat_first_column(matrix, left_cols_to_skip)

    for k in range(left_cols_to_skip, matrix.size(1)):
        col = matrix[:, k]
        for j in range(k):
            q = matrix[:, j]
            col -= torch.vdot(q, col) * q
        normalize_columns_(matrix[:, k : k + 1])
    return matrix


@torch.no_grad()
def twice_is_enough_orthogonalization(
    matrix: torch.Tensor, left_cols_to_skip: int = 0
) -> torch.Tensor:
    """Two classical Gram-Schmidt sweeps with the same skip count."""
    gs_orthogonalization(matrix, left_cols_to_skip)
    gs_orthogonalization(matrix, left_cols_to_skip)
    return matrix


# ---------------------------------------------------------------------------
# QR based
# ---------------------------------------------------------------------------


@torch.no_grad()
def qr_orthogonalization(matrix: torch.Tensor) -> torch.Tensor:
    """Replace the whole block by the leading columns of its Householder ``Q`` factor.

    There is no skip count here: pass a column view (``A[:, k:]``) to
    orthogonalize only part of a matrix.
    """
    if matrix.dim() != 2:
        raise ValueError(f"Expected a 2-D matrix, got shape {tuple(matrix.shape)}")
    nrows, ncols = matrix.shape
    if ncols > nrows:
        raise ValueError(
            f"QR orthogonalization needs cols <= rows, got a {nrows}x{ncols} block"
        )
    reflectors, tau = torch.geqrf(matrix)
    # Q applied to the n x m identity
    matrix.copy_(torch.linalg.householder_product(reflectors, tau))
    return matrix


# ---------------------------------------------------------------------------
# Basis extension
# ---------------------------------------------------------------------------


@torch.no_grad()
def partial_orthogonalization(
    matrix: torch.Tensor, left_cols_to_skip: int
) -> torch.Tensor:
    """Orthogonalize the right columns against the fixed left columns only.

    The right columns come out unit-norm but are not made orthogonal to each
    other. With nothing to skip this is a no-op.
    """
    check_left_cols_to_skip(matrix, left_cols_to_skip)
    if left_cols_to_skip == 0:
        return matrix

    left = matrix[:, :left_cols_to_skip]
    right = matrix[:, left_cols_to_skip:]
    right -= left @ (left.mH @ right)
    normalize_columns_(right)
    return matrix


@torch.no_grad()
def jens_wehner_orthogonalization(
    matrix: torch.Tensor, left_cols_to_skip: int = 0
) -> torch.Tensor:
    """Partial orthogonalization followed by a QR pass over the new columns."""
    check_left_cols_to_skip(matrix, left_cols_to_skip)
    partial_orthogonalization(matrix, left_cols_to_skip)
    qr_orthogonalization(matrix[:, left_cols_to_skip:])
    return matrix
