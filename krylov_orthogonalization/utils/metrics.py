import torch


def _eye_like(Q: torch.Tensor) -> torch.Tensor:
    return torch.eye(Q.size(1), device=Q.device, dtype=Q.dtype)


@torch.no_grad()
def orthogonality_deviation(Q: torch.Tensor) -> float:
    """Return ||Q^H Q - I||_F for the columns of Q."""
    return torch.linalg.norm(Q.mH @ Q - _eye_like(Q), ord="fro").item()


@torch.no_grad()
def cross_orthogonality(left: torch.Tensor, right: torch.Tensor) -> float:
    """Return ||L^H R||_F, zero when every column of R is orthogonal to span(L)."""
    return torch.linalg.norm(left.mH @ right, ord="fro").item()


@torch.no_grad()
def projection_residual(Q: torch.Tensor, A: torch.Tensor) -> float:
    """Relative part of A lying outside span(Q), for orthonormal Q."""
    residual = A - Q @ (Q.mH @ A)
    return (torch.linalg.norm(residual, ord="fro") / torch.linalg.norm(A, ord="fro")).item()


@torch.no_grad()
def column_norm_deviation(Q: torch.Tensor) -> float:
    return (torch.linalg.vector_norm(Q, dim=0) - 1).abs().max().item()
