from .utils.orthogonal import get_method_names, orthogonalize
from .utils.orthogonal_ops import SkipCountError
from .utils.metrics import orthogonality_deviation
__all__ = ["orthogonalize", "get_method_names", "SkipCountError", "orthogonality_deviation"]
