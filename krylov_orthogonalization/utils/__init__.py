from .orthogonal import get_method, get_method_names, orthogonalize, register_method
from .orthogonal_ops import SkipCountError
