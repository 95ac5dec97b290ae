"""
gradtorch: Backward Formulas for Tensor Autograd
================================================

Closed-form reverse-mode gradients and shape algebra for a set of tensor
operations, plus a rank-polymorphic matmul dispatcher. Formulas run on any
tensor library wrapped as an :class:`Engine` (NumPy and torch are built in).

Example:
    >>> import numpy as np
    >>> import gradtorch as gt
    >>> grad = np.ones((6, 4))
    >>> parts = gt.cat_tensors_backward(grad, [(2, 4), (3, 4), (1, 4)], dim=0)
    >>> [p.shape for p in parts]
    [(2, 4), (3, 4), (1, 4)]
"""

__version__ = "0.1.0"

from . import config
from .errors import (
    GradTorchError,
    InvalidArgumentError,
    DimensionOutOfRangeError,
    ShapeMismatchError,
    DuplicateDimError,
    InvalidRankError,
    UnsupportedConfigurationError,
)

# Core types
from .core import Device, DType, float16, float32, float64, int32, int64

# Shape algebra
from .shape import (
    wrap_dim,
    infer_broadcast_shape,
    is_expandable_to,
    reduce_to_shape,
    sum_to,
    dims_to_bitset,
    safe_size,
)

# Engines
from .engine import Engine, NumpyEngine, TorchEngine, engine_for, get_engine, register_engine

# Matmul
from .matmul import matmul, matmul_strategy

# Formulas
from .formulas import *  # noqa: F401,F403
from .formulas import __all__ as _formula_names

from . import autograd

__all__ = [
    "__version__",
    "config",

    # Errors
    "GradTorchError",
    "InvalidArgumentError",
    "DimensionOutOfRangeError",
    "ShapeMismatchError",
    "DuplicateDimError",
    "InvalidRankError",
    "UnsupportedConfigurationError",

    # Core types
    "Device",
    "DType",
    "float16",
    "float32",
    "float64",
    "int32",
    "int64",

    # Shape algebra
    "wrap_dim",
    "infer_broadcast_shape",
    "is_expandable_to",
    "reduce_to_shape",
    "sum_to",
    "dims_to_bitset",
    "safe_size",

    # Engines
    "Engine",
    "NumpyEngine",
    "TorchEngine",
    "engine_for",
    "get_engine",
    "register_engine",

    # Matmul
    "matmul",
    "matmul_strategy",

    "autograd",
] + list(_formula_names)
