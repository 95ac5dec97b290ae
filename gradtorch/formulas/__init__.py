"""
gradtorch Formulas
==================

Closed-form backward (vector-Jacobian product) formulas, one per forward
operation. Each takes the values captured by the forward pass plus the
upstream gradient and returns one gradient per differentiable input.
"""

from .activation import log_softmax, roll, softmax
from .linalg import symeig_backward
from .linear import (
    maybe_multiply,
    mm_mat1_backward,
    mm_mat1_backward_from_strides,
    mm_mat2_backward,
)
from .pointwise import (
    atan2_backward,
    pow_backward,
    pow_backward_exponent,
    pow_backward_self,
)
from .structural import (
    cat_tensors_backward,
    chunk,
    chunk_sizes,
    contiguous,
    expand_as,
    legacy_cat_wrap_dim,
    slice_backward,
    split_backward,
    split_with_sizes_backward,
    sum_backward,
    to_args_sizes,
    unsqueeze_dim_to,
    unsqueeze_to,
)

__all__ = [
    # Matrix products
    'maybe_multiply',
    'mm_mat1_backward',
    'mm_mat1_backward_from_strides',
    'mm_mat2_backward',

    # Elementwise
    'pow_backward',
    'pow_backward_self',
    'pow_backward_exponent',
    'atan2_backward',

    # Structural
    'chunk',
    'chunk_sizes',
    'contiguous',
    'expand_as',
    'to_args_sizes',
    'split_backward',
    'split_with_sizes_backward',
    'legacy_cat_wrap_dim',
    'cat_tensors_backward',
    'slice_backward',
    'unsqueeze_to',
    'unsqueeze_dim_to',
    'sum_backward',

    # Linear algebra
    'symeig_backward',

    # Softmax / roll
    'softmax',
    'log_softmax',
    'roll',
]
