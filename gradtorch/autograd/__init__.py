"""
gradtorch Autograd Module
=========================

Backward nodes binding forward-captured values to the gradient formulas.
A graph executor creates a node when a forward op runs and calls it with
the upstream gradients during the backward pass.
"""

from .grad_fn import (
    GRAD_FNS,
    GradFn,
    SavedContext,
    get_grad_fn,
    register_grad_fn,
    Atan2Backward,
    CatBackward,
    MatMulBackward,
    PowBackward,
    PowTensorBackward,
    SliceBackward,
    SplitBackward,
    SplitWithSizesBackward,
    SumBackward,
    SymeigBackward,
)

__all__ = [
    # Base
    'GRAD_FNS',
    'GradFn',
    'SavedContext',
    'get_grad_fn',
    'register_grad_fn',

    # Nodes
    'Atan2Backward',
    'CatBackward',
    'MatMulBackward',
    'PowBackward',
    'PowTensorBackward',
    'SliceBackward',
    'SplitBackward',
    'SplitWithSizesBackward',
    'SumBackward',
    'SymeigBackward',
]
