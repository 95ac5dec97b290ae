"""
Backward formulas for matrix products.

For ``out = alpha * mat1 @ mat2``:

    ∂L/∂mat1 = alpha * grad @ mat2ᵀ
    ∂L/∂mat2 = alpha * mat1ᵀ @ grad

When the input was laid out column-major the same product is computed as the
transpose of the swapped product, which hands back a gradient with the same
column-major layout.
"""

from __future__ import annotations
from typing import Optional, Sequence

from ..engine import Engine, engine_for
from ..errors import InvalidArgumentError


def maybe_multiply(t, scalar, engine: Optional[Engine] = None):
    """``t * scalar``, returning ``t`` itself when ``scalar`` is 1."""
    if float(scalar) == 1.0:
        return t
    engine = engine or engine_for(t)
    return engine.mul(t, scalar)


def _is_column_major(sizes: Sequence[int], strides: Sequence[int]) -> bool:
    return strides[0] == 1 and strides[1] == sizes[0]


def mm_mat1_backward_from_strides(grad, mat2, sizes: Sequence[int], strides: Sequence[int],
                                  alpha: float = 1.0, engine: Optional[Engine] = None):
    """Gradient w.r.t. ``mat1`` given only the recorded sizes and strides of ``mat1``."""
    engine = engine or engine_for(grad, mat2)
    if _is_column_major(sizes, strides):
        out = engine.t(engine.mm(mat2, engine.t(grad)))
    else:
        out = engine.mm(grad, engine.t(mat2))
    return maybe_multiply(out, alpha, engine)


def mm_mat1_backward(grad, mat2, mat1, alpha: float = 1.0, engine: Optional[Engine] = None):
    """
    Gradient w.r.t. the first operand of ``alpha * mat1 @ mat2``.

    Raises:
        InvalidArgumentError: if ``mat1`` is sparse
    """
    engine = engine or engine_for(grad, mat2, mat1)
    if engine.is_sparse(mat1):
        raise InvalidArgumentError(
            "calculating the gradient of a sparse Tensor argument to mm is not supported."
        )
    return mm_mat1_backward_from_strides(
        grad, mat2, engine.shape(mat1), engine.strides(mat1), alpha, engine
    )


def mm_mat2_backward(grad, mat1, sizes: Sequence[int], strides: Sequence[int],
                     alpha: float = 1.0, engine: Optional[Engine] = None):
    """Gradient w.r.t. the second operand, given the sizes and strides of ``mat2``."""
    engine = engine or engine_for(grad, mat1)
    if _is_column_major(sizes, strides):
        out = engine.t(engine.mm(engine.t(grad), mat1))
    else:
        out = engine.mm(engine.t(mat1), grad)
    return maybe_multiply(out, alpha, engine)
