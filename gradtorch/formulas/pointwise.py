"""
Backward formulas for elementwise power and two-argument arctangent.

    d/dx xⁿ          = n xⁿ⁻¹
    d/dn xⁿ          = xⁿ ln x
    d/dy atan2(y, x) =  x / (x² + y²)
    d/dx atan2(y, x) = -y / (x² + y²)
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple, Union

from ..engine import Engine, engine_for
from ..logger import get_logger

logger = get_logger(__name__)

Number = Union[int, float]


def pow_backward(grad, self, exponent: Number, engine: Optional[Engine] = None):
    """Gradient of ``self ** exponent`` w.r.t. ``self`` for a scalar exponent."""
    engine = engine or engine_for(grad, self)
    if exponent == 0.0:
        return engine.zeros_like(self)
    return engine.mul(engine.mul(grad, exponent), engine.pow(self, exponent - 1))


def pow_backward_self(grad, self, exponent, engine: Optional[Engine] = None):
    """
    Gradient of ``self ** exponent`` w.r.t. ``self`` for a tensor exponent.

    Positions where the exponent is 0 get a zero gradient instead of
    ``0 * self ** -1``, which would be NaN at ``self == 0``.
    """
    engine = engine or engine_for(grad, self, exponent)
    full = engine.mul(engine.mul(grad, exponent), engine.pow(self, engine.sub(exponent, 1)))
    return engine.where(engine.eq(exponent, 0.0), engine.zeros([], grad), full)


def pow_backward_exponent(grad, self, exponent, engine: Optional[Engine] = None):
    """
    Gradient of ``self ** exponent`` w.r.t. ``exponent``.

    ``self`` may be a tensor or a plain number (``2.0 ** t``). The log
    follows tensor semantics for either: ``-inf`` at 0, NaN below 0.
    Where the base is 0 and the exponent is non-negative the gradient is 0.
    """
    engine = engine or engine_for(grad, self, exponent)
    if isinstance(self, (int, float)):
        base = engine.add(engine.zeros([], exponent), self)
    else:
        base = self
    full = engine.mul(engine.mul(grad, engine.pow(self, exponent)), engine.log(base))
    at_zero = engine.logical_and(engine.eq(base, 0.0), engine.ge(exponent, 0.0))
    return engine.where(at_zero, engine.zeros([], grad), full)


def atan2_backward(grad, self, other, output_mask: Sequence[bool] = (True, True),
                   engine: Optional[Engine] = None) -> Tuple[Optional[object], Optional[object]]:
    """
    Gradients of ``atan2(self, other)``.

    Args:
        grad: Upstream gradient
        self: First forward argument (y)
        other: Second forward argument (x)
        output_mask: Which of the two gradients to compute

    Returns:
        ``(grad_self, grad_other)``; a slot not requested by the mask is
        ``None``
    """
    if not any(output_mask):
        logger.debug("atan2_backward: nothing requested")
        return None, None

    engine = engine or engine_for(grad, self, other)
    recip = engine.reciprocal(engine.add(engine.mul(self, self), engine.mul(other, other)))

    grad_self = grad_other = None
    if output_mask[0]:
        grad_self = engine.mul(engine.mul(grad, other), recip)
    if output_mask[1]:
        grad_other = engine.mul(engine.mul(grad, engine.neg(self)), recip)
    return grad_self, grad_other
