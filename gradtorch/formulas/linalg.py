"""
Backward formula for the symmetric eigendecomposition ``A = V diag(λ) Vᵀ``.

Mathematical background:
- With Vᵀ dV = F ∘ (Vᵀ dA V) and F[i, j] = 1 / (λ_j - λ_i) off the diagonal,
  the gradient w.r.t. A is

      ∂L/∂A = V (F ∘ Vᵀ ∂L/∂V + diag(∂L/∂λ)) Vᵀ

- The forward only reads one triangle of A, so the result is folded onto
  that triangle: the strict upper (lower) entries collect both their own
  gradient and their mirror's.
"""

from __future__ import annotations
import math
from typing import Optional, Sequence

from ..engine import Engine, engine_for
from ..errors import UnsupportedConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)


def symeig_backward(grads: Sequence, self, eigenvectors: bool, upper: bool,
                    eigenvalues, eigenvectors_tensor, engine: Optional[Engine] = None):
    """
    Gradient of ``symeig(self, eigenvectors, upper)`` w.r.t. ``self``.

    Args:
        grads: ``(grad_eigenvalues, grad_eigenvectors)``, either may be ``None``
        self: Forward input, an ``n x n`` matrix
        eigenvectors: Whether the forward computed eigenvectors
        upper: Whether the forward read the upper triangle of ``self``
        eigenvalues: Forward output λ, shape ``(n,)``
        eigenvectors_tensor: Forward output V, shape ``(n, n)``, columns are eigenvectors

    Returns:
        Gradient w.r.t. ``self``, zero in the triangle the forward ignored

    Raises:
        UnsupportedConfigurationError: if the forward ran with ``eigenvectors=False``
    """
    if not eigenvectors:
        raise UnsupportedConfigurationError(
            "symeig_backward: Setting eigenvectors to false in symeig doesn't compute eigenvectors "
            "and hence we cannot compute backward. Please use symeig(eigenvectors=True)"
        )

    engine = engine or engine_for(self, eigenvalues, eigenvectors_tensor)
    glambda = grads[0]
    gv = grads[1]
    lam = eigenvalues
    v = eigenvectors_tensor
    vt = engine.t(v)

    if gv is not None:
        # F[i, j] = 1 / (λ_j - λ_i); the diagonal goes through inf so it ends at 0
        F = engine.clone(engine.expand(engine.unsqueeze(lam, 0), engine.shape(self)))
        engine.sub_(F, engine.unsqueeze(lam, 1))
        engine.fill_(engine.diagonal(F), math.inf)
        engine.pow_(F, -1)

        engine.mul_(F, engine.mm(vt, gv))
        result = engine.mm(v, engine.mm(F, vt))
    else:
        logger.debug("symeig_backward: eigenvector gradient undefined")
        result = engine.zeros_like(self)

    if glambda is not None:
        result = engine.add_(result, engine.mm(engine.mul(v, glambda), vt))

    if upper:
        return engine.add(engine.triu(result), engine.triu(engine.t(result), 1))
    return engine.add(engine.tril(result), engine.tril(engine.t(result), -1))
