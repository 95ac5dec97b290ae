"""
gradtorch Autograd - Backward Nodes
===================================

One node class per supported forward operation. A node is built when the
forward runs, keeps what the backward formula needs in a
:class:`SavedContext`, and turns upstream gradients into input gradients
when the graph executor calls :meth:`GradFn.apply`.

Building and scheduling the graph is the executor's job, not this module's.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type

from ..engine import Engine, engine_for
from ..formulas import (
    atan2_backward,
    cat_tensors_backward,
    mm_mat1_backward,
    mm_mat2_backward,
    pow_backward,
    pow_backward_exponent,
    pow_backward_self,
    slice_backward,
    split_backward,
    split_with_sizes_backward,
    sum_backward,
    symeig_backward,
    to_args_sizes,
)

Grads = Tuple[Optional[Any], ...]


@dataclass
class SavedContext:
    """
    Saved tensors and metadata for backward pass.
    """
    engine: Optional[Engine] = None
    tensors: Dict[str, Any] = field(default_factory=dict)
    scalars: Dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, **kwargs):
        for k, v in kwargs.items():
            if self.engine is not None and v is not None and not isinstance(v, (int, float)) \
                    and self.engine.owns(v):
                self.tensors[k] = v
            else:
                self.scalars[k] = v


GRAD_FNS: Dict[str, Type['GradFn']] = {}


def register_grad_fn(op_name: str) -> Callable[[Type['GradFn']], Type['GradFn']]:
    """Class decorator mapping a forward op name to its backward node."""
    def decorator(cls):
        GRAD_FNS[op_name] = cls
        cls.op_name = op_name
        return cls
    return decorator


def get_grad_fn(op_name: str) -> Type['GradFn']:
    if op_name not in GRAD_FNS:
        raise KeyError(f"No backward node registered for {op_name!r}")
    return GRAD_FNS[op_name]


class GradFn(ABC):
    """
    Base class for backward nodes.

    Subclasses set ``num_inputs`` (differentiable inputs) and implement
    :meth:`apply`.
    """

    op_name: str = ""
    num_inputs: int = 1

    def __init__(self, *tensors):
        self.ctx = SavedContext(engine=engine_for(*tensors))

    @property
    def engine(self) -> Engine:
        return self.ctx.engine

    def _mask(self, output_mask: Optional[Sequence[bool]]) -> Tuple[bool, ...]:
        if output_mask is None:
            return (True,) * self.num_inputs
        if len(output_mask) != self.num_inputs:
            raise ValueError(
                f"{type(self).__name__} expects an output mask of length {self.num_inputs}, "
                f"got {len(output_mask)}"
            )
        return tuple(bool(m) for m in output_mask)

    @abstractmethod
    def apply(self, *grad_outputs, output_mask: Optional[Sequence[bool]] = None) -> Grads:
        """
        Compute gradients w.r.t. inputs given gradients of the outputs.

        Parameters
        ----------
        grad_outputs
            Gradient of the loss w.r.t. each forward output (``None`` if undefined)
        output_mask
            Which input gradients to compute; defaults to all of them

        Returns
        -------
        Tuple with one entry per differentiable input, ``None`` where not requested
        """
        ...

    def __call__(self, *grad_outputs, output_mask: Optional[Sequence[bool]] = None) -> Grads:
        return self.apply(*grad_outputs, output_mask=output_mask)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


@register_grad_fn("mm")
class MatMulBackward(GradFn):
    """Backward for matrix multiplication: z = alpha * (x @ y), both 2-D"""

    num_inputs = 2

    def __init__(self, mat1, mat2, alpha: float = 1.0):
        super().__init__(mat1, mat2)
        self.ctx.save_for_backward(mat1=mat1, mat2=mat2, alpha=alpha)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        mat1 = self.ctx.tensors['mat1']
        mat2 = self.ctx.tensors['mat2']
        alpha = self.ctx.scalars['alpha']
        grad_mat1 = grad_mat2 = None
        if grad is None:
            return grad_mat1, grad_mat2

        if mask[0]:
            grad_mat1 = mm_mat1_backward(grad, mat2, mat1, alpha, self.engine)
        if mask[1]:
            grad_mat2 = mm_mat2_backward(
                grad, mat1, self.engine.shape(mat2), self.engine.strides(mat2), alpha, self.engine
            )
        return grad_mat1, grad_mat2


@register_grad_fn("pow")
class PowBackward(GradFn):
    """Backward for power with a scalar exponent: z = x ** n"""

    def __init__(self, x, exponent: float):
        super().__init__(x)
        self.ctx.save_for_backward(x=x, exponent=exponent)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None or not mask[0]:
            return (None,)
        x = self.ctx.tensors['x']
        return (pow_backward(grad, x, self.ctx.scalars['exponent'], self.engine),)


@register_grad_fn("pow_tensor")
class PowTensorBackward(GradFn):
    """Backward for power with a tensor exponent: z = x ** y (x may be a number)"""

    num_inputs = 2

    def __init__(self, x, exponent):
        super().__init__(x, exponent)
        self.ctx.save_for_backward(x=x, exponent=exponent)

    def _base(self):
        return self.ctx.tensors.get('x', self.ctx.scalars.get('x'))

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None:
            return None, None
        x = self._base()
        exponent = self.ctx.tensors['exponent']
        grad_x = grad_exponent = None
        if mask[0] and not isinstance(x, (int, float)):
            grad_x = pow_backward_self(grad, x, exponent, self.engine)
        if mask[1]:
            grad_exponent = pow_backward_exponent(grad, x, exponent, self.engine)
        return grad_x, grad_exponent


@register_grad_fn("atan2")
class Atan2Backward(GradFn):
    """Backward for z = atan2(y, x)"""

    num_inputs = 2

    def __init__(self, y, x):
        super().__init__(y, x)
        self.ctx.save_for_backward(y=y, x=x)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None:
            return None, None
        return atan2_backward(grad, self.ctx.tensors['y'], self.ctx.tensors['x'], mask, self.engine)


@register_grad_fn("sum")
class SumBackward(GradFn):
    """Backward for z = sum(x, dims, keepdim)"""

    def __init__(self, x, dims=(), keepdim: bool = False):
        super().__init__(x)
        self.ctx.save_for_backward(sizes=self.engine.shape(x), dims=dims, keepdim=keepdim)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None or not mask[0]:
            return (None,)
        s = self.ctx.scalars
        return (sum_backward(grad, s['sizes'], s['dims'], s['keepdim'], self.engine),)


@register_grad_fn("split")
class SplitBackward(GradFn):
    """Backward for chunks = split(x, split_size, dim)"""

    def __init__(self, x, split_size: int, dim: int = 0):
        super().__init__(x)
        self.ctx.save_for_backward(like=x)
        self.ctx.scalars.update(sizes=self.engine.shape(x), split_size=split_size, dim=dim)

    def apply(self, *grads, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if not mask[0] or all(g is None for g in grads):
            return (None,)
        s = self.ctx.scalars
        return (split_backward(grads, s['split_size'], s['dim'], s['sizes'],
                               self.ctx.tensors['like'], self.engine),)


@register_grad_fn("split_with_sizes")
class SplitWithSizesBackward(GradFn):
    """Backward for chunks = split_with_sizes(x, split_sizes, dim)"""

    def __init__(self, x, split_sizes: Sequence[int], dim: int = 0):
        super().__init__(x)
        self.ctx.save_for_backward(like=x)
        self.ctx.scalars.update(sizes=self.engine.shape(x), split_sizes=list(split_sizes), dim=dim)

    def apply(self, *grads, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if not mask[0] or all(g is None for g in grads):
            return (None,)
        s = self.ctx.scalars
        return (split_with_sizes_backward(grads, s['split_sizes'], s['dim'], s['sizes'],
                                          self.ctx.tensors['like'], self.engine),)


@register_grad_fn("cat")
class CatBackward(GradFn):
    """Backward for z = cat(tensors, dim)"""

    def __init__(self, tensors: Sequence, dim: int = 0):
        super().__init__(*tensors)
        self.num_inputs = len(tensors)
        self.ctx.save_for_backward(sizes=to_args_sizes(tensors, self.engine), dim=dim)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None:
            return (None,) * self.num_inputs
        s = self.ctx.scalars
        pieces = cat_tensors_backward(grad, s['sizes'], s['dim'], self.engine)
        return tuple(p if m else None for p, m in zip(pieces, mask))


@register_grad_fn("slice")
class SliceBackward(GradFn):
    """Backward for z = x[start:end:step] along dim"""

    def __init__(self, x, dim: int, start: int, end: int, step: int = 1):
        super().__init__(x)
        self.ctx.save_for_backward(sizes=self.engine.shape(x), dim=dim, start=start, end=end, step=step)

    def apply(self, grad, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if grad is None or not mask[0]:
            return (None,)
        s = self.ctx.scalars
        return (slice_backward(grad, s['sizes'], s['dim'], s['start'], s['end'], s['step'], self.engine),)


@register_grad_fn("symeig")
class SymeigBackward(GradFn):
    """Backward for (λ, V) = symeig(A, eigenvectors, upper)"""

    def __init__(self, a, eigenvalues, eigenvectors_tensor, eigenvectors: bool = True,
                 upper: bool = False):
        super().__init__(a, eigenvalues)
        self.ctx.save_for_backward(a=a, eigenvalues=eigenvalues, eigenvectors_tensor=eigenvectors_tensor,
                                   eigenvectors=eigenvectors, upper=upper)

    def apply(self, grad_eigenvalues, grad_eigenvectors=None, output_mask=None) -> Grads:
        mask = self._mask(output_mask)
        if not mask[0]:
            return (None,)
        t = self.ctx.tensors
        s = self.ctx.scalars
        # without eigenvectors the forward may hand over nothing for V
        v = t.get('eigenvectors_tensor', s.get('eigenvectors_tensor'))
        return (symeig_backward((grad_eigenvalues, grad_eigenvectors), t['a'], s['eigenvectors'],
                                s['upper'], t['eigenvalues'], v, self.engine),)
