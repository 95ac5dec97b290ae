"""
gradtorch Engine - Capability Interface
=======================================

The gradient formulas never allocate memory or run kernels themselves. They
call the primitives of an :class:`Engine`, which wraps a concrete tensor
library. Tensors are whatever the engine's library uses (ndarray,
torch.Tensor, ...); the formulas treat them as opaque handles and only read
metadata through the engine.

Undefined gradients are represented by ``None`` and are never passed to an
engine method.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..core.types import Device, DType

Tensor = Any
Scalar = Union[int, float, bool]


class Engine(ABC):
    """
    Base class for tensor execution engines.

    Subclasses implement every abstract primitive with the semantics of the
    matching torch operator. Arithmetic defaults to the Python operators,
    which both NumPy and torch overload.
    """

    name: str = "abstract"

    @abstractmethod
    def owns(self, obj: Any) -> bool:
        """True if ``obj`` is a tensor of this engine."""
        ...

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @abstractmethod
    def shape(self, t: Tensor) -> Tuple[int, ...]:
        ...

    @abstractmethod
    def strides(self, t: Tensor) -> Tuple[int, ...]:
        """Per-dimension step, counted in elements."""
        ...

    def dim(self, t: Tensor) -> int:
        return len(self.shape(t))

    def size(self, t: Tensor, dim: int) -> int:
        return self.shape(t)[dim]

    @abstractmethod
    def dtype(self, t: Tensor) -> DType:
        ...

    @abstractmethod
    def device(self, t: Tensor) -> Device:
        ...

    @abstractmethod
    def is_contiguous(self, t: Tensor) -> bool:
        ...

    @abstractmethod
    def is_sparse(self, t: Tensor) -> bool:
        ...

    def is_cuda(self, t: Tensor) -> bool:
        return self.device(t).is_cuda

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    @abstractmethod
    def zeros(self, shape: Sequence[int], like: Tensor) -> Tensor:
        """Zero tensor of ``shape`` with the dtype and device of ``like``."""
        ...

    @abstractmethod
    def zeros_like(self, t: Tensor) -> Tensor:
        ...

    @abstractmethod
    def clone(self, t: Tensor) -> Tensor:
        """Contiguous, writable copy."""
        ...

    # ------------------------------------------------------------------
    # Elementwise math
    # ------------------------------------------------------------------

    def add(self, a: Tensor, b: Union[Tensor, Scalar]) -> Tensor:
        return a + b

    def sub(self, a: Tensor, b: Union[Tensor, Scalar]) -> Tensor:
        return a - b

    def mul(self, a: Tensor, b: Union[Tensor, Scalar]) -> Tensor:
        return a * b

    def neg(self, a: Tensor) -> Tensor:
        return -a

    def eq(self, a: Tensor, value: Union[Tensor, Scalar]) -> Tensor:
        return a == value

    def ge(self, a: Tensor, value: Union[Tensor, Scalar]) -> Tensor:
        return a >= value

    def logical_and(self, a: Tensor, b: Tensor) -> Tensor:
        return a & b

    @abstractmethod
    def reciprocal(self, t: Tensor) -> Tensor:
        ...

    @abstractmethod
    def pow(self, base: Union[Tensor, Scalar], exponent: Union[Tensor, Scalar]) -> Tensor:
        ...

    @abstractmethod
    def log(self, t: Tensor) -> Tensor:
        ...

    @abstractmethod
    def where(self, condition: Tensor, a: Tensor, b: Tensor) -> Tensor:
        ...

    # ------------------------------------------------------------------
    # Matrix products
    # ------------------------------------------------------------------

    @abstractmethod
    def dot(self, a: Tensor, b: Tensor) -> Tensor:
        """1-D x 1-D inner product, returns a 0-d tensor."""
        ...

    @abstractmethod
    def mv(self, m: Tensor, v: Tensor) -> Tensor:
        ...

    @abstractmethod
    def mm(self, a: Tensor, b: Tensor) -> Tensor:
        ...

    @abstractmethod
    def bmm(self, a: Tensor, b: Tensor) -> Tensor:
        ...

    @abstractmethod
    def transpose(self, t: Tensor, dim0: int, dim1: int) -> Tensor:
        ...

    def t(self, t: Tensor) -> Tensor:
        return self.transpose(t, 0, 1)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @abstractmethod
    def view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        """Reshape without copying; ``t`` must be contiguous."""
        ...

    @abstractmethod
    def unsafe_view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        """Reshape a freshly produced result, skipping aliasing checks."""
        ...

    @abstractmethod
    def expand(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        """Non-copying broadcast to ``shape``."""
        ...

    @abstractmethod
    def contiguous(self, t: Tensor) -> Tensor:
        ...

    @abstractmethod
    def narrow(self, t: Tensor, dim: int, start: int, length: int) -> Tensor:
        ...

    @abstractmethod
    def slice(self, t: Tensor, dim: int, start: int, end: int, step: int = 1) -> Tensor:
        """Writable view of ``t[..., start:end:step, ...]`` along ``dim``."""
        ...

    @abstractmethod
    def unsqueeze(self, t: Tensor, dim: int) -> Tensor:
        ...

    @abstractmethod
    def squeeze(self, t: Tensor, dim: int) -> Tensor:
        """Remove ``dim`` if it has size 1, otherwise return ``t`` unchanged."""
        ...

    @abstractmethod
    def cat(self, tensors: Sequence[Tensor], dim: int) -> Tensor:
        ...

    @abstractmethod
    def split(self, t: Tensor, split_size: int, dim: int) -> List[Tensor]:
        ...

    @abstractmethod
    def split_with_sizes(self, t: Tensor, split_sizes: Sequence[int], dim: int) -> List[Tensor]:
        ...

    @abstractmethod
    def triu(self, t: Tensor, diagonal: int = 0) -> Tensor:
        ...

    @abstractmethod
    def tril(self, t: Tensor, diagonal: int = 0) -> Tensor:
        ...

    @abstractmethod
    def diagonal(self, t: Tensor) -> Tensor:
        """Writable view of the main diagonal of a matrix."""
        ...

    @abstractmethod
    def roll(self, t: Tensor, shifts: Sequence[int], dims: Sequence[int]) -> Tensor:
        ...

    # ------------------------------------------------------------------
    # In-place
    # ------------------------------------------------------------------

    @abstractmethod
    def fill_(self, t: Tensor, value: Scalar) -> Tensor:
        ...

    @abstractmethod
    def copy_(self, dst: Tensor, src: Tensor) -> Tensor:
        ...

    @abstractmethod
    def add_(self, t: Tensor, other: Union[Tensor, Scalar]) -> Tensor:
        ...

    @abstractmethod
    def sub_(self, t: Tensor, other: Union[Tensor, Scalar]) -> Tensor:
        ...

    @abstractmethod
    def mul_(self, t: Tensor, other: Union[Tensor, Scalar]) -> Tensor:
        ...

    @abstractmethod
    def pow_(self, t: Tensor, exponent: Union[Tensor, Scalar]) -> Tensor:
        ...

    # ------------------------------------------------------------------
    # Reduction, conversion, kernels
    # ------------------------------------------------------------------

    @abstractmethod
    def sum(self, t: Tensor, dims: Optional[Sequence[int]] = None, keepdim: bool = False) -> Tensor:
        """Sum over ``dims``; ``None`` or an empty list reduces everything."""
        ...

    @abstractmethod
    def to_dtype(self, t: Tensor, dtype: DType) -> Tensor:
        """Convert element type; returns ``t`` itself when it already matches."""
        ...

    @abstractmethod
    def softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        ...

    @abstractmethod
    def log_softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
