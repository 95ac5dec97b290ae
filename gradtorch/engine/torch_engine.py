"""
gradtorch Engine - torch adapter
================================

Maps the engine primitives onto ``torch.Tensor`` operators. Every primitive
is a direct call, so formulas run on torch exactly as the torch kernels
define them, and results can be checked against ``torch.autograd``.
"""

from __future__ import annotations
from typing import Any, List, Optional, Sequence, Tuple
import torch
from torch import Tensor

from ..core.types import Device, DType
from .base import Engine

_TO_TORCH = {
    DType.FLOAT16: torch.float16,
    DType.FLOAT32: torch.float32,
    DType.FLOAT64: torch.float64,
    DType.INT32: torch.int32,
    DType.INT64: torch.int64,
    DType.BOOL: torch.bool,
}
_FROM_TORCH = {v: k for k, v in _TO_TORCH.items()}


def to_torch_dtype(dtype: DType) -> torch.dtype:
    return _TO_TORCH[dtype]


class TorchEngine(Engine):
    """Engine backed by torch tensors."""

    name = "torch"

    def owns(self, obj: Any) -> bool:
        return isinstance(obj, torch.Tensor)

    # Metadata

    def shape(self, t: Tensor) -> Tuple[int, ...]:
        return tuple(t.shape)

    def strides(self, t: Tensor) -> Tuple[int, ...]:
        return tuple(t.stride())

    def dim(self, t: Tensor) -> int:
        return t.dim()

    def dtype(self, t: Tensor) -> DType:
        if t.dtype not in _FROM_TORCH:
            raise TypeError(f"Unsupported element type: {t.dtype}")
        return _FROM_TORCH[t.dtype]

    def device(self, t: Tensor) -> Device:
        if t.is_cuda:
            return Device.cuda(t.device.index or 0)
        return Device.cpu()

    def is_contiguous(self, t: Tensor) -> bool:
        return t.is_contiguous()

    def is_sparse(self, t: Tensor) -> bool:
        return t.is_sparse

    def is_cuda(self, t: Tensor) -> bool:
        return t.is_cuda

    # Allocation

    def zeros(self, shape: Sequence[int], like: Tensor) -> Tensor:
        return torch.zeros(tuple(shape), dtype=like.dtype, device=like.device)

    def zeros_like(self, t: Tensor) -> Tensor:
        return torch.zeros_like(t)

    def clone(self, t: Tensor) -> Tensor:
        return t.clone(memory_format=torch.contiguous_format)

    # Elementwise math

    def reciprocal(self, t: Tensor) -> Tensor:
        return torch.reciprocal(t)

    def pow(self, base, exponent) -> Tensor:
        return torch.pow(base, exponent)

    def log(self, t: Tensor) -> Tensor:
        return torch.log(t)

    def where(self, condition: Tensor, a: Tensor, b: Tensor) -> Tensor:
        return torch.where(condition, a, b)

    # Matrix products

    def dot(self, a: Tensor, b: Tensor) -> Tensor:
        return torch.dot(a, b)

    def mv(self, m: Tensor, v: Tensor) -> Tensor:
        return torch.mv(m, v)

    def mm(self, a: Tensor, b: Tensor) -> Tensor:
        return torch.mm(a, b)

    def bmm(self, a: Tensor, b: Tensor) -> Tensor:
        return torch.bmm(a, b)

    def transpose(self, t: Tensor, dim0: int, dim1: int) -> Tensor:
        return t.transpose(dim0, dim1)

    # Layout

    def view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        return t.view(tuple(shape))

    def unsafe_view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        return t.reshape(tuple(shape))

    def expand(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        return t.expand(tuple(shape))

    def contiguous(self, t: Tensor) -> Tensor:
        return t.contiguous()

    def narrow(self, t: Tensor, dim: int, start: int, length: int) -> Tensor:
        return t.narrow(dim, start, length)

    def slice(self, t: Tensor, dim: int, start: int, end: int, step: int = 1) -> Tensor:
        return t[(slice(None),) * dim + (slice(start, end, step),)]

    def unsqueeze(self, t: Tensor, dim: int) -> Tensor:
        return t.unsqueeze(dim)

    def squeeze(self, t: Tensor, dim: int) -> Tensor:
        return t.squeeze(dim)

    def cat(self, tensors: Sequence[Tensor], dim: int) -> Tensor:
        return torch.cat(list(tensors), dim)

    def split(self, t: Tensor, split_size: int, dim: int) -> List[Tensor]:
        return list(torch.split(t, split_size, dim))

    def split_with_sizes(self, t: Tensor, split_sizes: Sequence[int], dim: int) -> List[Tensor]:
        return list(torch.split(t, list(split_sizes), dim))

    def triu(self, t: Tensor, diagonal: int = 0) -> Tensor:
        return torch.triu(t, diagonal)

    def tril(self, t: Tensor, diagonal: int = 0) -> Tensor:
        return torch.tril(t, diagonal)

    def diagonal(self, t: Tensor) -> Tensor:
        return t.diagonal()

    def roll(self, t: Tensor, shifts: Sequence[int], dims: Sequence[int]) -> Tensor:
        return torch.roll(t, list(shifts), list(dims))

    # In-place

    def fill_(self, t: Tensor, value) -> Tensor:
        return t.fill_(value)

    def copy_(self, dst: Tensor, src: Tensor) -> Tensor:
        return dst.copy_(src)

    def add_(self, t: Tensor, other) -> Tensor:
        return t.add_(other)

    def sub_(self, t: Tensor, other) -> Tensor:
        return t.sub_(other)

    def mul_(self, t: Tensor, other) -> Tensor:
        return t.mul_(other)

    def pow_(self, t: Tensor, exponent) -> Tensor:
        return t.pow_(exponent)

    # Reduction, conversion, kernels

    def sum(self, t: Tensor, dims: Optional[Sequence[int]] = None, keepdim: bool = False) -> Tensor:
        if not dims:
            return t.sum()
        return t.sum(dim=list(dims), keepdim=keepdim)

    def to_dtype(self, t: Tensor, dtype: DType) -> Tensor:
        target = to_torch_dtype(dtype)
        if t.dtype == target:
            return t
        return t.to(target)

    def softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        return torch._softmax(t, dim, half_to_float)

    def log_softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        return torch._log_softmax(t, dim, half_to_float)
