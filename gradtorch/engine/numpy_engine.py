"""
gradtorch Engine - NumPy reference implementation
=================================================

In-memory engine over NumPy ndarrays (CuPy arrays when CuPy is installed).
It follows torch semantics for every primitive so formulas behave the same
on either engine; where NumPy differs (squeeze of a non-singleton dim,
read-only diagonal views, scalar results of full reductions) the difference
is smoothed over here.

``scipy.sparse`` matrices are recognised only so that formulas can reject
them.
"""

from __future__ import annotations
from typing import Any, List, Optional, Sequence, Tuple
import numpy as np

from ..core import array_api
from ..core.types import Device, DType
from ..errors import InvalidArgumentError
from .base import Engine, Tensor


def _index_along(dim: int, index) -> tuple:
    return (slice(None),) * dim + (index,)


class NumpyEngine(Engine):
    """Reference engine backed by NumPy / CuPy."""

    name = "numpy"

    def owns(self, obj: Any) -> bool:
        return array_api.is_array(obj)

    # Metadata

    def shape(self, t: Tensor) -> Tuple[int, ...]:
        return tuple(t.shape)

    def strides(self, t: Tensor) -> Tuple[int, ...]:
        if array_api.is_sparse(t):
            raise InvalidArgumentError("sparse arrays do not have strides")
        return tuple(s // t.itemsize for s in t.strides)

    def dtype(self, t: Tensor) -> DType:
        return DType.from_numpy(t.dtype)

    def device(self, t: Tensor) -> Device:
        return array_api.get_device(t)

    def is_contiguous(self, t: Tensor) -> bool:
        if array_api.is_sparse(t):
            return False
        return bool(t.flags['C_CONTIGUOUS'])

    def is_sparse(self, t: Tensor) -> bool:
        return array_api.is_sparse(t)

    # Allocation

    def zeros(self, shape: Sequence[int], like: Tensor) -> Tensor:
        xp = array_api.get_array_module(like)
        return xp.zeros(tuple(shape), dtype=like.dtype)

    def zeros_like(self, t: Tensor) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.zeros(t.shape, dtype=t.dtype)

    def clone(self, t: Tensor) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.array(t, copy=True, order='C')

    # Elementwise math

    def reciprocal(self, t: Tensor) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.reciprocal(t)

    def pow(self, base, exponent) -> Tensor:
        xp = array_api.get_array_module(exponent if array_api.is_array(exponent) else base)
        return xp.power(base, exponent)

    def log(self, t: Tensor) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.log(t)

    def where(self, condition: Tensor, a: Tensor, b: Tensor) -> Tensor:
        xp = array_api.get_array_module(condition)
        return xp.where(condition, a, b)

    # Matrix products

    def dot(self, a: Tensor, b: Tensor) -> Tensor:
        self._check_rank("dot", a, 1)
        self._check_rank("dot", b, 1)
        xp = array_api.get_array_module(a)
        return xp.asarray(xp.dot(a, b))

    def mv(self, m: Tensor, v: Tensor) -> Tensor:
        self._check_rank("mv", m, 2)
        self._check_rank("mv", v, 1)
        xp = array_api.get_array_module(m)
        return xp.matmul(m, v)

    def mm(self, a: Tensor, b: Tensor) -> Tensor:
        self._check_rank("mm", a, 2)
        self._check_rank("mm", b, 2)
        xp = array_api.get_array_module(a)
        return xp.matmul(a, b)

    def bmm(self, a: Tensor, b: Tensor) -> Tensor:
        self._check_rank("bmm", a, 3)
        self._check_rank("bmm", b, 3)
        if a.shape[0] != b.shape[0]:
            raise InvalidArgumentError(
                f"bmm expects equal batch sizes, got {a.shape[0]} and {b.shape[0]}"
            )
        xp = array_api.get_array_module(a)
        return xp.matmul(a, b)

    def transpose(self, t: Tensor, dim0: int, dim1: int) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.swapaxes(t, dim0, dim1)

    # Layout

    def view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        if not self.is_contiguous(t):
            raise RuntimeError("view requires contiguous tensor")
        return t.reshape(tuple(shape))

    def unsafe_view(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        return t.reshape(tuple(shape))

    def expand(self, t: Tensor, shape: Sequence[int]) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.broadcast_to(t, tuple(shape))

    def contiguous(self, t: Tensor) -> Tensor:
        if self.is_contiguous(t):
            return t
        xp = array_api.get_array_module(t)
        return xp.ascontiguousarray(t)

    def narrow(self, t: Tensor, dim: int, start: int, length: int) -> Tensor:
        return t[_index_along(dim, slice(start, start + length))]

    def slice(self, t: Tensor, dim: int, start: int, end: int, step: int = 1) -> Tensor:
        return t[_index_along(dim, slice(start, end, step))]

    def unsqueeze(self, t: Tensor, dim: int) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.expand_dims(t, dim)

    def squeeze(self, t: Tensor, dim: int) -> Tensor:
        if t.ndim == 0 or t.shape[dim] != 1:
            return t
        xp = array_api.get_array_module(t)
        return xp.squeeze(t, axis=dim)

    def cat(self, tensors: Sequence[Tensor], dim: int) -> Tensor:
        xp = array_api.get_array_module(tensors[0])
        return xp.concatenate(list(tensors), axis=dim)

    def split(self, t: Tensor, split_size: int, dim: int) -> List[Tensor]:
        size = t.shape[dim]
        if split_size == 0:
            if size != 0:
                raise InvalidArgumentError(
                    f"split_size can only be 0 if dimension size is 0, but got dimension size of {size}"
                )
            return [t]
        bounds = list(range(split_size, size, split_size))
        return self._split_at(t, bounds, dim)

    def split_with_sizes(self, t: Tensor, split_sizes: Sequence[int], dim: int) -> List[Tensor]:
        size = t.shape[dim]
        if sum(split_sizes) != size:
            raise InvalidArgumentError(
                f"split_with_sizes expects split_sizes to sum exactly to {size} "
                f"(input tensor's size at dimension {dim}), but got split_sizes={list(split_sizes)}"
            )
        bounds = []
        offset = 0
        for length in split_sizes[:-1]:
            offset += length
            bounds.append(offset)
        return self._split_at(t, bounds, dim)

    def _split_at(self, t: Tensor, bounds: List[int], dim: int) -> List[Tensor]:
        pieces = []
        start = 0
        for stop in bounds + [t.shape[dim]]:
            pieces.append(self.narrow(t, dim, start, stop - start))
            start = stop
        return pieces

    def triu(self, t: Tensor, diagonal: int = 0) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.triu(t, diagonal)

    def tril(self, t: Tensor, diagonal: int = 0) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.tril(t, diagonal)

    def diagonal(self, t: Tensor) -> Tensor:
        # np.diagonal is read-only, so build the strided view by hand
        self._check_rank("diagonal", t, 2)
        xp = array_api.get_array_module(t)
        n = min(t.shape)
        return xp.lib.stride_tricks.as_strided(
            t, shape=(n,), strides=(t.strides[0] + t.strides[1],)
        )

    def roll(self, t: Tensor, shifts: Sequence[int], dims: Sequence[int]) -> Tensor:
        xp = array_api.get_array_module(t)
        if len(dims) == 0:
            return xp.roll(t, shift=tuple(shifts))
        return xp.roll(t, shift=tuple(shifts), axis=tuple(dims))

    # In-place

    def fill_(self, t: Tensor, value) -> Tensor:
        t[...] = value
        return t

    def copy_(self, dst: Tensor, src: Tensor) -> Tensor:
        dst[...] = src
        return dst

    def add_(self, t: Tensor, other) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.add(t, other, out=t)

    def sub_(self, t: Tensor, other) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.subtract(t, other, out=t)

    def mul_(self, t: Tensor, other) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.multiply(t, other, out=t)

    def pow_(self, t: Tensor, exponent) -> Tensor:
        xp = array_api.get_array_module(t)
        return xp.power(t, exponent, out=t)

    # Reduction, conversion, kernels

    def sum(self, t: Tensor, dims: Optional[Sequence[int]] = None, keepdim: bool = False) -> Tensor:
        xp = array_api.get_array_module(t)
        axis = tuple(dims) if dims else None
        return xp.asarray(xp.sum(t, axis=axis, keepdims=keepdim), dtype=t.dtype)

    def to_dtype(self, t: Tensor, dtype: DType) -> Tensor:
        if self.dtype(t) == dtype:
            return t
        return t.astype(dtype.numpy_dtype)

    def softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        xp = array_api.get_array_module(t)
        x = self._kernel_input(t, half_to_float)
        e = xp.exp(x - xp.max(x, axis=dim, keepdims=True))
        return e / xp.sum(e, axis=dim, keepdims=True)

    def log_softmax_kernel(self, t: Tensor, dim: int, half_to_float: bool) -> Tensor:
        xp = array_api.get_array_module(t)
        x = self._kernel_input(t, half_to_float)
        shifted = x - xp.max(x, axis=dim, keepdims=True)
        return shifted - xp.log(xp.sum(xp.exp(shifted), axis=dim, keepdims=True))

    def _kernel_input(self, t: Tensor, half_to_float: bool) -> Tensor:
        if not half_to_float:
            return t
        if self.dtype(t) != DType.FLOAT16:
            raise InvalidArgumentError("conversion is supported for Half type only")
        return t.astype(np.float32)

    @staticmethod
    def _check_rank(op: str, t: Tensor, rank: int):
        if t.ndim != rank:
            raise InvalidArgumentError(f"{op}: expected {rank}-D tensor, got {t.ndim}-D")
