"""
gradtorch Shape Algebra
=======================

Dimension wrapping, broadcast inference and broadcast reduction.

Everything here works on plain tuples of ints except :func:`reduce_to_shape`,
which needs an engine to sum the tensor it is given.
"""

from __future__ import annotations
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

from .errors import (
    DimensionOutOfRangeError,
    DuplicateDimError,
    InvalidArgumentError,
    ShapeMismatchError,
)

Shape = Tuple[int, ...]

MAX_BITSET_DIMS = 64


def wrap_dim(dim: int, rank: int, wrap_scalar: bool = True) -> int:
    """
    Normalize a possibly negative dimension index against ``rank``.

    Args:
        dim: Dimension index, negative values count from the end
        rank: Number of dimensions of the tensor
        wrap_scalar: Treat a rank-0 tensor as rank 1, so 0 and -1 are valid

    Returns:
        Index in ``[0, rank)``

    Example:
        >>> wrap_dim(-1, 3)
        2
    """
    if rank <= 0:
        if not wrap_scalar:
            raise DimensionOutOfRangeError(dim, rank)
        rank = 1

    if dim < -rank or dim >= rank:
        raise DimensionOutOfRangeError(dim, rank)
    if dim < 0:
        dim += rank
    return dim


def infer_broadcast_shape(a: Sequence[int], b: Sequence[int]) -> Shape:
    """
    Broadcast two shapes against each other, aligned at the trailing dimension.

    A size of 1 maps to the other operand's size, including 0.

    Raises:
        ShapeMismatchError: if a dimension pair disagrees and neither side is 1
    """
    dims_a = len(a)
    dims_b = len(b)
    ndim = max(dims_a, dims_b)
    result = [0] * ndim

    for i in range(ndim - 1, -1, -1):
        offset = ndim - 1 - i
        dim_a = dims_a - 1 - offset
        dim_b = dims_b - 1 - offset
        size_a = a[dim_a] if dim_a >= 0 else 1
        size_b = b[dim_b] if dim_b >= 0 else 1

        if not (size_a == size_b or size_a == 1 or size_b == 1):
            raise ShapeMismatchError(i, size_a, size_b)

        result[i] = size_b if size_a == 1 else size_a

    return tuple(result)


def is_expandable_to(shape: Sequence[int], desired: Sequence[int]) -> bool:
    """True when a tensor of ``shape`` can be broadcast up to ``desired``."""
    ndim = len(shape)
    target_dim = len(desired)
    if ndim > target_dim:
        return False
    for i in range(ndim):
        size = shape[ndim - i - 1]
        target = desired[target_dim - i - 1]
        if size != target and size != 1:
            return False
    return True


def reduce_to_shape(tensor, shape: Sequence[int], engine=None):
    """
    Sum ``tensor`` down to ``shape``, undoing a broadcast.

    Leading dimensions are summed away first, then every dimension where
    ``shape`` has size 1 is summed with keepdim.

    The caller guarantees ``is_expandable_to(shape, tensor.shape)``; this is
    not checked.
    """
    from .engine import engine_for

    engine = engine or engine_for(tensor)
    shape = tuple(shape)
    if len(shape) == 0:
        return engine.sum(tensor)

    result = tensor
    while engine.dim(result) > len(shape):
        result = engine.sum(result, [0], keepdim=False)

    sizes = engine.shape(result)
    for i in range(len(sizes)):
        if shape[i] == 1 and sizes[i] > 1:
            result = engine.sum(result, [i], keepdim=True)
    return result


sum_to = reduce_to_shape


def dims_to_bitset(dims: Iterable[int], rank: int, wrap_scalar: bool = True) -> FrozenSet[int]:
    """
    Wrap every entry of ``dims`` and collect them into a set.

    Raises:
        InvalidArgumentError: if ``rank`` exceeds 64 dimensions
        DuplicateDimError: if two entries wrap to the same dimension
    """
    if rank > MAX_BITSET_DIMS:
        raise InvalidArgumentError(f"only tensors with up to {MAX_BITSET_DIMS} dims are supported")

    seen = set()
    for dim in dims:
        dim = wrap_dim(dim, rank, wrap_scalar)
        if dim in seen:
            raise DuplicateDimError(dim)
        seen.add(dim)
    return frozenset(seen)


def safe_size(sizes: Sequence[int], dim: int) -> int:
    """Size of ``dim`` in ``sizes``; a scalar shape reports size 1."""
    dim = wrap_dim(dim, len(sizes))
    return sizes[dim] if len(sizes) != 0 else 1


def normalize_dims(dims: Optional[object]) -> Tuple[int, ...]:
    """Accept a single int or an iterable of ints as a dims argument."""
    if dims is None:
        return ()
    if isinstance(dims, int):
        return (dims,)
    return tuple(dims)
