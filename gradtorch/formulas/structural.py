"""
Backward formulas for shape-changing operations.

Split/chunk, concatenation, slicing and sum-reduction only move or replicate
values, so their gradients are the inverse layout operation applied to the
upstream gradient: concatenate the chunk gradients, slice the concatenated
gradient, scatter into zeros, or broadcast back over the reduced dimensions.

Undefined gradients arrive as ``None`` and stand for all-zero tensors.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Union

from ..engine import Engine, engine_for
from ..errors import InvalidArgumentError
from ..logger import get_logger
from ..shape import dims_to_bitset, normalize_dims, wrap_dim

logger = get_logger(__name__)

Sizes = Sequence[int]


# =============================================================================
# Forward helpers
# =============================================================================

def chunk_sizes(size: int, chunks: int) -> List[int]:
    """
    Sizes of the pieces :func:`chunk` produces for a dimension of ``size``.

    Example:
        >>> chunk_sizes(10, 3)
        [4, 4, 2]
        >>> chunk_sizes(0, 3)
        [0, 0, 0]
    """
    if chunks <= 0:
        raise InvalidArgumentError(f"chunk expects `chunks` to be greater than 0, got: {chunks}")
    if size == 0:
        return [0] * chunks
    split_size = (size + chunks - 1) // chunks
    num_splits = (size + split_size - 1) // split_size
    return [split_size] * (num_splits - 1) + [size - split_size * (num_splits - 1)]


def chunk(tensor, chunks: int, dim: int = 0, engine: Optional[Engine] = None) -> list:
    """
    Split ``tensor`` into ``chunks`` pieces of ``ceil(size / chunks)`` along ``dim``.

    A zero-sized dimension still yields ``chunks`` empty pieces.
    """
    engine = engine or engine_for(tensor)
    if engine.dim(tensor) == 0:
        raise InvalidArgumentError("chunk expects at least a 1-dimensional tensor")

    dim = wrap_dim(dim, engine.dim(tensor))
    size = engine.size(tensor, dim)
    sizes = chunk_sizes(size, chunks)

    # split() cannot express several 0-sized chunks adding up to 0
    if size == 0:
        logger.debug("chunk: %d empty chunks along dim %d", chunks, dim)
        return engine.split_with_sizes(tensor, sizes, dim)
    return engine.split(tensor, sizes[0], dim)


def contiguous(tensor, engine: Optional[Engine] = None):
    engine = engine or engine_for(tensor)
    return engine.contiguous(tensor)


def expand_as(tensor, other, engine: Optional[Engine] = None):
    engine = engine or engine_for(tensor, other)
    return engine.expand(tensor, engine.shape(other))


def to_args_sizes(tensors, engine: Optional[Engine] = None) -> List[tuple]:
    """Shapes of ``tensors``, as recorded by a forward cat for its backward."""
    if not tensors:
        return []
    engine = engine or engine_for(*tensors)
    return [engine.shape(t) for t in tensors]


# =============================================================================
# Split / chunk
# =============================================================================

def _zeros_template(grads, like):
    if like is not None:
        return like
    for grad in grads:
        if grad is not None:
            return grad
    raise InvalidArgumentError(
        "every gradient is undefined; pass `like` so zeros can be allocated"
    )


def split_with_sizes_backward(grads: Sequence, split_sizes: Sizes, dim: int, sizes: Sizes,
                              like=None, engine: Optional[Engine] = None):
    """
    Gradient of ``split_with_sizes`` w.r.t. its input.

    Args:
        grads: One gradient per chunk, ``None`` where undefined
        split_sizes: Chunk sizes used by the forward split
        dim: Split dimension, wrapped against ``len(sizes)``
        sizes: Shape of the input before the split
        like: Tensor giving dtype/device for zero chunks; defaults to the
            first defined gradient

    Returns:
        Tensor of shape ``sizes``
    """
    template = _zeros_template(grads, like)
    engine = engine or engine_for(template)
    ndim = wrap_dim(dim, len(sizes))

    all_defined = []
    for i, grad in enumerate(grads):
        if grad is not None:
            all_defined.append(grad)
        else:
            grad_size = list(sizes)
            grad_size[ndim] = split_sizes[i]
            all_defined.append(engine.zeros(grad_size, template))
    return engine.cat(all_defined, ndim)


def split_backward(grads: Sequence, split_size: int, dim: int, sizes: Sizes,
                   like=None, engine: Optional[Engine] = None):
    """Gradient of ``split`` with a uniform ``split_size``; the last chunk takes the remainder."""
    ndim = wrap_dim(dim, len(sizes))
    dim_size = sizes[ndim]
    num_splits = len(grads)
    if num_splits == 0:
        raise InvalidArgumentError("split_backward expects at least one chunk gradient")
    split_sizes = [split_size] * num_splits
    split_sizes[num_splits - 1] = split_size - (split_size * num_splits - dim_size)
    return split_with_sizes_backward(grads, split_sizes, ndim, sizes, like, engine)


# =============================================================================
# Cat / slice
# =============================================================================

def _is_legacy_empty(shape: Sizes) -> bool:
    return len(shape) == 1 and shape[0] == 0


def legacy_cat_wrap_dim(dim: int, tensor_sizes: Sequence[Sizes]) -> int:
    """
    Wrap ``dim`` against the first input that is not the 1-D empty shape.

    Forward cat skips ``[0]``-shaped inputs, so they cannot decide the rank.
    If every input is ``[0]`` the raw ``dim`` is returned.
    """
    for sizes in tensor_sizes:
        if not _is_legacy_empty(sizes):
            return wrap_dim(dim, len(sizes))
    return dim


def cat_tensors_backward(grad, sizes: Sequence[Sizes], dim: int,
                         engine: Optional[Engine] = None) -> list:
    """
    Gradient of ``cat`` w.r.t. each of its inputs.

    Args:
        grad: Gradient of the concatenated output
        sizes: Shapes of the forward inputs, in order
        dim: Concatenation dimension

    Returns:
        List with one slice of ``grad`` per input; ``[0]``-shaped inputs get
        an empty ``[0]`` tensor
    """
    engine = engine or engine_for(grad)
    dim = legacy_cat_wrap_dim(dim, sizes)
    result = []
    accumulate = 0

    for shape in sizes:
        if _is_legacy_empty(shape):
            result.append(engine.zeros([0], grad))
            continue

        size = shape[dim]
        accumulate += size
        result.append(engine.narrow(grad, dim, accumulate - size, size))
    return result


def slice_backward(grad, input_sizes: Sizes, dim: int, start: int, end: int, step: int = 1,
                   engine: Optional[Engine] = None):
    """Scatter ``grad`` into zeros of ``input_sizes`` at ``[start:end:step]`` along ``dim``."""
    engine = engine or engine_for(grad)
    dim = wrap_dim(dim, len(input_sizes))
    grad_input = engine.zeros(input_sizes, grad)
    engine.copy_(engine.slice(grad_input, dim, start, end, step), grad)
    return grad_input


# =============================================================================
# Sum
# =============================================================================

def unsqueeze_to(tensor, sizes: Sizes, engine: Optional[Engine] = None):
    """Re-insert every size-1 dimension of ``sizes`` into ``tensor``."""
    engine = engine or engine_for(tensor)
    result = tensor
    for dim, size in enumerate(sizes):
        if size == 1:
            result = engine.unsqueeze(result, dim)
    return result


def unsqueeze_dim_to(tensor, dim: int, sizes: Sizes, engine: Optional[Engine] = None):
    """Re-insert ``dim`` if it has size 1 in ``sizes``; a scalar shape is left alone."""
    engine = engine or engine_for(tensor)
    dim = wrap_dim(dim, len(sizes))
    if len(sizes) > 0 and sizes[dim] == 1:
        return engine.unsqueeze(tensor, dim)
    return tensor


def sum_backward(grad, sizes: Sizes, dims: Union[int, Sequence[int]], keepdim: bool = False,
                 engine: Optional[Engine] = None):
    """
    Gradient of ``sum(input, dims, keepdim)`` w.r.t. ``input``.

    The reduced dimensions are re-inserted (unless ``keepdim`` kept them)
    and the gradient is broadcast back over them.

    Raises:
        DuplicateDimError: if ``dims`` names the same dimension twice
    """
    engine = engine or engine_for(grad)
    dims = normalize_dims(dims)
    sizes = tuple(sizes)

    if keepdim or len(sizes) == 0:
        return engine.expand(grad, sizes)

    if len(dims) == 1:
        dim = wrap_dim(dims[0], len(sizes))
        return engine.expand(engine.unsqueeze(grad, dim), sizes)

    dims_to_unsqueeze = dims_to_bitset(dims, len(sizes))
    result = grad
    for i in range(len(sizes)):
        if i in dims_to_unsqueeze:
            result = engine.unsqueeze(result, i)
    return engine.expand(result, sizes)
