"""
gradtorch Matmul Dispatcher
===========================

``tensor1 @ tensor2`` for operands of any rank >= 1, following the usual
broadcasting matmul convention: the last one or two dimensions are the
matrix/vector dimensions, everything in front is a batch that broadcasts.

Strategies, chosen from the two ranks before any work is done:

    rank1  rank2   strategy
    1      1       dot        inner product, 0-d result
    2      1       mv         matrix-vector
    1      2       vm         (1 x n) row vector times matrix, unit dim removed
    2      2       mm         plain matrix product
    >=3    1|2     folded_mm  batch of tensor1 folded into its rows, one mm
    other (max rank >= 3)     bmm        batches broadcast, flattened, one bmm
"""

from __future__ import annotations
import math
from typing import Optional

from .engine import Engine, engine_for
from .errors import InvalidRankError
from .logger import get_logger
from .shape import infer_broadcast_shape

logger = get_logger(__name__)


def matmul_strategy(dim1: int, dim2: int) -> str:
    """Name of the strategy :func:`matmul` uses for operands of these ranks."""
    if dim1 == 1 and dim2 == 1:
        return "dot"
    if dim1 == 2 and dim2 == 1:
        return "mv"
    if dim1 == 1 and dim2 == 2:
        return "vm"
    if dim1 == 2 and dim2 == 2:
        return "mm"
    if dim1 >= 3 and dim2 in (1, 2):
        return "folded_mm"
    if dim1 >= 1 and dim2 >= 1 and (dim1 >= 3 or dim2 >= 3):
        return "bmm"
    raise InvalidRankError(dim1, dim2)


def matmul(tensor1, tensor2, engine: Optional[Engine] = None):
    """
    Matrix product of two tensors of arbitrary rank.

    Args:
        tensor1: Left operand, rank >= 1
        tensor2: Right operand, rank >= 1
        engine: Engine to run on (default: the one owning ``tensor1``)

    Returns:
        Product with shape ``broadcast_batch ++ [n] ++ [p]``, where ``n`` is
        dropped if tensor1 is 1-D and ``p`` is dropped if tensor2 is 1-D

    Raises:
        InvalidRankError: if either operand is 0-D
        ShapeMismatchError: if the batch dimensions do not broadcast
    """
    engine = engine or engine_for(tensor1, tensor2)
    dim1 = engine.dim(tensor1)
    dim2 = engine.dim(tensor2)
    strategy = matmul_strategy(dim1, dim2)
    logger.debug("matmul %dD x %dD -> %s", dim1, dim2, strategy)

    if strategy == "dot":
        return engine.dot(tensor1, tensor2)
    if strategy == "mv":
        return engine.mv(tensor1, tensor2)
    if strategy == "vm":
        return engine.squeeze(engine.mm(engine.unsqueeze(tensor1, 0), tensor2), 0)
    if strategy == "mm":
        return engine.mm(tensor1, tensor2)
    if strategy == "folded_mm":
        return _folded_mm(engine, tensor1, tensor2, dim2)
    return _batched_mm(engine, tensor1, tensor2, dim1, dim2)


def _folded_mm(engine: Engine, tensor1, tensor2, dim2: int):
    # fold the batch of tensor1 into its leading matrix dimension so a single
    # mm does the work instead of bmm
    t2 = engine.unsqueeze(tensor2, -1) if dim2 == 1 else tensor2
    size1 = engine.shape(tensor1)
    size2 = engine.shape(t2)

    output_size = list(size1[:-1])
    if dim2 > 1:
        output_size.append(size2[-1])

    t1 = engine.view(engine.contiguous(tensor1), [-1, size1[-1]])
    return engine.unsafe_view(engine.mm(t1, t2), output_size)


def _batched_mm(engine: Engine, tensor1, tensor2, dim1: int, dim2: int):
    # b1 x n x m1 times b2 x m2 x p; m1 and m2 are tracked separately so the
    # engine reports the mismatch
    size1 = engine.shape(tensor1)
    size2 = engine.shape(tensor2)

    n = size1[-2] if dim1 > 1 else 1
    m1 = size1[-1]
    batch_tensor1 = size1[:max(dim1 - 2, 0)]
    m2 = size2[-2] if dim2 > 1 else 1
    p = size2[-1]
    batch_tensor2 = size2[:max(dim2 - 2, 0)]

    expand_batch_portion = list(infer_broadcast_shape(batch_tensor1, batch_tensor2))
    tensor1_expand_size = expand_batch_portion + [n, m1]
    tensor2_expand_size = expand_batch_portion + [m2, p]

    expand_batch_product = math.prod(expand_batch_portion)
    tensor1_bmm_view = [expand_batch_product, n, m1]
    tensor2_bmm_view = [expand_batch_product, m2, p]

    tensor1_expanded = engine.view(
        engine.contiguous(engine.expand(tensor1, tensor1_expand_size)), tensor1_bmm_view
    )
    tensor2_expanded = engine.view(
        engine.contiguous(engine.expand(tensor2, tensor2_expand_size)), tensor2_bmm_view
    )

    output_shape = list(expand_batch_portion)
    if dim1 > 1:
        output_shape.append(n)
    if dim2 > 1:
        output_shape.append(p)

    return engine.unsafe_view(engine.bmm(tensor1_expanded, tensor2_expanded), output_shape)
