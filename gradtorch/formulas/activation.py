"""dtype-aware softmax / log-softmax and the single-shift roll used by roll's backward."""

from __future__ import annotations
from typing import Optional, Sequence, Union

from ..core.types import DType
from ..engine import Engine, engine_for
from ..logger import get_logger
from ..shape import normalize_dims, wrap_dim

logger = get_logger(__name__)


def _upcasts_in_kernel(engine: Engine, input, dtype: DType) -> bool:
    # the kernel can read half and write float directly, saving a converted copy
    return (
        engine.is_cuda(input)
        and engine.dtype(input) == DType.FLOAT16
        and dtype == DType.FLOAT32
    )


def _dispatch(kernel_name: str, input, dim: int, dtype: Optional[DType], engine: Optional[Engine]):
    engine = engine or engine_for(input)
    kernel = getattr(engine, kernel_name)
    dim = wrap_dim(dim, engine.dim(input))

    if dtype is None:
        return kernel(input, dim, False)
    if _upcasts_in_kernel(engine, input, dtype):
        logger.debug("%s: half input upcast inside the kernel", kernel_name)
        return kernel(input, dim, True)
    return kernel(engine.to_dtype(input, dtype), dim, False)


def softmax(input, dim: int, dtype: Optional[DType] = None, engine: Optional[Engine] = None):
    """
    Softmax along ``dim``, optionally producing ``dtype``.

    Half-precision input on a CUDA device asked for float32 output is upcast by
    the kernel itself; any other requested dtype converts the input first.
    """
    return _dispatch("softmax_kernel", input, dim, dtype, engine)


def log_softmax(input, dim: int, dtype: Optional[DType] = None, engine: Optional[Engine] = None):
    """Log-softmax along ``dim``; same dtype rule as :func:`softmax`."""
    return _dispatch("log_softmax_kernel", input, dim, dtype, engine)


def roll(tensor, shift: int, dims: Union[int, Sequence[int]], engine: Optional[Engine] = None):
    """Roll by a single ``shift``, forwarded to the engine's list-based roll."""
    engine = engine or engine_for(tensor)
    return engine.roll(tensor, [shift], list(normalize_dims(dims)))
