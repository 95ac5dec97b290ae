"""Exceptions raised by gradtorch.

Every error derives from :class:`GradTorchError` and from the builtin exception
a caller would naturally catch for that category, so ``except IndexError``
still works for an out-of-range dimension.
"""


class GradTorchError(Exception):
    """Base class for all gradtorch errors."""


class InvalidArgumentError(GradTorchError, ValueError):
    """A caller passed an argument the formula cannot accept."""


class DimensionOutOfRangeError(GradTorchError, IndexError):
    """A dimension index falls outside ``[-rank, rank)``."""

    def __init__(self, dim: int, rank: int):
        self.dim = dim
        self.rank = rank
        low, high = (-rank, rank - 1) if rank > 0 else (-1, 0)
        super().__init__(
            f"Dimension out of range (expected to be in range of [{low}, {high}], but got {dim})"
        )


class ShapeMismatchError(GradTorchError, ValueError):
    """Two shapes disagree on a non-singleton dimension."""

    def __init__(self, dim: int, size_a: int, size_b: int):
        self.dim = dim
        self.size_a = size_a
        self.size_b = size_b
        super().__init__(
            f"The size of tensor a ({size_a}) must match the size of tensor b ({size_b}) "
            f"at non-singleton dimension {dim}"
        )


class DuplicateDimError(GradTorchError, ValueError):
    """The same dimension appears more than once in a reduction list."""

    def __init__(self, dim: int):
        self.dim = dim
        super().__init__(f"dim {dim} appears multiple times in the list of dims")


class InvalidRankError(GradTorchError, ValueError):
    """Operand ranks are not accepted by the operation."""

    def __init__(self, rank1: int, rank2: int):
        self.rank1 = rank1
        self.rank2 = rank2
        super().__init__(
            f"both arguments to matmul need to be at least 1D, but they are {rank1}D and {rank2}D"
        )


class UnsupportedConfigurationError(GradTorchError, RuntimeError):
    """The forward pass discarded information the backward formula needs."""
