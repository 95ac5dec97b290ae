"""Tests for dimension wrapping, broadcasting and broadcast reduction."""

import numpy as np
import pytest

import gradtorch as gt
from gradtorch.errors import (
    DimensionOutOfRangeError,
    DuplicateDimError,
    GradTorchError,
    InvalidArgumentError,
    ShapeMismatchError,
)


class TestWrapDim:
    """Tests for wrap_dim."""

    @pytest.mark.parametrize("dim,rank,expected", [
        (0, 3, 0),
        (2, 3, 2),
        (-1, 3, 2),
        (-3, 3, 0),
        (0, 1, 0),
        (-1, 1, 0),
    ])
    def test_in_range(self, dim, rank, expected):
        assert gt.wrap_dim(dim, rank) == expected

    @pytest.mark.parametrize("dim,rank", [(3, 3), (-4, 3), (1, 1), (-2, 1)])
    def test_out_of_range(self, dim, rank):
        with pytest.raises(DimensionOutOfRangeError) as exc_info:
            gt.wrap_dim(dim, rank)
        assert exc_info.value.dim == dim
        assert exc_info.value.rank == rank

    def test_out_of_range_is_index_error(self):
        """Callers catching IndexError still see the failure."""
        with pytest.raises(IndexError):
            gt.wrap_dim(5, 2)
        with pytest.raises(GradTorchError):
            gt.wrap_dim(5, 2)

    def test_scalar_wraps_as_rank_one(self):
        assert gt.wrap_dim(0, 0) == 0
        assert gt.wrap_dim(-1, 0) == 0
        with pytest.raises(DimensionOutOfRangeError):
            gt.wrap_dim(1, 0)

    def test_scalar_without_wrapping(self):
        with pytest.raises(DimensionOutOfRangeError):
            gt.wrap_dim(0, 0, wrap_scalar=False)

    def test_message_names_range(self):
        with pytest.raises(DimensionOutOfRangeError, match=r"\[-3, 2\], but got 3"):
            gt.wrap_dim(3, 3)


class TestInferBroadcastShape:
    """Tests for infer_broadcast_shape."""

    @pytest.mark.parametrize("a,b,expected", [
        ((2, 1, 4), (3, 1), (2, 3, 4)),
        ((5,), (), (5,)),
        ((), (), ()),
        ((0,), (1,), (0,)),
        ((1, 0), (3, 1), (3, 0)),
        ((4, 3), (4, 3), (4, 3)),
        ((8, 1, 6, 1), (7, 1, 5), (8, 7, 6, 5)),
    ])
    def test_broadcast(self, a, b, expected):
        assert gt.infer_broadcast_shape(a, b) == expected

    @pytest.mark.parametrize("a,b", [
        ((2, 1, 4), (3, 1)),
        ((5,), ()),
        ((0,), (1,)),
        ((8, 1, 6, 1), (7, 1, 5)),
    ])
    def test_symmetric(self, a, b):
        assert gt.infer_broadcast_shape(a, b) == gt.infer_broadcast_shape(b, a)

    def test_matches_numpy(self):
        for a, b in [((3, 1, 2), (4, 1)), ((1,), (6, 5)), ((2, 3), (1, 1, 3))]:
            assert gt.infer_broadcast_shape(a, b) == np.broadcast_shapes(a, b)

    def test_mismatch(self):
        """Sizes that differ and are both non-1 cannot broadcast."""
        with pytest.raises(ShapeMismatchError) as exc_info:
            gt.infer_broadcast_shape((2, 3), (4, 3))
        err = exc_info.value
        assert (err.dim, err.size_a, err.size_b) == (0, 2, 4)
        assert "must match the size of tensor b (4)" in str(err)

    def test_mismatch_reports_output_dim(self):
        with pytest.raises(ShapeMismatchError) as exc_info:
            gt.infer_broadcast_shape((5, 2), (3,))
        assert exc_info.value.dim == 1

    def test_zero_against_non_one(self):
        with pytest.raises(ShapeMismatchError):
            gt.infer_broadcast_shape((0,), (2,))


class TestIsExpandableTo:
    """Tests for is_expandable_to."""

    @pytest.mark.parametrize("shape,desired,expected", [
        ((3, 1), (2, 3, 4), True),
        ((), (2, 3), True),
        ((1,), (0,), True),
        ((2,), (3,), False),
        ((2, 3, 4), (3, 4), False),
    ])
    def test_expandable(self, shape, desired, expected):
        assert gt.is_expandable_to(shape, desired) is expected


class TestReduceToShape:
    """Tests for reduce_to_shape / sum_to."""

    def test_leading_and_singleton_dims(self, tensor, as_numpy):
        t = tensor(np.ones((2, 3, 4)))
        out = gt.reduce_to_shape(t, (3, 1))
        np.testing.assert_allclose(as_numpy(out), np.full((3, 1), 8.0))

    def test_to_scalar(self, tensor, as_numpy):
        t = tensor(np.arange(24.0).reshape(2, 3, 4))
        out = gt.reduce_to_shape(t, ())
        assert as_numpy(out).shape == ()
        assert float(as_numpy(out)) == pytest.approx(276.0)

    def test_keeps_leading_singleton(self, tensor, as_numpy):
        t = tensor(np.ones((2, 3, 4)))
        out = gt.reduce_to_shape(t, (1, 4))
        np.testing.assert_allclose(as_numpy(out), np.full((1, 4), 6.0))

    def test_identity_shape(self, tensor, as_numpy):
        data = np.random.randn(3, 4)
        out = gt.reduce_to_shape(tensor(data), (3, 4))
        np.testing.assert_allclose(as_numpy(out), data)

    def test_undoes_expand(self, engine, tensor, as_numpy):
        """Reducing an expanded tensor sums the copies the expand made."""
        x = np.random.randn(3, 1)
        expanded = engine.expand(tensor(x), (2, 3, 4))
        out = gt.sum_to(expanded, (3, 1))
        np.testing.assert_allclose(as_numpy(out), x * 8.0)


class TestDimsToBitset:
    """Tests for dims_to_bitset."""

    def test_wraps_dims(self):
        assert gt.dims_to_bitset([0, -1], 3) == frozenset({0, 2})

    def test_empty(self):
        assert gt.dims_to_bitset([], 4) == frozenset()

    def test_duplicates_after_wrapping(self):
        with pytest.raises(DuplicateDimError) as exc_info:
            gt.dims_to_bitset([1, -2], 3)
        assert exc_info.value.dim == 1

    def test_too_many_dims(self):
        assert gt.dims_to_bitset([63], 64) == frozenset({63})
        with pytest.raises(InvalidArgumentError):
            gt.dims_to_bitset([0], 65)

    def test_out_of_range(self):
        with pytest.raises(DimensionOutOfRangeError):
            gt.dims_to_bitset([3], 3)


class TestSafeSize:
    """Tests for safe_size."""

    def test_sizes(self):
        assert gt.safe_size((2, 3), -1) == 3
        assert gt.safe_size((2, 3), 0) == 2

    def test_scalar(self):
        assert gt.safe_size((), 0) == 1
        assert gt.safe_size((), -1) == 1

    def test_out_of_range(self):
        with pytest.raises(DimensionOutOfRangeError):
            gt.safe_size((2, 3), 2)
