"""Tests for pow and atan2 backward formulas."""

import math

import numpy as np
import pytest
import torch

import gradtorch as gt


def _positive(*shape):
    return torch.rand(*shape, dtype=torch.float64) + 0.5


class TestPowBackward:
    """Tests for the scalar-exponent pow gradient."""

    @pytest.mark.parametrize("exponent", [2.0, 2.5, -1.0, 1.0])
    def test_matches_autograd(self, exponent, random_seed):
        x = _positive(3, 4).requires_grad_(True)
        grad = torch.randn(3, 4, dtype=torch.float64)
        x.pow(exponent).backward(grad)
        out = gt.pow_backward(grad, x.detach(), exponent)
        assert torch.allclose(out, x.grad)

    def test_zero_exponent(self, engine, tensor, as_numpy):
        """A constant power has zero gradient, even at x == 0."""
        out = gt.pow_backward(tensor([1.0, 2.0]), tensor([0.0, 3.0]), 0.0)
        assert engine.owns(out)
        np.testing.assert_array_equal(as_numpy(out), [0.0, 0.0])

    def test_numpy_engine(self, numpy_engine, random_seed):
        x = np.random.rand(5) + 0.5
        grad = np.random.randn(5)
        out = gt.pow_backward(grad, x, 3.0, numpy_engine)
        np.testing.assert_allclose(out, grad * 3.0 * x ** 2)


class TestPowBackwardSelf:
    """Tests for the tensor-exponent pow gradient w.r.t. the base."""

    def test_matches_autograd(self, random_seed):
        x = _positive(4, 3).requires_grad_(True)
        exponent = torch.tensor([0.0, 1.5, -2.0], dtype=torch.float64).expand(4, 3)
        grad = torch.randn(4, 3, dtype=torch.float64)
        torch.pow(x, exponent).backward(grad)
        out = gt.pow_backward_self(grad, x.detach(), exponent)
        assert torch.allclose(out, x.grad)

    def test_zero_exponent_at_zero_base(self, tensor, as_numpy):
        """0 ** 0 contributes a zero gradient instead of NaN."""
        out = as_numpy(gt.pow_backward_self(tensor([1.0, 1.0]), tensor([0.0, 2.0]), tensor([0.0, 2.0])))
        np.testing.assert_array_equal(out, [0.0, 4.0])
        assert not np.isnan(out).any()


class TestPowBackwardExponent:
    """Tests for the pow gradient w.r.t. the exponent."""

    def test_tensor_base(self, random_seed):
        x = _positive(2, 3)
        exponent = torch.randn(2, 3, dtype=torch.float64, requires_grad=True)
        grad = torch.randn(2, 3, dtype=torch.float64)
        torch.pow(x, exponent).backward(grad)
        out = gt.pow_backward_exponent(grad, x, exponent.detach())
        assert torch.allclose(out, exponent.grad)

    def test_number_base(self, random_seed):
        exponent = torch.randn(5, dtype=torch.float64, requires_grad=True)
        grad = torch.randn(5, dtype=torch.float64)
        torch.pow(2.0, exponent).backward(grad)
        out = gt.pow_backward_exponent(grad, 2.0, exponent.detach())
        assert torch.allclose(out, exponent.grad)

    def test_zero_number_base(self):
        """0 ** e has zero gradient for e >= 0 and -inf for e < 0, as autograd reports."""
        exponent = torch.tensor([0.0, 1.0, 2.5, -1.0], dtype=torch.float64, requires_grad=True)
        grad = torch.ones(4, dtype=torch.float64)
        torch.pow(0.0, exponent).backward(grad)
        out = gt.pow_backward_exponent(grad, 0.0, exponent.detach())
        assert torch.equal(out[:3], exponent.grad[:3])
        assert torch.equal(out[:3], torch.zeros(3, dtype=torch.float64))
        assert out[3] == exponent.grad[3] == float('-inf')

    def test_zero_tensor_base(self):
        x = torch.tensor([0.0, 0.0, 1.5], dtype=torch.float64)
        exponent = torch.tensor([1.0, 0.0, 2.0], dtype=torch.float64, requires_grad=True)
        grad = torch.randn(3, dtype=torch.float64)
        torch.pow(x, exponent).backward(grad)
        out = gt.pow_backward_exponent(grad, x, exponent.detach())
        assert torch.allclose(out, exponent.grad)

    def test_negative_number_base(self, tensor, as_numpy):
        """A negative base yields NaN instead of raising."""
        out = as_numpy(gt.pow_backward_exponent(tensor([1.0, 1.0]), -2.0, tensor([1.0, 2.0])))
        assert np.isnan(out).all()

    def test_number_base_numpy(self, numpy_engine):
        exponent = np.array([0.0, 1.0, 2.0])
        out = gt.pow_backward_exponent(np.ones(3), 3.0, exponent)
        np.testing.assert_allclose(out, 3.0 ** exponent * math.log(3.0))


class TestAtan2Backward:
    """Tests for atan2_backward."""

    def test_matches_autograd(self, random_seed):
        y = torch.randn(3, 4, dtype=torch.float64, requires_grad=True)
        x = torch.randn(3, 4, dtype=torch.float64, requires_grad=True)
        grad = torch.randn(3, 4, dtype=torch.float64)
        torch.atan2(y, x).backward(grad)
        grad_y, grad_x = gt.atan2_backward(grad, y.detach(), x.detach())
        assert torch.allclose(grad_y, y.grad)
        assert torch.allclose(grad_x, x.grad)

    def test_known_values(self, tensor, as_numpy):
        grad_y, grad_x = gt.atan2_backward(tensor([1.0]), tensor([3.0]), tensor([4.0]))
        np.testing.assert_allclose(as_numpy(grad_y), [4.0 / 25.0])
        np.testing.assert_allclose(as_numpy(grad_x), [-3.0 / 25.0])

    @pytest.mark.parametrize("mask", [(True, False), (False, True)])
    def test_partial_mask(self, mask, tensor):
        grads = gt.atan2_backward(tensor([1.0]), tensor([3.0]), tensor([4.0]), mask)
        for requested, g in zip(mask, grads):
            assert (g is not None) == requested

    def test_empty_mask(self):
        """Nothing requested means nothing is computed; no engine is needed."""
        assert gt.atan2_backward(object(), object(), object(), (False, False)) == (None, None)
