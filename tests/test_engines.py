"""Tests for engine lookup, core types and engine primitives."""

import numpy as np
import pytest
import scipy.sparse as sp
import torch

import gradtorch as gt
from gradtorch.core import CPU, Device, DeviceType, DType, array_api
from gradtorch.engine import NumpyEngine, TorchEngine, available_engines, engine_for, get_engine
from gradtorch.errors import InvalidArgumentError


class TestCoreTypes:
    """Tests for Device and DType."""

    def test_device_repr(self):
        assert repr(CPU) == 'cpu'
        assert Device.cuda() == Device(DeviceType.CUDA, 0)
        assert repr(Device.cuda(2)) == 'cuda:2'

    def test_device_is_cuda(self):
        assert not CPU.is_cuda
        assert Device.cuda().is_cuda

    def test_dtype_enum(self):
        assert DType.FLOAT32.numpy_dtype == np.float32
        assert DType.FLOAT16.itemsize == 2
        assert DType.FLOAT64.is_floating_point
        assert not DType.INT64.is_floating_point
        assert DType.from_numpy(np.dtype('float64')) == DType.FLOAT64
        assert gt.float16 is DType.FLOAT16

    def test_dtype_unsupported(self):
        with pytest.raises(TypeError):
            DType.from_numpy(np.complex64)


class TestArrayApi:
    """Tests for the reference engine's array-module helpers."""

    def test_numpy_module(self):
        x = np.ones(3)
        assert array_api.get_array_module(x) is np
        assert array_api.get_device(x) == CPU

    def test_sparse(self):
        m = sp.eye(3, format='csr')
        assert array_api.is_array(m)
        assert array_api.is_sparse(m)
        assert not array_api.is_sparse(np.eye(3))
        assert not array_api.is_array([1.0, 2.0])


class TestEngineLookup:
    """Tests for engine_for / get_engine."""

    def test_builtin_engines(self):
        assert available_engines()[:2] == ['numpy', 'torch']
        assert isinstance(get_engine('numpy'), NumpyEngine)
        assert isinstance(get_engine('torch'), TorchEngine)
        assert get_engine('numpy') is get_engine('numpy')

    def test_unknown_engine(self):
        with pytest.raises(KeyError):
            get_engine('jax')

    def test_unregistered_default_engine(self, monkeypatch):
        """A default engine name that nothing registered fails on lookup instead of falling back."""
        monkeypatch.setattr(gt.config, '_default_engine', 'jax')
        with pytest.raises(ValueError, match=gt.config.ENGINE_ENV):
            get_engine()
        with pytest.raises(ValueError):
            engine_for(None, 1.0)

    def test_engine_for_tensors(self):
        assert engine_for(np.ones(2)).name == 'numpy'
        assert engine_for(torch.ones(2)).name == 'torch'

    def test_engine_for_skips_undefined_and_numbers(self):
        assert engine_for(None, 2.0, torch.ones(2)).name == 'torch'

    def test_engine_for_default(self, restore_default_engine):
        assert engine_for().name == gt.config.get_default_engine_name()
        gt.config.set_default_engine('torch')
        assert engine_for(None, 1).name == 'torch'

    def test_engine_for_unknown_type(self):
        with pytest.raises(TypeError):
            engine_for([1.0, 2.0])

    def test_register_engine(self):
        class NamedNumpyEngine(NumpyEngine):
            name = "named"

        gt.register_engine("named", NamedNumpyEngine)
        assert get_engine("named").name == "named"
        assert "named" in available_engines()
        # the built-in numpy engine still wins for ndarrays
        assert engine_for(np.ones(1)).name == "numpy"


class TestEnginePrimitives:
    """Tests for primitives shared by both engines."""

    def test_strides_in_elements(self, engine, tensor):
        t = tensor(np.zeros((3, 4)))
        assert engine.strides(t) == (4, 1)
        assert engine.strides(engine.t(t)) == (1, 4)

    def test_metadata(self, engine, tensor):
        t = tensor(np.zeros((2, 3)), dtype=np.float32)
        assert engine.shape(t) == (2, 3)
        assert engine.dim(t) == 2
        assert engine.size(t, 1) == 3
        assert engine.dtype(t) == DType.FLOAT32
        assert engine.device(t) == CPU
        assert not engine.is_cuda(t)
        assert not engine.is_sparse(t)

    def test_to_dtype(self, engine, tensor):
        t = tensor([1.0, 2.0])
        assert engine.to_dtype(t, DType.FLOAT64) is t
        assert engine.dtype(engine.to_dtype(t, DType.FLOAT16)) == DType.FLOAT16

    def test_squeeze_non_singleton(self, engine, tensor):
        t = tensor(np.zeros((2, 1, 3)))
        assert engine.shape(engine.squeeze(t, 0)) == (2, 1, 3)
        assert engine.shape(engine.squeeze(t, 1)) == (2, 3)

    def test_diagonal_is_writable_view(self, engine, tensor, as_numpy):
        t = tensor(np.zeros((3, 3)))
        engine.fill_(engine.diagonal(t), 7.0)
        np.testing.assert_array_equal(as_numpy(t), np.eye(3) * 7.0)

    def test_split(self, engine, tensor, as_numpy):
        data = np.arange(7.0)
        pieces = engine.split(tensor(data), 3, 0)
        assert [engine.shape(p) for p in pieces] == [(3,), (3,), (1,)]
        pieces = engine.split_with_sizes(tensor(data), [2, 5], 0)
        np.testing.assert_array_equal(as_numpy(pieces[1]), data[2:])

    def test_full_sum_is_tensor(self, engine, tensor):
        out = engine.sum(tensor(np.ones((2, 3))))
        assert engine.owns(out)
        assert engine.shape(out) == ()

    def test_sum_keepdim(self, engine, tensor):
        out = engine.sum(tensor(np.ones((2, 3, 4))), [0, 2], keepdim=True)
        assert engine.shape(out) == (1, 3, 1)

    def test_in_place(self, engine, tensor, as_numpy):
        t = tensor([1.0, 2.0])
        engine.add_(t, 1.0)
        engine.mul_(t, 2.0)
        engine.sub_(t, 1.0)
        engine.pow_(t, 2)
        np.testing.assert_array_equal(as_numpy(t), [9.0, 25.0])


class TestNumpyEngineChecks:
    """Tests for argument checks the NumPy engine adds."""

    def test_split_with_sizes_must_cover(self, numpy_engine):
        with pytest.raises(InvalidArgumentError):
            numpy_engine.split_with_sizes(np.ones(5), [2, 2], 0)

    def test_zero_split_size(self, numpy_engine):
        assert len(numpy_engine.split(np.ones((0, 2)), 0, 0)) == 1
        with pytest.raises(InvalidArgumentError):
            numpy_engine.split(np.ones(3), 0, 0)

    def test_rank_checks(self, numpy_engine):
        with pytest.raises(InvalidArgumentError):
            numpy_engine.mm(np.ones(3), np.ones((3, 2)))
        with pytest.raises(InvalidArgumentError):
            numpy_engine.bmm(np.ones((2, 2, 3)), np.ones((3, 3, 4)))

    def test_view_requires_contiguous(self, numpy_engine):
        with pytest.raises(RuntimeError):
            numpy_engine.view(np.ones((3, 4)).T, [12])

    def test_half_to_float_requires_half(self, numpy_engine):
        with pytest.raises(InvalidArgumentError):
            numpy_engine.softmax_kernel(np.ones(3, dtype=np.float32), 0, True)

    def test_sparse_has_no_strides(self, numpy_engine):
        with pytest.raises(InvalidArgumentError):
            numpy_engine.strides(sp.eye(2, format='csr'))
