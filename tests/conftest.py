"""Pytest configuration and fixtures."""

import numpy as np
import pytest
import torch

from gradtorch import config, get_engine


@pytest.fixture
def numpy_engine():
    """Fixture for the NumPy reference engine."""
    return get_engine('numpy')


@pytest.fixture
def torch_engine():
    """Fixture for the torch engine."""
    return get_engine('torch')


@pytest.fixture(params=['numpy', 'torch'])
def engine(request):
    """Fixture that parametrizes over all built-in engines."""
    return get_engine(request.param)


@pytest.fixture
def tensor(engine):
    """Build a float64 tensor of the parametrized engine from nested lists or an ndarray."""
    def make(data, dtype=np.float64):
        arr = np.array(data, dtype=dtype)
        if engine.name == 'torch':
            return torch.from_numpy(arr)
        return arr
    return make


@pytest.fixture
def as_numpy():
    """Convert a tensor of either engine to an ndarray."""
    def convert(t):
        if isinstance(t, torch.Tensor):
            return t.detach().cpu().numpy()
        return np.asarray(t)
    return convert


@pytest.fixture
def random_seed():
    """Set random seed for reproducibility."""
    torch.manual_seed(42)
    np.random.seed(42)
    return 42


@pytest.fixture
def restore_default_engine():
    """Put the default engine back after a test changes it."""
    previous = config.get_default_engine_name()
    yield
    config.set_default_engine(previous)
