"""Tensor execution engines used by the gradient formulas."""

from .base import Engine
from .numpy_engine import NumpyEngine
from .torch_engine import TorchEngine
from .registry import available_engines, engine_for, get_engine, register_engine

register_engine("numpy", NumpyEngine)
register_engine("torch", TorchEngine)

__all__ = [
    'Engine',
    'NumpyEngine',
    'TorchEngine',
    'available_engines',
    'engine_for',
    'get_engine',
    'register_engine',
]
