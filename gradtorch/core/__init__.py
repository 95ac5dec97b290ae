"""Device, dtype and array-module infrastructure for gradtorch."""

from .types import (
    CPU,
    Device,
    DeviceType,
    DType,
    float16,
    float32,
    float64,
    int32,
    int64,
)
from . import array_api

__all__ = [
    'CPU',
    'Device',
    'DeviceType',
    'DType',
    'float16',
    'float32',
    'float64',
    'int32',
    'int64',
    'array_api',
]
