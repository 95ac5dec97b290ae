"""
gradtorch Core: Device and DType
================================

Metadata types shared by every engine. Engines report a tensor's device and
element type through these, so formulas can reason about them without
touching the concrete array library.
"""

from __future__ import annotations
import numpy as np
from enum import Enum
from dataclasses import dataclass


class DeviceType(Enum):
    CPU = "cpu"
    CUDA = "cuda"


@dataclass(frozen=True)
class Device:
    """Represents a compute device."""
    type: DeviceType
    index: int = 0

    def __repr__(self) -> str:
        if self.type == DeviceType.CPU:
            return "cpu"
        return f"cuda:{self.index}"

    @property
    def is_cuda(self) -> bool:
        return self.type == DeviceType.CUDA

    @staticmethod
    def cpu() -> 'Device':
        return Device(DeviceType.CPU, 0)

    @staticmethod
    def cuda(index: int = 0) -> 'Device':
        return Device(DeviceType.CUDA, index)


CPU = Device.cpu()


class DType(Enum):
    FLOAT16 = ("float16", np.float16, 2, True)
    FLOAT32 = ("float32", np.float32, 4, True)
    FLOAT64 = ("float64", np.float64, 8, True)
    INT32 = ("int32", np.int32, 4, False)
    INT64 = ("int64", np.int64, 8, False)
    BOOL = ("bool", np.bool_, 1, False)

    def __init__(self, name: str, numpy_dtype, size: int, is_floating_point: bool):
        self._name = name
        self.numpy_dtype = numpy_dtype
        self.itemsize = size
        self.is_floating_point = is_floating_point

    def __repr__(self) -> str:
        return f"gradtorch.{self._name}"

    @staticmethod
    def from_numpy(dtype) -> 'DType':
        dtype = np.dtype(dtype)
        for member in DType:
            if np.dtype(member.numpy_dtype) == dtype:
                return member
        raise TypeError(f"Unsupported element type: {dtype}")


float16 = half = DType.FLOAT16
float32 = DType.FLOAT32
float64 = DType.FLOAT64
int32 = DType.INT32
int64 = DType.INT64
bool_ = DType.BOOL
