"""
gradtorch Array API
===================

Array-module selection for the reference engine:
- NumPy (CPU) - default
- CuPy (CUDA GPU) - used automatically for CuPy arrays

CuPy mirrors the NumPy API, so the reference engine asks for the module that
owns an array and calls the same functions on it.

Usage:
    from gradtorch.core.array_api import get_array_module

    xp = get_array_module(x)
    y = xp.zeros_like(x)  # Same device as x
"""

from __future__ import annotations
from typing import Any
import numpy as np
import scipy.sparse as sp

from .types import CPU, Device

# =============================================================================
# CuPy Detection
# =============================================================================

_CUPY_AVAILABLE = False

try:
    import cupy as cp
    _CUPY_AVAILABLE = True
except ImportError:
    cp = None


# =============================================================================
# Array Module Selection
# =============================================================================

def is_array(obj: Any) -> bool:
    """True for anything the reference engine can treat as a tensor."""
    if isinstance(obj, np.ndarray) or sp.issparse(obj):
        return True
    return _CUPY_AVAILABLE and isinstance(obj, cp.ndarray)


def is_sparse(arr: Any) -> bool:
    if sp.issparse(arr):
        return True
    if _CUPY_AVAILABLE:
        import cupyx.scipy.sparse as csp
        return csp.issparse(arr)
    return False


def get_array_module(arr: Any):
    """
    Get the array module (numpy or cupy) for an array.

    This is the key to writing device-agnostic code:
        xp = get_array_module(x)
        y = xp.zeros_like(x)  # Same device as x
    """
    if _CUPY_AVAILABLE:
        return cp.get_array_module(arr)
    return np


def get_device(arr: Any) -> Device:
    """Get the device an array lives on."""
    if _CUPY_AVAILABLE and isinstance(arr, cp.ndarray):
        return Device.cuda(arr.device.id)
    return CPU

