"""
Engine lookup.

Formulas resolve the engine from their tensor arguments, the same way
``get_array_module`` resolves NumPy or CuPy from an array:

    engine = engine_for(grad, self)
    out = engine.mul(grad, self)
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List

from .. import config
from .base import Engine

_FACTORIES: Dict[str, Callable[[], Engine]] = {}
_INSTANCES: Dict[str, Engine] = {}
_ORDER: List[str] = []


def register_engine(name: str, factory: Callable[[], Engine]):
    """Register an engine factory under ``name``; later lookups create it once."""
    if name not in _FACTORIES:
        _ORDER.append(name)
    _FACTORIES[name] = factory
    _INSTANCES.pop(name, None)


def get_engine(name: str = None) -> Engine:
    """Return the engine registered under ``name`` (default: configured engine)."""
    if name is None:
        name = config.get_default_engine_name()
        if name not in _FACTORIES:
            raise ValueError(
                f"Default engine {name!r} (from {config.ENGINE_ENV}) is not registered; "
                f"expected one of {available_engines()}"
            )
    if name not in _FACTORIES:
        raise KeyError(f"No engine registered under {name!r}")
    if name not in _INSTANCES:
        _INSTANCES[name] = _FACTORIES[name]()
    return _INSTANCES[name]


def available_engines() -> List[str]:
    return list(_ORDER)


def engine_for(*tensors: Any) -> Engine:
    """
    Get the engine that owns the first tensor among ``tensors``.

    ``None`` (an undefined gradient) and Python numbers are skipped. When no
    argument is a tensor the configured default engine is returned.
    """
    for t in tensors:
        if t is None or isinstance(t, (bool, int, float)):
            continue
        for name in _ORDER:
            engine = get_engine(name)
            if engine.owns(t):
                return engine
        raise TypeError(f"No registered engine handles objects of type {type(t).__name__}")
    return get_engine()
