"""
gradtorch Configuration
=======================

Process-wide settings, initialised from the environment and adjustable at
runtime:

- ``GRADTORCH_DEFAULT_ENGINE``: engine used when no argument identifies one
  (any registered engine name, default ``numpy``). The name is checked
  against the engine registry when the default engine is looked up.
- ``GRADTORCH_LOG_LEVEL``: level of the ``gradtorch`` logger (default ``WARNING``).

Usage:
    from gradtorch import config

    config.set_default_engine('torch')
    config.set_log_level('DEBUG')
"""

from __future__ import annotations
import logging
import os
from typing import Union

ENGINE_ENV = "GRADTORCH_DEFAULT_ENGINE"
LOG_LEVEL_ENV = "GRADTORCH_LOG_LEVEL"

_default_engine = os.getenv(ENGINE_ENV, "numpy").lower()


def get_default_engine_name() -> str:
    return _default_engine


def set_default_engine(name: str):
    """
    Set the engine used when formulas cannot infer one from their arguments.

    Args:
        name: Name of a registered engine, e.g. 'numpy' or 'torch'
    """
    from .engine.registry import available_engines
    global _default_engine

    name = name.lower()
    known = available_engines()
    if name not in known:
        raise ValueError(f"Unknown engine: {name} (expected one of {known})")
    _default_engine = name


def log_level_from_env() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def set_log_level(level: Union[int, str]):
    """Change the level of the package logger and all of its children."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.getLogger("gradtorch").setLevel(level)
