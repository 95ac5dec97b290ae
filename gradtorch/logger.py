import logging

from .config import log_level_from_env

_ROOT = "gradtorch"


def _configure_root() -> logging.Logger:
    logger = logging.getLogger(_ROOT)
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter('[%(asctime)s][%(levelname)s][%(name)s] %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(log_level_from_env())
    return logger


def get_logger(name: str = _ROOT) -> logging.Logger:
    """Return a logger under the ``gradtorch`` hierarchy."""
    _configure_root()
    if name != _ROOT and not name.startswith(_ROOT + "."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
