"""Package logging.

Every module logs through ``get_logger(__name__)``, a child of the
``jax_idx`` logger. The package installs only a ``NullHandler``; a stream
handler is attached when ``JAX_IDX_LOG_LEVEL`` is set or when
``configure_logging`` is called.

Examples:
    >>> get_logger("jax_idx.windows.bounds").name
    'jax_idx.windows.bounds'

"""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "JAX_IDX_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "jax_idx"

_configured = False


def _resolve_level(level_name: str | None) -> int:
    if not level_name:
        return logging.WARNING
    return getattr(logging, str(level_name).upper(), logging.WARNING)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a package logger.

    Handlers are only attached when ``JAX_IDX_LOG_LEVEL`` is set, and only to
    the ``jax_idx`` root logger; child loggers propagate to it.
    """
    logger = logging.getLogger(name)
    level_name = os.environ.get(LOG_LEVEL_ENV)
    if level_name and not _configured:
        configure_logging(level_name)
    return logger


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Send ``jax_idx`` records to stderr at ``level``.

    The stream handler is added once; later calls only change the level.
    Unknown level names fall back to ``WARNING``.

    Args:
        level: Level number or name (``"DEBUG"``, ``"info"``, ...).

    Returns:
        The ``jax_idx`` root logger.

    """
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    resolved = level if isinstance(level, int) else _resolve_level(level)
    root.setLevel(resolved)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True
    for handler in root.handlers:
        handler.setLevel(resolved)
    return root
