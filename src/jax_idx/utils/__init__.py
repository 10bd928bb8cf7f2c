"""Package utilities (logging)."""

from jax_idx.utils.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
