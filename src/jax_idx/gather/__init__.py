"""Indirect gather with data-dependent bounds checking."""

from jax_idx.gather.indirect import check_gather_indices, gather

__all__ = ["gather", "check_gather_indices"]
