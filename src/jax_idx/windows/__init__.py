"""Window/stride bound inference for convolution- and pooling-style kernels."""

from jax_idx.windows.bounds import (
    window_domain,
    window_inner_domain,
    window_output_shape,
    window_position,
)

__all__ = [
    "window_output_shape",
    "window_domain",
    "window_inner_domain",
    "window_position",
]
