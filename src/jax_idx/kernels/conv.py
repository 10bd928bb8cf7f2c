"""Convolution and pooling kernels.

All of them share one shape: bound inference gives the output domain, the
window's own extents (times the contracted channels) give the inner domain,
and ``window_position`` maps an (output, window) pair to the input
coordinate. Convolutions reduce with ``SUM``, pooling with ``MAX``.

Convolutions are cross-correlations (the filter is not flipped), matching
``jax.lax.conv_general_dilated``. Biases are added through a base array.

"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from jax_idx.arrays.values import ArrayValue
from jax_idx.comprehension.evaluator import MAX, SUM, comprehend, comprehend_reduce
from jax_idx.config import EvalConfig
from jax_idx.domain import full_domain
from jax_idx.kernels._validate import as_array, expect_extent, expect_rank
from jax_idx.windows import window_domain, window_inner_domain, window_output_shape, window_position


def conv1d(inputs: Any, kernel: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """1-D valid cross-correlation ``out[i] = sum_k inputs[i + k] * kernel[k]``.

    Args:
        inputs: Signal (M,).
        kernel: Filter (N,), N <= M.
        config: Optional ``EvalConfig``.

    Returns:
        Signal (M - N + 1,).

    Raises:
        InvalidWindow: If the kernel is longer than the signal.

    Examples:
        >>> conv1d([4, 5, 6], [1, 1, 1]).tolist()
        [15]

    """
    inputs, kernel = as_array(inputs), as_array(kernel)
    expect_rank(inputs, 1, "inputs")
    expect_rank(kernel, 1, "kernel")
    return comprehend_reduce(
        window_domain(inputs.shape, kernel.shape),
        window_inner_domain(kernel.shape),
        lambda o, k: inputs[window_position(o, k)] * kernel[k],
        SUM,
        config=config,
    )


def _conv2d(
    inputs: ArrayValue,
    weight: ArrayValue,
    strides: tuple[int, int],
    bias: ArrayValue | None,
    config: EvalConfig | None,
) -> ArrayValue:
    expect_rank(inputs, 4, "inputs")
    expect_rank(weight, 4, "weight")
    batch, channels, _, _ = inputs.shape
    filters, weight_channels, kh, kw = weight.shape
    expect_extent(weight_channels, channels, "conv2d weight input channels")
    _, _, out_h, out_w = window_output_shape(inputs.shape, (kh, kw), strides)
    out_shape = (batch, filters, out_h, out_w)

    base = None
    if bias is not None:
        expect_rank(bias, 1, "bias")
        expect_extent(bias.shape[0], filters, "conv2d bias length")
        base = comprehend(out_shape, lambda idx: bias[idx[1]], config=config)

    def term(o, r):
        n, f = o[0], o[1]
        c, dy, dx = r
        y, x = window_position(o[2:], (dy, dx), strides)
        return inputs[n, c, y, x] * weight[f, c, dy, dx]

    return comprehend_reduce(
        out_shape,
        full_domain((channels, kh, kw)),
        term,
        SUM,
        base=base,
        config=config,
    )


def conv2d(inputs: Any, weight: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """2-D valid convolution over NCHW inputs.

    ``out[b, o, y, x] = sum_{c, i, j} inputs[b, c, y + i, x + j] * weight[o, c, i, j]``

    Args:
        inputs: Activations (B, IP, H, W).
        weight: Filters (OP, IP, KH, KW).
        config: Optional ``EvalConfig``.

    Returns:
        Activations (B, OP, H - KH + 1, W - KW + 1).

    Examples:
        >>> import jax.numpy as jnp
        >>> conv2d(jnp.ones((1, 2, 4, 4)), jnp.ones((3, 2, 3, 3))).shape
        (1, 3, 2, 2)

    """
    return _conv2d(as_array(inputs), as_array(weight), (1, 1), None, config)


def strided_conv2d(
    stride_h: int,
    stride_w: int,
    inputs: Any,
    weight: Any,
    bias: Any,
    *,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """Strided 2-D convolution with a per-filter bias.

    Args:
        stride_h: Vertical stride.
        stride_w: Horizontal stride.
        inputs: Activations (N, C, H, W).
        weight: Filters (F, C, KH, KW).
        bias: Bias (F,).
        config: Optional ``EvalConfig``.

    Returns:
        Activations (N, F, (H - KH) // stride_h + 1, (W - KW) // stride_w + 1).

    Examples:
        >>> import jax.numpy as jnp
        >>> out = strided_conv2d(2, 2, jnp.ones((1, 1, 5, 5)), jnp.ones((1, 1, 3, 3)), jnp.array([1.0]))
        >>> out.tolist()
        [[[[10.0, 10.0], [10.0, 10.0]]]]

    """
    return _conv2d(as_array(inputs), as_array(weight), (stride_h, stride_w), as_array(bias), config)


def grouped_conv2d(
    inputs: Any,
    weight: Any,
    bias: Any | None = None,
    strides: Sequence[int] | int = (1, 1),
    *,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """Grouped 2-D convolution; each group convolves only its own channels.

    ``out[n, g, f, y, x] = bias[g, f] +
    sum_{c, i, j} inputs[n, g, c, y*sh + i, x*sw + j] * weight[g, f, c, i, j]``

    Args:
        inputs: Activations (N, G, C, H, W).
        weight: Filters (G, F, C, KH, KW).
        bias: Optional bias (G, F), added per group and filter.
        strides: Spatial strides (sh, sw) or one int.
        config: Optional ``EvalConfig``.

    Returns:
        Activations (N, G, F, H', W').

    """
    inputs, weight = as_array(inputs), as_array(weight)
    expect_rank(inputs, 5, "inputs")
    expect_rank(weight, 5, "weight")
    batch, groups, channels, _, _ = inputs.shape
    weight_groups, filters, weight_channels, kh, kw = weight.shape
    expect_extent(weight_groups, groups, "grouped_conv2d weight groups")
    expect_extent(weight_channels, channels, "grouped_conv2d weight channels per group")
    if np.ndim(strides) == 0:
        strides = (strides, strides)
    strides = tuple(strides)
    _, _, _, out_h, out_w = window_output_shape(inputs.shape, (kh, kw), strides)
    out_shape = (batch, groups, filters, out_h, out_w)

    base = None
    if bias is not None:
        bias = as_array(bias)
        expect_rank(bias, 2, "bias")
        expect_extent(bias.shape[0], groups, "grouped_conv2d bias groups")
        expect_extent(bias.shape[1], filters, "grouped_conv2d bias filters")
        base = comprehend(out_shape, lambda idx: bias[idx[1], idx[2]], config=config)

    def term(o, r):
        n, g, f = o[0], o[1], o[2]
        c, dy, dx = r
        y, x = window_position(o[3:], (dy, dx), strides)
        return inputs[n, g, c, y, x] * weight[g, f, c, dy, dx]

    return comprehend_reduce(
        out_shape,
        full_domain((channels, kh, kw)),
        term,
        SUM,
        base=base,
        config=config,
    )


def max_pool2d(
    inputs: Any,
    window: Sequence[int] | int = (2, 2),
    strides: Sequence[int] | int | None = None,
    *,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """Max pooling over the two trailing axes of NCHW inputs.

    Args:
        inputs: Activations (B, C, H, W).
        window: Pooling window (KH, KW) or one int. Default 2x2.
        strides: Strides; default equal to the window (non-overlapping).
        config: Optional ``EvalConfig``.

    Returns:
        Activations (B, C, (H - KH) // sh + 1, (W - KW) // sw + 1).

    Examples:
        >>> import jax.numpy as jnp
        >>> x = jnp.arange(16.0).reshape(1, 1, 4, 4)
        >>> max_pool2d(x).tolist()
        [[[[5.0, 7.0], [13.0, 15.0]]]]

    """
    inputs = as_array(inputs)
    expect_rank(inputs, 4, "inputs")
    if np.ndim(window) == 0:
        window = (window, window)
    window = tuple(window)
    if strides is None:
        strides = window
    return comprehend_reduce(
        window_domain(inputs.shape, window, strides),
        window_inner_domain(window),
        lambda o, k: inputs[window_position(o, k, strides)],
        MAX,
        config=config,
    )
