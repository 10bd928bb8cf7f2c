"""Output-bound inference for sliding-window kernels.

For a window of extent ``w`` and stride ``s`` over an input axis of extent
``n`` the valid output extent is ``(n - w) // s + 1``: the last window that
starts at ``(out - 1) * s`` still ends inside the input. Axes the window
does not cover (batch, channel) pass through unchanged.

All checks here depend only on shapes, so they run before any element is
read. Data-dependent checks (gather indices) live in ``jax_idx.gather``.

References:
    - jax.lax.reduce_window: https://jax.readthedocs.io/en/latest/_autosummary/jax.lax.reduce_window.html
    - jax.lax.conv_general_dilated: https://jax.readthedocs.io/en/latest/_autosummary/jax.lax.conv_general_dilated.html

"""

from __future__ import annotations

import operator
from collections.abc import Sequence
from typing import Any

import numpy as np

from jax_idx.domain import Index, IndexDomain, Shape, as_shape, full_domain
from jax_idx.errors import InvalidWindow, RankMismatch
from jax_idx.utils.logging import get_logger

logger = get_logger(__name__)


def _window_int(value: object, what: str) -> int:
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidWindow(f"{what} must be an integer, got {value!r}") from None


def _window_extents(window_shape: Sequence[int] | int) -> Shape:
    if np.ndim(window_shape) == 0:
        window_shape = (window_shape,)
    extents = tuple(_window_int(w, "window extent") for w in window_shape)
    for d, w in enumerate(extents):
        if w < 1:
            raise InvalidWindow(f"window extent must be >= 1, got {w} in window dimension {d}")
    return extents


def _strides(strides: Sequence[int] | int | None, rank: int) -> Shape:
    if strides is None:
        return (1,) * rank
    if np.ndim(strides) == 0:
        strides = (strides,) * rank
    result = tuple(_window_int(s, "stride") for s in strides)
    if len(result) != rank:
        raise RankMismatch(f"strides {result} have rank {len(result)}, window has rank {rank}")
    for d, s in enumerate(result):
        if s < 1:
            raise InvalidWindow(f"stride must be >= 1, got {s} in window dimension {d}")
    return result


def window_output_shape(
    input_shape: Sequence[int],
    window_shape: Sequence[int] | int,
    strides: Sequence[int] | int | None = None,
) -> Shape:
    """Infer the output shape of a sliding window over ``input_shape``.

    The window governs the trailing ``len(window_shape)`` axes; leading axes
    keep the input's extent.

    Args:
        input_shape: Shape of the array the window slides over.
        window_shape: Window extents, same rank as the input or a trailing
            sub-rank of it.
        strides: Per-window-axis stride, a single int, or None for 1.

    Returns:
        Output shape such that every window position stays in bounds.

    Raises:
        RankMismatch: If the window has more axes than the input, or the
            strides' rank differs from the window's.
        InvalidWindow: If the window is larger than the input along an axis,
            or a window extent or stride is below 1.

    Examples:
        >>> window_output_shape((1, 3, 5, 5), (3, 3))
        (1, 3, 3, 3)
        >>> window_output_shape((1, 1, 4, 4), (2, 2), strides=2)
        (1, 1, 2, 2)
        >>> window_output_shape((7,), (3,), strides=(2,))
        (3,)

    """
    in_shape = as_shape(input_shape)
    window = _window_extents(window_shape)
    if len(window) > len(in_shape):
        raise RankMismatch(
            f"window {window} has rank {len(window)}, input {in_shape} has rank {len(in_shape)}"
        )
    steps = _strides(strides, len(window))
    lead = len(in_shape) - len(window)
    out = list(in_shape[:lead])
    for d, (n, w, s) in enumerate(zip(in_shape[lead:], window, steps)):
        if n < w:
            raise InvalidWindow(
                f"window extent {w} exceeds input extent {n} along axis {lead + d} "
                f"(input {in_shape}, window {window})"
            )
        out.append((n - w) // s + 1)
    logger.debug("window %s stride %s over %s -> %s", window, steps, in_shape, tuple(out))
    return tuple(out)


def window_domain(
    input_shape: Sequence[int],
    window_shape: Sequence[int] | int,
    strides: Sequence[int] | int | None = None,
) -> IndexDomain:
    """Output index domain of a sliding window (see ``window_output_shape``)."""
    return full_domain(window_output_shape(input_shape, window_shape, strides))


def window_inner_domain(window_shape: Sequence[int] | int) -> IndexDomain:
    """Reduction domain ``0 <= k < window_shape`` of one window position."""
    return full_domain(_window_extents(window_shape))


def window_position(
    out_index: Sequence[Any],
    window_index: Sequence[Any],
    strides: Sequence[int] | int | None = None,
) -> Index:
    """Input coordinate read by window offset ``window_index`` at ``out_index``.

    The trailing ``len(window_index)`` coordinates become
    ``out * stride + k``; leading coordinates pass through. Works on concrete
    ints and on traced coordinates alike.

    Examples:
        >>> window_position((0, 2, 1), (1, 1), strides=2)
        (0, 5, 3)

    """
    out_index = tuple(out_index)
    window_index = tuple(window_index)
    if len(window_index) > len(out_index):
        raise RankMismatch(
            f"window index {window_index} is longer than output index {out_index}"
        )
    steps = _strides(strides, len(window_index))
    lead = len(out_index) - len(window_index)
    spatial = tuple(o * s + k for o, s, k in zip(out_index[lead:], steps, window_index))
    return out_index[:lead] + spatial
