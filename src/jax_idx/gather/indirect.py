"""Indirect (gather) indexing.

``gather(x, i)`` reads ``x`` at positions held in an integer array:
``z[idx] = x[i[idx]]``. Unlike window kernels, the coordinates here are
runtime data, so they are validated against ``x``'s extent on the
concrete index values before evaluation. Out-of-range values raise; they
are never clamped or wrapped (``jnp.take`` would silently clamp).

References:
    - jnp.take: https://jax.readthedocs.io/en/latest/_autosummary/jax.numpy.take.html

"""

from __future__ import annotations

from typing import Any

import jax.numpy as jnp
import numpy as np

from jax_idx.arrays.values import ArrayValue, from_literal
from jax_idx.comprehension.evaluator import comprehend
from jax_idx.config import EvalConfig
from jax_idx.errors import IndexOutOfBounds, IndexTypeError, RankMismatch
from jax_idx.utils.logging import get_logger

logger = get_logger(__name__)


def _as_array_value(value: Any) -> ArrayValue:
    return value if isinstance(value, ArrayValue) else from_literal(value)


def check_gather_indices(indices: ArrayValue, extent: int) -> None:
    """Validate gather indices against the source axis extent.

    Args:
        indices: Integer index array.
        extent: Extent of the gathered axis.

    Raises:
        IndexTypeError: If ``indices`` is not integer-valued.
        IndexOutOfBounds: If any value is negative or ``>= extent``. The
            exception's ``position`` is the first offending position in
            row-major order and ``index`` the offending value.

    Examples:
        >>> check_gather_indices(from_literal([0, 2]), 3)
        >>> check_gather_indices(from_literal([0, 3]), 3)
        Traceback (most recent call last):
        ...
        jax_idx.errors.IndexOutOfBounds: gather index 3 at position (1,) is out of bounds for axis extent 3

    """
    indices = _as_array_value(indices)
    if not jnp.issubdtype(indices.dtype, jnp.integer):
        raise IndexTypeError(f"gather indices must be integers, got dtype {indices.dtype}")
    host = np.asarray(indices.data)
    bad = np.argwhere((host < 0) | (host >= extent))
    if bad.size:
        position = tuple(int(c) for c in bad[0])
        value = int(host[position])
        raise IndexOutOfBounds(
            f"gather index {value} at position {position} is out of bounds for axis extent {extent}",
            index=(value,),
            shape=(extent,),
            position=position,
        )
    logger.debug("gather indices %s checked against extent %d", indices.shape, extent)


def gather(x: Any, indices: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Gather along the leading axis: ``z[idx] = x[indices[idx]]``.

    For a rank-1 ``x`` the result has the shape of ``indices``; for higher
    ranks the trailing axes of ``x`` are appended
    (``shape(indices) + shape(x)[1:]``).

    Args:
        x: Source array (``ArrayValue`` or array-like).
        indices: Integer index array (``ArrayValue`` or array-like).
        config: Optional ``EvalConfig``.

    Returns:
        New ``ArrayValue``.

    Raises:
        RankMismatch: If ``x`` is rank 0.
        IndexTypeError: If ``indices`` is not integer-valued.
        IndexOutOfBounds: If an index value is outside ``[0, shape(x)[0])``.

    Examples:
        >>> gather(from_literal([10.0, 20.0, 30.0]), from_literal([[2, 0], [1, 1]])).tolist()
        [[30.0, 10.0], [20.0, 20.0]]

    """
    x = _as_array_value(x)
    indices = _as_array_value(indices)
    if x.rank == 0:
        raise RankMismatch("cannot gather from a rank-0 array")
    check_gather_indices(indices, x.shape[0])

    index_rank = indices.rank
    out_shape = indices.shape + x.shape[1:]

    def read(idx):
        row = indices[idx[:index_rank]]
        return x[(row,) + tuple(idx[index_rank:])]

    return comprehend(out_shape, read, config=config)
