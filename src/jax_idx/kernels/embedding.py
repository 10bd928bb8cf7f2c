"""Lookup-table embedding kernels.

An embedding bag sums table rows selected by an integer index array:
``out[b, d] = sum_l table[indices[b, l], d]``. The row coordinate is a
nested lookup, so the indices are validated on their concrete values
before the reduced map runs.

"""

from __future__ import annotations

from typing import Any

from jax_idx.arrays.values import ArrayValue
from jax_idx.comprehension.evaluator import SUM, comprehend_reduce
from jax_idx.config import EvalConfig
from jax_idx.gather import check_gather_indices
from jax_idx.kernels._validate import as_array, expect_rank, expect_same_shape


def lut_embedding(table: Any, indices: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Sum of looked-up table rows per batch entry.

    Args:
        table: Lookup table (E, D).
        indices: Row indices (B, L), each in ``[0, E)``.
        config: Optional ``EvalConfig``.

    Returns:
        Embeddings (B, D).

    Raises:
        IndexOutOfBounds: If an index is outside the table.
        IndexTypeError: If ``indices`` is not integer-valued.

    Examples:
        >>> lut_embedding([[1.0, 2.0], [10.0, 20.0]], [[0, 1], [1, 1]]).tolist()
        [[11.0, 22.0], [20.0, 40.0]]

    """
    table, indices = as_array(table), as_array(indices)
    expect_rank(table, 2, "table")
    expect_rank(indices, 2, "indices")
    check_gather_indices(indices, table.shape[0])
    batch, lookups = indices.shape
    dim = table.shape[1]
    return comprehend_reduce(
        (batch, dim),
        (lookups,),
        lambda o, r: table[indices[o[0], r[0]], o[1]],
        SUM,
        config=config,
    )


def dual_lut_embedding(
    lut1: Any,
    lut2: Any,
    indices1: Any,
    indices2: Any,
    *,
    config: EvalConfig | None = None,
) -> tuple[ArrayValue, ArrayValue]:
    """Two embedding bags over same-shaped tables and index arrays.

    Args:
        lut1: First table (E, D).
        lut2: Second table (E, D).
        indices1: Indices into ``lut1`` (B, L).
        indices2: Indices into ``lut2`` (B, L).
        config: Optional ``EvalConfig``.

    Returns:
        Pair of embeddings, each (B, D).

    Raises:
        ShapeMismatch: If the tables, or the index arrays, differ in shape.

    """
    lut1, lut2 = as_array(lut1), as_array(lut2)
    indices1, indices2 = as_array(indices1), as_array(indices2)
    expect_same_shape(lut1, lut2, "dual_lut_embedding tables")
    expect_same_shape(indices1, indices2, "dual_lut_embedding index arrays")
    return (
        lut_embedding(lut1, indices1, config=config),
        lut_embedding(lut2, indices2, config=config),
    )
