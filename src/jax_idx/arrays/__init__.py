"""Immutable dense array values.

Arrays are created by literal fill, by comprehension (``make``) or by
slicing. Element-wise operations require identical shapes.
"""

from jax_idx.arrays.values import (
    ArrayValue,
    add,
    from_literal,
    get,
    make,
    maximum,
    multiply,
    relu,
    slice_prefix,
)

__all__ = [
    "ArrayValue",
    "from_literal",
    "make",
    "get",
    "slice_prefix",
    "add",
    "multiply",
    "maximum",
    "relu",
]
