"""Shapes, indices and rectangular index domains.

An index domain is the iteration space of a comprehension: a half-open,
optionally stepped box of integer coordinates walked in row-major order.
"""

from jax_idx.domain.shapes import (
    Index,
    IndexDomain,
    Shape,
    as_shape,
    domain,
    full_domain,
    iterate,
    shape_of,
    size,
)

__all__ = [
    "Shape",
    "Index",
    "IndexDomain",
    "as_shape",
    "shape_of",
    "domain",
    "full_domain",
    "iterate",
    "size",
]
