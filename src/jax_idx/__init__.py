"""jax-idx: index-domain array comprehensions on JAX.

Builds new arrays by evaluating a scalar expression at every point of an
index domain, optionally reducing over an inner domain, and expresses the
usual array kernels (matmul, convolution, pooling, gather, embedding) as
clients of that one pattern.

Modules:
    domain: Shapes, indices and rectangular index domains
    arrays: Immutable dense array values
    comprehension: Pointwise and reduced maps, sum/max reductions
    windows: Output-bound inference for strided sliding windows
    gather: Indirect indexing with data-dependent bounds checks
    kernels: Matrix, convolution, pooling and embedding kernels
    errors: Structured engine errors
    config: Evaluation strategy and batching configuration
"""

import logging

from jax_idx.errors import (
    EmptyReduction,
    ErrorKind,
    IndexEngineError,
    IndexOutOfBounds,
    IndexTypeError,
    InvalidDomain,
    InvalidWindow,
    RankMismatch,
    ShapeMismatch,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ErrorKind",
    "IndexEngineError",
    "ShapeMismatch",
    "RankMismatch",
    "IndexOutOfBounds",
    "InvalidWindow",
    "EmptyReduction",
    "InvalidDomain",
    "IndexTypeError",
]
