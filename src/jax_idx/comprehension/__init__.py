"""Comprehension evaluator: pointwise and reduced maps over index domains."""

from jax_idx.comprehension.evaluator import (
    MAX,
    REDUCTIONS,
    SUM,
    Reduction,
    comprehend,
    comprehend_reduce,
    reduce_domain,
    reduction_for,
)

__all__ = [
    "Reduction",
    "SUM",
    "MAX",
    "REDUCTIONS",
    "reduction_for",
    "comprehend",
    "comprehend_reduce",
    "reduce_domain",
]
