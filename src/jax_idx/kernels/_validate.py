from __future__ import annotations

from typing import Any

from jax_idx.arrays.values import ArrayValue, from_literal
from jax_idx.errors import RankMismatch, ShapeMismatch


def as_array(value: Any) -> ArrayValue:
    return value if isinstance(value, ArrayValue) else from_literal(value)


def expect_rank(array: ArrayValue, rank: int, name: str) -> None:
    if array.rank != rank:
        raise RankMismatch(f"{name} must have rank {rank}, got shape {array.shape}")


def expect_extent(actual: int, expected: int, what: str) -> None:
    if actual != expected:
        raise ShapeMismatch(f"{what}: expected extent {expected}, got {actual}")


def expect_same_shape(a: ArrayValue, b: ArrayValue, what: str) -> None:
    if a.shape != b.shape:
        raise ShapeMismatch(f"{what}: shapes {a.shape} and {b.shape} differ")
