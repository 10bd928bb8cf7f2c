"""Structured error types for the index-domain engine.

Every failure the engine reports is an ``IndexEngineError`` carrying an
``ErrorKind`` discriminator. Each subclass also derives from the matching
built-in exception, so callers may catch ``ValueError`` / ``IndexError``
without importing this module.

Errors are raised eagerly at the call that requests the offending
operation. Shape and index errors are deterministic: retrying with the
same arguments fails the same way.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class ErrorKind(str, Enum):
    SHAPE_MISMATCH = "shape_mismatch"
    RANK_MISMATCH = "rank_mismatch"
    INDEX_OUT_OF_BOUNDS = "index_out_of_bounds"
    INVALID_WINDOW = "invalid_window"
    EMPTY_REDUCTION = "empty_reduction"
    INVALID_DOMAIN = "invalid_domain"
    INDEX_TYPE = "index_type"


class IndexEngineError(Exception):
    """Base class for all engine failures."""

    kind: ErrorKind


class ShapeMismatch(IndexEngineError, ValueError):
    """Operand shapes are incompatible for the requested operation."""

    kind = ErrorKind.SHAPE_MISMATCH


class RankMismatch(IndexEngineError, ValueError):
    """An index, prefix or window has the wrong number of dimensions."""

    kind = ErrorKind.RANK_MISMATCH


class IndexOutOfBounds(IndexEngineError, IndexError):
    """A concrete coordinate, static or gathered, is outside an array."""

    kind = ErrorKind.INDEX_OUT_OF_BOUNDS

    def __init__(
        self,
        message: str,
        *,
        index: Sequence[int] | None = None,
        shape: Sequence[int] | None = None,
        position: Sequence[int] | None = None,
    ):
        super().__init__(message)
        self.index = tuple(index) if index is not None else None
        self.shape = tuple(shape) if shape is not None else None
        self.position = tuple(position) if position is not None else None


class InvalidWindow(IndexEngineError, ValueError):
    """A window/stride configuration yields a negative output extent."""

    kind = ErrorKind.INVALID_WINDOW


class EmptyReduction(IndexEngineError, ValueError):
    """A reduction without a usable identity was asked to reduce nothing."""

    kind = ErrorKind.EMPTY_REDUCTION


class InvalidDomain(IndexEngineError, ValueError):
    """Domain bounds or steps violate ``lower <= upper`` / ``step >= 1``."""

    kind = ErrorKind.INVALID_DOMAIN


class IndexTypeError(IndexEngineError, TypeError):
    kind = ErrorKind.INDEX_TYPE


def out_of_bounds(index: Sequence[int], shape: Sequence[int]) -> IndexOutOfBounds:
    return IndexOutOfBounds(
        f"index {tuple(index)} is out of bounds for shape {tuple(shape)}",
        index=index,
        shape=shape,
    )
