"""Shapes, indices and rectangular index domains.

An ``IndexDomain`` is a half-open box ``[lower, upper)`` with a per-dimension
step. Iteration is row-major (last dimension fastest), lazy and restartable;
``index_matrix`` materialises the same sequence as an integer matrix for
vectorised evaluation.

References:
    - NumPy ``ndindex``: https://numpy.org/doc/stable/reference/generated/numpy.ndindex.html
    - JAX indexing: https://jax.readthedocs.io/en/latest/_autosummary/jax.numpy.ndarray.at.html

"""

from __future__ import annotations

import itertools
import math
import operator
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from jax_idx.errors import InvalidDomain, ShapeMismatch

Shape = tuple[int, ...]
Index = tuple[int, ...]


def _as_int(value: object, what: str) -> int:
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidDomain(f"{what} must be an integer, got {value!r}") from None


def as_shape(dims: Sequence[int] | int) -> Shape:
    """Normalise a sequence of extents into a ``Shape`` tuple.

    Args:
        dims: Per-dimension extents, or a single int for a rank-1 shape.

    Returns:
        Tuple of non-negative Python ints.

    Raises:
        InvalidDomain: If an extent is negative or not an integer.

    Examples:
        >>> as_shape([2, 3])
        (2, 3)
        >>> as_shape(4)
        (4,)

    """
    if isinstance(dims, (int, np.integer)):
        dims = (dims,)
    shape = tuple(_as_int(d, "shape extent") for d in dims)
    for d, extent in enumerate(shape):
        if extent < 0:
            raise InvalidDomain(f"shape {shape} has negative extent {extent} in dimension {d}")
    return shape


def shape_of(array: object) -> Shape:
    """Return the shape of an array value (or anything with ``.shape``).

    Examples:
        >>> import jax.numpy as jnp
        >>> shape_of(jnp.ones((2, 5)))
        (2, 5)

    """
    return tuple(int(d) for d in array.shape)


@dataclass(frozen=True)
class IndexDomain:
    """Rectangular, stepped range of indices ``[lower, upper)``.

    Build instances with ``domain`` or ``full_domain``; those validate the
    invariants this class relies on.
    """

    lower: Index
    upper: Index
    step: Index

    @property
    def rank(self) -> int:
        return len(self.lower)

    @property
    def extents(self) -> Shape:
        """Per-dimension index counts, i.e. the shape of a result array."""
        return tuple(
            len(range(lo, hi, st)) for lo, hi, st in zip(self.lower, self.upper, self.step)
        )

    @property
    def is_empty(self) -> bool:
        return size(self) == 0

    def axes(self) -> tuple[range, ...]:
        return tuple(range(lo, hi, st) for lo, hi, st in zip(self.lower, self.upper, self.step))

    def __iter__(self) -> Iterator[Index]:
        return iterate(self)

    def __len__(self) -> int:
        return size(self)

    def index_matrix(self) -> np.ndarray:
        """All indices as a ``(size, rank)`` int32 matrix in row-major order.

        Examples:
            >>> domain((0, 0), (2, 2)).index_matrix().tolist()
            [[0, 0], [0, 1], [1, 0], [1, 1]]

        """
        if self.rank == 0:
            return np.zeros((1, 0), dtype=np.int32)
        axes = [np.arange(lo, hi, st, dtype=np.int32) for lo, hi, st in zip(self.lower, self.upper, self.step)]
        grids = np.meshgrid(*axes, indexing="ij")
        return np.stack(grids, axis=-1).reshape(-1, self.rank)


def domain(
    lower: Sequence[int],
    upper: Sequence[int],
    step: Sequence[int] | int = 1,
) -> IndexDomain:
    """Construct an index domain ``[lower, upper)`` stepped by ``step``.

    Args:
        lower: Inclusive lower bound per dimension.
        upper: Exclusive upper bound per dimension.
        step: Stride per dimension, or one int for every dimension.

    Returns:
        Validated ``IndexDomain``.

    Raises:
        ShapeMismatch: If ``lower``, ``upper`` or a per-dimension ``step``
            differ in rank.
        InvalidDomain: If ``lower[d] > upper[d]`` or ``step[d] < 1``.

    Examples:
        >>> d = domain((0, 1), (2, 3))
        >>> list(d)
        [(0, 1), (0, 2), (1, 1), (1, 2)]
        >>> domain((0,), (5,), step=2).extents
        (3,)

    """
    lo = tuple(_as_int(v, "lower bound") for v in lower)
    hi = tuple(_as_int(v, "upper bound") for v in upper)
    if len(lo) != len(hi):
        raise ShapeMismatch(f"domain bounds differ in rank: lower {lo} vs upper {hi}")
    if isinstance(step, (int, np.integer)):
        st = (_as_int(step, "step"),) * len(lo)
    else:
        st = tuple(_as_int(v, "step") for v in step)
        if len(st) != len(lo):
            raise ShapeMismatch(f"step {st} has rank {len(st)}, domain has rank {len(lo)}")
    for d in range(len(lo)):
        if lo[d] > hi[d]:
            raise InvalidDomain(f"lower bound {lo[d]} exceeds upper bound {hi[d]} in dimension {d}")
        if st[d] < 1:
            raise InvalidDomain(f"step must be >= 1, got {st[d]} in dimension {d}")
    return IndexDomain(lower=lo, upper=hi, step=st)


def full_domain(shape: Sequence[int] | int) -> IndexDomain:
    """Domain covering every valid index of ``shape``.

    Examples:
        >>> full_domain((2, 3)).extents
        (2, 3)
        >>> list(full_domain(()))
        [()]

    """
    dims = as_shape(shape)
    return domain((0,) * len(dims), dims)


def iterate(dom: IndexDomain) -> Iterator[Index]:
    """Yield the domain's indices in row-major order.

    Each call returns a fresh iterator; the domain holds no iteration state.
    """
    return itertools.product(*dom.axes())


def size(dom: IndexDomain) -> int:
    """Total number of indices in the domain (0 if any dimension is empty)."""
    return math.prod(dom.extents)
