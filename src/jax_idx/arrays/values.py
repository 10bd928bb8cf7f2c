"""Dense, immutable N-dimensional array values.

An ``ArrayValue`` wraps a ``jax.Array`` together with its shape. JAX arrays
are immutable, so every operation here returns a new value; nothing is
updated in place.

Element reads accept both concrete Python/NumPy integers and JAX tracers.
Concrete coordinates are bounds-checked on every read (no negative
wrap-around, no clamping). Traced coordinates occur inside vectorised
comprehensions; while ``checked_reads()`` is active each traced read
registers a ``checkify`` check, which the evaluator turns into
``IndexOutOfBounds`` after the batch runs.

References:
    - JAX sharp bits (out-of-bounds indexing):
      https://jax.readthedocs.io/en/latest/notebooks/Common_Gotchas_in_JAX.html
    - checkify: https://jax.readthedocs.io/en/latest/debugging/checkify_guide.html

"""

from __future__ import annotations

import contextvars
import operator
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Union

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.experimental import checkify

from jax_idx.domain import Index, Shape, as_shape
from jax_idx.errors import IndexTypeError, RankMismatch, ShapeMismatch, out_of_bounds

Coordinate = Union[int, Array]

_CHECK_TRACED_READS: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "jax_idx_check_traced_reads", default=False
)


@contextmanager
def checked_reads() -> Iterator[None]:
    """Register a ``checkify`` bounds check for every traced read in the block.

    Only functions traced under ``checkify.checkify`` may run inside this
    block; the comprehension evaluator sets it around its batch functions.
    """
    token = _CHECK_TRACED_READS.set(True)
    try:
        yield
    finally:
        _CHECK_TRACED_READS.reset(token)


def _check_coordinates(coords: tuple[Any, ...], shape: Shape) -> tuple[Any, ...]:
    checked = []
    for d, coord in enumerate(coords):
        if isinstance(coord, jax.core.Tracer):
            if _CHECK_TRACED_READS.get():
                checkify.check(
                    (coord >= 0) & (coord < shape[d]),
                    f"index out of bounds: coordinate {{}} in dimension {d} "
                    f"is outside [0, {shape[d]}) of shape {shape}",
                    coord,
                )
            checked.append(coord)
            continue
        try:
            value = operator.index(coord)
        except TypeError:
            raise IndexTypeError(
                f"coordinate {coord!r} in dimension {d} is not an integer"
            ) from None
        if value < 0 or value >= shape[d]:
            raise out_of_bounds(coords, shape)
        checked.append(value)
    return tuple(checked)


def _as_index(index: Any) -> tuple[Any, ...]:
    if isinstance(index, tuple):
        return index
    if isinstance(index, list):
        return tuple(index)
    return (index,)


@dataclass(frozen=True, eq=False)
class ArrayValue:
    """Immutable dense array with shape-checked element and slice access.

    Examples:
        >>> a = from_literal([[1, 2], [3, 4]])
        >>> a.shape
        (2, 2)
        >>> int(a[1, 0])
        3

    """

    data: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", jnp.asarray(self.data))

    @property
    def shape(self) -> Shape:
        return tuple(int(d) for d in self.data.shape)

    @property
    def rank(self) -> int:
        return self.data.ndim

    @property
    def dtype(self) -> jnp.dtype:
        return self.data.dtype

    @property
    def size(self) -> int:
        return int(self.data.size)

    def __getitem__(self, index: Any) -> Array:
        coords = _as_index(index)
        if len(coords) != self.rank:
            raise RankMismatch(
                f"index {coords} has rank {len(coords)}, array has rank {self.rank}"
            )
        coords = _check_coordinates(coords, self.shape)
        return self.data[coords]

    def slice(self, prefix: Sequence[Coordinate]) -> ArrayValue:
        """Fix the leading ``len(prefix)`` coordinates.

        Args:
            prefix: Leading coordinates to fix.

        Returns:
            Sub-array of rank ``rank - len(prefix)``.

        Raises:
            RankMismatch: If the prefix is longer than the array's rank.
            IndexOutOfBounds: If a concrete prefix coordinate is out of range.

        Examples:
            >>> a = from_literal([[1, 2, 3], [4, 5, 6]])
            >>> a.slice((1,)).tolist()
            [4, 5, 6]

        """
        coords = _as_index(prefix)
        if len(coords) > self.rank:
            raise RankMismatch(
                f"prefix {coords} has rank {len(coords)}, array has rank {self.rank}"
            )
        coords = _check_coordinates(coords, self.shape)
        return ArrayValue(self.data[coords])

    def __add__(self, other: ArrayValue | float) -> ArrayValue:
        return add(self, other)

    __radd__ = __add__

    def __mul__(self, other: ArrayValue | float) -> ArrayValue:
        return multiply(self, other)

    __rmul__ = __mul__

    def maximum(self, other: ArrayValue | float) -> ArrayValue:
        return maximum(self, other)

    def tolist(self) -> Any:
        return self.data.tolist()

    def to_numpy(self) -> np.ndarray:
        return np.asarray(self.data)

    def allclose(self, other: ArrayValue | Array, *, rtol: float = 1e-5, atol: float = 1e-6) -> bool:
        other_data = other.data if isinstance(other, ArrayValue) else jnp.asarray(other)
        if tuple(other_data.shape) != self.shape:
            return False
        return bool(jnp.allclose(self.data, other_data, rtol=rtol, atol=atol))

    def __repr__(self) -> str:
        return f"ArrayValue(shape={self.shape}, dtype={self.dtype})"


def from_literal(data: Any, dtype: jnp.dtype | None = None) -> ArrayValue:
    """Create an array value from nested sequences or an existing array.

    Args:
        data: Nested sequences of numbers, a NumPy array or a JAX array.
        dtype: Element type. Default: inferred (int32 for integers, float32
            for floats).

    Returns:
        New ``ArrayValue``.

    Raises:
        ShapeMismatch: If the nested sequences are ragged or non-numeric.

    Examples:
        >>> from_literal([1.0, 2.0, 3.0]).shape
        (3,)
        >>> from_literal([[1, 2]]).dtype
        dtype('int32')

    """
    if isinstance(data, ArrayValue):
        return ArrayValue(data.data if dtype is None else data.data.astype(dtype))
    if isinstance(data, jax.Array):
        return ArrayValue(data if dtype is None else data.astype(dtype))
    try:
        host = np.asarray(data)
    except ValueError as exc:
        raise ShapeMismatch(f"literal is not rectangular: {exc}") from None
    if host.dtype == object:
        raise ShapeMismatch("literal is not a rectangular array of numbers")
    return ArrayValue(jnp.asarray(host, dtype=dtype))


def get(array: ArrayValue, index: Index) -> Array:
    """Read one element.

    Raises:
        RankMismatch: If ``len(index)`` differs from the array's rank.
        IndexOutOfBounds: If any coordinate lies outside ``[0, shape[d])``.

    Examples:
        >>> float(get(from_literal([[1.0, 2.0], [3.0, 4.0]]), (0, 1)))
        2.0

    """
    return array[tuple(index)]


def slice_prefix(array: ArrayValue, prefix: Sequence[Coordinate]) -> ArrayValue:
    """Functional form of ``ArrayValue.slice``."""
    return array.slice(prefix)


def make(shape: Sequence[int] | int, fill_fn: Callable[[Index], Any], *, config=None) -> ArrayValue:
    """Build an array by evaluating ``fill_fn`` at every index of ``shape``.

    ``fill_fn`` must be total over the domain and return a scalar for
    every index.

    Args:
        shape: Output shape.
        fill_fn: Function from an index tuple to an element.
        config: Optional ``EvalConfig`` overriding the active one.

    Returns:
        New ``ArrayValue`` of the given shape.

    Raises:
        ShapeMismatch: If ``fill_fn`` returns ``None`` or a non-scalar.

    Examples:
        >>> make((2, 3), lambda idx: idx[0] * 10 + idx[1]).tolist()
        [[0, 1, 2], [10, 11, 12]]

    """
    from jax_idx.comprehension.evaluator import comprehend

    return comprehend(as_shape(shape), fill_fn, config=config)


def _operand_data(value: ArrayValue | float, shape: Shape, op_name: str) -> Array:
    if isinstance(value, ArrayValue):
        if value.shape != shape:
            raise ShapeMismatch(
                f"{op_name} requires identical shapes, got {shape} and {value.shape}"
            )
        return value.data
    if isinstance(value, (int, float, np.number)):
        return jnp.asarray(value)
    raise ShapeMismatch(f"{op_name} operand {value!r} is not an array value or a scalar")


def _binary(a: ArrayValue | float, b: ArrayValue | float, fn: Callable[[Array, Array], Array], op_name: str) -> ArrayValue:
    if isinstance(a, ArrayValue):
        shape = a.shape
    elif isinstance(b, ArrayValue):
        shape = b.shape
    else:
        raise ShapeMismatch(f"{op_name} needs at least one array value operand")
    return ArrayValue(fn(_operand_data(a, shape, op_name), _operand_data(b, shape, op_name)))


def add(a: ArrayValue | float, b: ArrayValue | float) -> ArrayValue:
    """Element-wise sum of two identically shaped arrays.

    No broadcasting beyond a Python scalar operand.

    Raises:
        ShapeMismatch: If the shapes differ.

    Examples:
        >>> add(from_literal([1, 2]), from_literal([10, 20])).tolist()
        [11, 22]

    """
    return _binary(a, b, jnp.add, "add")


def multiply(a: ArrayValue | float, b: ArrayValue | float) -> ArrayValue:
    return _binary(a, b, jnp.multiply, "multiply")


def maximum(a: ArrayValue | float, b: ArrayValue | float) -> ArrayValue:
    return _binary(a, b, jnp.maximum, "maximum")


def relu(array: ArrayValue, *, config=None) -> ArrayValue:
    """Rectified linear unit ``max(x, 0)`` as a pointwise comprehension.

    Examples:
        >>> relu(from_literal([-1.0, 0.5])).tolist()
        [0.0, 0.5]

    """
    from jax_idx.comprehension.evaluator import comprehend

    zero = jnp.zeros((), dtype=array.dtype)
    return comprehend(array.shape, lambda idx: jnp.maximum(array[idx], zero), config=config)
