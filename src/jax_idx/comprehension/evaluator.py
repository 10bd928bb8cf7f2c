"""Array comprehensions over index domains.

Two forms build every kernel in this package:

* pointwise map: ``out[idx] = fn(idx)``
* reduced map: ``out[idx] = op(fn(idx, k) for k in inner_domain)``,
  optionally combined with a base array of the output shape.

The ``vectorized`` strategy maps ``fn`` over batches of an index matrix with
``jax.vmap`` (nested once more over the inner domain for reduced maps). The
``loop`` strategy calls ``fn`` once per concrete index tuple. Both produce
the same values and raise ``IndexOutOfBounds`` for the same reads: concrete
coordinates are checked on read, traced ones through ``checkify``.

References:
    - jax.vmap: https://jax.readthedocs.io/en/latest/_autosummary/jax.vmap.html
    - jax.jit: https://jax.readthedocs.io/en/latest/_autosummary/jax.jit.html
    - checkify: https://jax.readthedocs.io/en/latest/debugging/checkify_guide.html

"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.experimental import checkify

from jax_idx.arrays.values import ArrayValue, checked_reads
from jax_idx.config import EvalConfig, resolve_config
from jax_idx.domain import Index, IndexDomain, Shape, full_domain, iterate, size
from jax_idx.errors import EmptyReduction, IndexOutOfBounds, ShapeMismatch
from jax_idx.utils.logging import get_logger

logger = get_logger(__name__)

DomainLike = Union[IndexDomain, Shape]


@dataclass(frozen=True)
class Reduction:
    """Associative, commutative reduction with its identity element.

    Attributes:
        name: Registry name (``"sum"``, ``"max"``).
        combine: Binary combination of two partial results.
        reduce: Vectorised reducer, called as ``reduce(values, axis=...)``.
        identity: Identity element of ``combine``.
        empty_ok: Whether reducing an empty domain may return ``identity``.
            ``False`` for max: "maximum of nothing" has no numeric answer.
    """

    name: str
    combine: Callable[[Array, Array], Array]
    reduce: Callable[..., Array]
    identity: float
    empty_ok: bool = True

    def identity_array(self, shape: Shape, dtype: Any) -> Array:
        dtype = jnp.dtype(dtype)
        value = self.identity
        if math.isinf(value) and jnp.issubdtype(dtype, jnp.integer):
            info = jnp.iinfo(dtype)
            value = info.min if value < 0 else info.max
        return jnp.full(shape, value, dtype=dtype)


SUM = Reduction(name="sum", combine=jnp.add, reduce=jnp.sum, identity=0.0)
MAX = Reduction(name="max", combine=jnp.maximum, reduce=jnp.max, identity=-math.inf, empty_ok=False)

REDUCTIONS: dict[str, Reduction] = {"sum": SUM, "max": MAX}


def reduction_for(op: Reduction | str) -> Reduction:
    """Look up a reduction by name; ``Reduction`` instances pass through.

    Examples:
        >>> reduction_for("max").name
        'max'

    """
    if isinstance(op, Reduction):
        return op
    try:
        return REDUCTIONS[str(op).lower()]
    except KeyError:
        raise ValueError(f"Unknown reduction {op!r}; expected one of {sorted(REDUCTIONS)}") from None


def _as_domain(domain_or_shape: DomainLike | int) -> IndexDomain:
    if isinstance(domain_or_shape, IndexDomain):
        return domain_or_shape
    return full_domain(domain_or_shape)


def _scalar(value: Any, index: Index | None) -> Array:
    where = f" at index {index}" if index is not None else ""
    if value is None:
        raise ShapeMismatch(f"comprehension function is undefined{where} (returned None)")
    value = jnp.asarray(value)
    if value.ndim != 0:
        raise ShapeMismatch(
            f"comprehension function must return a scalar{where}, got shape {tuple(value.shape)}"
        )
    return value


def _unpack(row: Array, rank: int) -> tuple[Array, ...]:
    return tuple(row[d] for d in range(rank))


def _raise_read_error(err: checkify.Error) -> None:
    message = err.get()
    if message is not None:
        raise IndexOutOfBounds(message.splitlines()[0])


def _map_batches(batch_fn: Callable[[Array], Array], indices: np.ndarray, batch: int, cfg: EvalConfig) -> Array:
    """Apply ``batch_fn`` to row chunks of ``indices`` and concatenate.

    Traced reads are bounds-checked through ``checkify``. Under ``jit`` the
    last chunk is padded by repeating its final row, so every chunk shares
    one shape and compiles once.
    """
    checked_fn = checkify.checkify(batch_fn, errors=checkify.user_checks)
    if cfg.jit:
        checked_fn = jax.jit(checked_fn)
    total = indices.shape[0]
    batch = min(batch, total)
    if cfg.jit and total % batch:
        pad = batch - total % batch
        indices = np.concatenate([indices, np.repeat(indices[-1:], pad, axis=0)])
    chunks = []
    with checked_reads():
        for start in range(0, indices.shape[0], batch):
            err, out = checked_fn(jnp.asarray(indices[start : start + batch]))
            _raise_read_error(err)
            chunks.append(out)
    logger.debug("evaluated %d indices in %d batch(es) of %d", total, len(chunks), batch)
    data = chunks[0] if len(chunks) == 1 else jnp.concatenate(chunks)
    return data[:total]


def comprehend(
    domain_or_shape: DomainLike | int,
    fn: Callable[[Index], Any],
    *,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """Pointwise map: ``out[idx] = fn(idx)`` for every index of the domain.

    The result has shape ``domain.extents``; for a stepped or offset domain
    position ``p`` holds ``fn(lower + p * step)``.

    Args:
        domain_or_shape: ``IndexDomain`` or a shape (meaning its full domain).
        fn: Function from an index tuple to a scalar. Under the vectorized
            strategy it receives traced coordinates and must be traceable
            by JAX (read arrays through ``ArrayValue`` indexing or ``jnp``).
        config: Optional ``EvalConfig``; default is the active config.

    Returns:
        New ``ArrayValue``.

    Raises:
        ShapeMismatch: If ``fn`` returns ``None`` or a non-scalar.
        IndexOutOfBounds: If ``fn`` reads an ``ArrayValue`` outside its extent.

    Examples:
        >>> comprehend((3,), lambda idx: idx[0] * idx[0]).tolist()
        [0, 1, 4]

    """
    dom = _as_domain(domain_or_shape)
    cfg = resolve_config(config)
    extents = dom.extents
    logger.debug("comprehend: strategy=%s extents=%s", cfg.strategy, extents)
    if size(dom) == 0:
        return ArrayValue(jnp.zeros(extents, dtype=cfg.float_dtype))

    if cfg.strategy == "loop":
        values = [_scalar(fn(idx), idx) for idx in iterate(dom)]
        return ArrayValue(jnp.stack(values).reshape(extents))

    rank = dom.rank

    def at(row: Array) -> Array:
        return _scalar(fn(_unpack(row, rank)), None)

    data = _map_batches(jax.vmap(at), dom.index_matrix(), cfg.max_batch, cfg)
    return ArrayValue(data.reshape(extents))


def comprehend_reduce(
    domain_or_shape: DomainLike | int,
    inner_domain: DomainLike | int,
    fn: Callable[[Index, Index], Any],
    op: Reduction | str = SUM,
    *,
    base: ArrayValue | None = None,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """Reduced map: ``out[idx] = op(fn(idx, k) for k in inner_domain)``.

    With ``base`` the result is ``op.combine(base[idx], reduction)``, which
    composes an initialisation map (bias, ``beta * C``) with the
    accumulation instead of updating an array in place.

    Args:
        domain_or_shape: Outer (output) domain or shape.
        inner_domain: Contraction domain, e.g. the shared matmul axis or a
            convolution window.
        fn: Function of ``(outer_index, inner_index)`` returning a scalar.
        op: ``SUM``, ``MAX`` or their names.
        base: Optional array of the output shape combined into the result.
        config: Optional ``EvalConfig``.

    Returns:
        New ``ArrayValue`` of shape ``outer.extents``.

    Raises:
        EmptyReduction: If ``op`` is max and the inner domain is empty.
        ShapeMismatch: If ``base`` does not have the output shape, or ``fn``
            returns a non-scalar.
        IndexOutOfBounds: If ``fn`` reads an ``ArrayValue`` outside its extent.

    Examples:
        >>> from jax_idx.arrays import from_literal
        >>> a = from_literal([[1, 2, 3], [4, 5, 6]])
        >>> comprehend_reduce((2,), (3,), lambda i, k: a[i[0], k[0]]).tolist()
        [6, 15]

    """
    outer = _as_domain(domain_or_shape)
    inner = _as_domain(inner_domain)
    op = reduction_for(op)
    cfg = resolve_config(config)
    extents = outer.extents
    if base is not None and base.shape != extents:
        raise ShapeMismatch(f"base shape {base.shape} does not match output shape {extents}")
    inner_size = size(inner)
    logger.debug(
        "comprehend_reduce: op=%s strategy=%s extents=%s inner=%s",
        op.name,
        cfg.strategy,
        extents,
        inner.extents,
    )

    if inner_size == 0:
        if not op.empty_ok:
            raise EmptyReduction(f"{op.name} reduction over empty domain {inner.extents}")
        dtype = base.dtype if base is not None else cfg.float_dtype
        data = op.identity_array(extents, dtype)
        return ArrayValue(data if base is None else op.combine(base.data, data))
    if size(outer) == 0:
        dtype = base.dtype if base is not None else cfg.float_dtype
        return ArrayValue(jnp.zeros(extents, dtype=dtype))

    if cfg.strategy == "loop":
        reduced = []
        for idx in iterate(outer):
            values = [_scalar(fn(idx, k), idx) for k in iterate(inner)]
            reduced.append(op.reduce(jnp.stack(values), axis=0))
        data = jnp.stack(reduced).reshape(extents)
    else:
        outer_rank = outer.rank
        inner_rank = inner.rank
        inner_indices = jnp.asarray(inner.index_matrix())

        def at(row: Array) -> Array:
            outer_idx = _unpack(row, outer_rank)

            def inner_at(k_row: Array) -> Array:
                return _scalar(fn(outer_idx, _unpack(k_row, inner_rank)), None)

            return op.reduce(jax.vmap(inner_at)(inner_indices), axis=0)

        batch = max(1, cfg.max_batch // inner_size)
        data = _map_batches(jax.vmap(at), outer.index_matrix(), batch, cfg).reshape(extents)

    if base is not None:
        data = op.combine(base.data, data)
    return ArrayValue(data)


def reduce_domain(
    inner_domain: DomainLike | int,
    fn: Callable[[Index], Any],
    op: Reduction | str = SUM,
    *,
    config: EvalConfig | None = None,
) -> Array:
    """Reduce ``fn`` over a domain to a single scalar.

    Examples:
        >>> float(reduce_domain((4,), lambda k: k[0] * 1.0))
        6.0
        >>> int(reduce_domain((2, 2), lambda k: k[0] + k[1], op="max"))
        2

    """
    result = comprehend_reduce((), inner_domain, lambda _, k: fn(k), op, config=config)
    return result.data[()]
