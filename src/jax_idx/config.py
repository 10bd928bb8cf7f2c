"""Evaluation configuration for the comprehension engine.

Settings resolve in this order: an explicit ``config=`` argument, then the
innermost ``evaluation_config(...)`` block, then ``JAX_IDX_*`` environment
variables, then the dataclass defaults.

Examples:
    >>> with evaluation_config(strategy="loop"):
    ...     get_config().strategy
    'loop'
    >>> get_config().strategy in STRATEGIES
    True

"""

from __future__ import annotations

import contextvars
import os
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any

import jax

STRATEGIES = ("vectorized", "loop")
FLOAT_DTYPES = ("float16", "bfloat16", "float32", "float64")


@dataclass(frozen=True)
class EvalConfig:
    """Switches shared by every evaluator entry point.

    * ``strategy``: ``"vectorized"`` maps the per-index function over whole
      batches of indices with ``jax.vmap``; ``"loop"`` calls it once per
      concrete Python index, which is slower but easy to step through.
    * ``max_batch``: upper bound on the number of values materialised by a
      single vectorised call (outer indices times inner indices for reduced
      maps).
    * ``jit``: compile each batch function with ``jax.jit``.
    * ``float_dtype``: element type for results whose dtype cannot be taken
      from an evaluated element (empty domains). ``"float64"`` is only
      accepted when ``jax_enable_x64`` is on.
    """

    strategy: str = "vectorized"
    max_batch: int = 1 << 16
    jit: bool = False
    float_dtype: str = "float32"

    def normalized(self) -> EvalConfig:
        strategy = self.strategy.lower()
        if strategy not in STRATEGIES:
            raise ValueError(f"Unsupported evaluation strategy: {self.strategy}")
        if int(self.max_batch) < 1:
            raise ValueError(f"max_batch must be positive, got {self.max_batch}")
        float_dtype = self.float_dtype.lower()
        if float_dtype not in FLOAT_DTYPES:
            raise ValueError(f"Unsupported float dtype: {self.float_dtype}")
        if float_dtype == "float64" and not jax.config.jax_enable_x64:
            raise ValueError("float_dtype float64 requires jax_enable_x64; JAX would use float32")
        return replace(
            self,
            strategy=strategy,
            max_batch=int(self.max_batch),
            jit=bool(self.jit),
            float_dtype=float_dtype,
        )


@dataclass(frozen=True)
class EnvVarMeta:
    name: str
    field: str
    description: str
    parser: Callable[[str], Any]


def _parse_bool(val: str) -> bool:
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def _parse_int(val: str) -> int:
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"expected an integer, got {val!r}") from None


ENV_VARS: dict[str, EnvVarMeta] = {
    "JAX_IDX_STRATEGY": EnvVarMeta(
        name="JAX_IDX_STRATEGY",
        field="strategy",
        description="Evaluation strategy: vectorized or loop",
        parser=str,
    ),
    "JAX_IDX_MAX_BATCH": EnvVarMeta(
        name="JAX_IDX_MAX_BATCH",
        field="max_batch",
        description="Maximum values materialised per vectorised call",
        parser=_parse_int,
    ),
    "JAX_IDX_JIT": EnvVarMeta(
        name="JAX_IDX_JIT",
        field="jit",
        description="Compile batch functions with jax.jit (1/0)",
        parser=_parse_bool,
    ),
    "JAX_IDX_FLOAT_DTYPE": EnvVarMeta(
        name="JAX_IDX_FLOAT_DTYPE",
        field="float_dtype",
        description="Element dtype for results of empty domains",
        parser=str,
    ),
}

_ACTIVE: contextvars.ContextVar[EvalConfig | None] = contextvars.ContextVar(
    "jax_idx_eval_config", default=None
)


def config_from_env(environ: Mapping[str, str] | None = None) -> EvalConfig:
    """Build a config from ``JAX_IDX_*`` variables.

    Args:
        environ: Mapping to read. Default ``os.environ``.

    Returns:
        Normalized config; unset variables keep their defaults.

    Examples:
        >>> config_from_env({"JAX_IDX_STRATEGY": "LOOP"}).strategy
        'loop'
        >>> config_from_env({"JAX_IDX_JIT": "1"}).jit
        True

    """
    if environ is None:
        environ = os.environ
    overrides: dict[str, Any] = {}
    for name, meta in ENV_VARS.items():
        raw = environ.get(name)
        if raw is not None and raw.strip():
            overrides[meta.field] = meta.parser(raw)
    return EvalConfig(**overrides).normalized()


def get_config() -> EvalConfig:
    active = _ACTIVE.get()
    if active is not None:
        return active
    return config_from_env()


def resolve_config(config: EvalConfig | None = None) -> EvalConfig:
    if config is not None:
        return config.normalized()
    return get_config()


@contextmanager
def evaluation_config(**overrides: Any) -> Iterator[EvalConfig]:
    """Scope config overrides to a ``with`` block.

    Overrides stack on top of the currently active config and are local to
    the current thread or async task.

    Args:
        **overrides: ``EvalConfig`` field values.

    Yields:
        The effective config inside the block.

    Examples:
        >>> with evaluation_config(max_batch=8) as cfg:
        ...     cfg.max_batch
        8

    """
    config = replace(get_config(), **overrides).normalized()
    token = _ACTIVE.set(config)
    try:
        yield config
    finally:
        _ACTIVE.reset(token)
