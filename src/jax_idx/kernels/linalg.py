"""Matrix-product kernels as reduced comprehensions.

Every kernel here is a single reduced map summing over one contraction
axis; ``sgemm`` and ``fc_relu`` additionally start from a base array
(``beta * C``, the bias) built by a pointwise map, and ``fc_relu`` finishes
with a pointwise ``max(x, 0)``.

Operands may be ``ArrayValue`` instances or anything ``from_literal``
accepts. Ranks are checked first (``RankMismatch``), then conformable
extents (``ShapeMismatch``).

"""

from __future__ import annotations

from typing import Any

from jax_idx.arrays.values import ArrayValue, relu
from jax_idx.comprehension.evaluator import SUM, comprehend, comprehend_reduce
from jax_idx.config import EvalConfig
from jax_idx.kernels._validate import as_array, expect_extent, expect_rank


def matvec(a: Any, x: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Matrix-vector product ``y[i] = sum_k a[i, k] * x[k]``.

    Args:
        a: Matrix (M, K).
        x: Vector (K,).
        config: Optional ``EvalConfig``.

    Returns:
        Vector (M,).

    Examples:
        >>> matvec([[1, 2, 3], [4, 5, 6]], [1, 1, 1]).tolist()
        [6, 15]

    """
    a, x = as_array(a), as_array(x)
    expect_rank(a, 2, "a")
    expect_rank(x, 1, "x")
    m, k = a.shape
    expect_extent(x.shape[0], k, "matvec x length vs a columns")
    return comprehend_reduce(
        (m,),
        (k,),
        lambda i, r: a[i[0], r[0]] * x[r[0]],
        SUM,
        config=config,
    )


def sgemm(
    alpha: float,
    beta: float,
    a: Any,
    b: Any,
    c: Any,
    *,
    config: EvalConfig | None = None,
) -> ArrayValue:
    """General matrix multiply ``alpha * a @ b + beta * c``.

    ``c`` is not modified: ``beta * c`` is built as a base array and the
    scaled product is accumulated on top of it.

    Args:
        alpha: Scale of the product.
        beta: Scale of ``c``.
        a: Left matrix (N, M).
        b: Right matrix (M, K).
        c: Addend (N, K).
        config: Optional ``EvalConfig``.

    Returns:
        Matrix (N, K).

    Examples:
        >>> sgemm(2.0, 1.0, [[1.0, 0.0], [0.0, 1.0]], [[1.0, 2.0], [3.0, 4.0]], [[1.0, 1.0], [1.0, 1.0]]).tolist()
        [[3.0, 5.0], [7.0, 9.0]]

    """
    a, b, c = as_array(a), as_array(b), as_array(c)
    for name, arr in (("a", a), ("b", b), ("c", c)):
        expect_rank(arr, 2, name)
    n, m = a.shape
    expect_extent(b.shape[0], m, "sgemm b rows vs a columns")
    k = b.shape[1]
    expect_extent(c.shape[0], n, "sgemm c rows")
    expect_extent(c.shape[1], k, "sgemm c columns")

    scaled_c = comprehend(c.shape, lambda idx: beta * c[idx], config=config)
    return comprehend_reduce(
        (n, k),
        (m,),
        lambda o, r: alpha * a[o[0], r[0]] * b[r[0], o[1]],
        SUM,
        base=scaled_c,
        config=config,
    )


def fc_relu(inputs: Any, weight: Any, bias: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Fully-connected layer followed by ReLU: ``relu(inputs @ weight.T + bias)``.

    Args:
        inputs: Activations (B, I).
        weight: Weights (O, I).
        bias: Bias (O,).
        config: Optional ``EvalConfig``.

    Returns:
        Activations (B, O).

    Examples:
        >>> fc_relu([[1.0, -2.0]], [[1.0, 1.0], [-1.0, 0.0]], [3.0, 0.0]).tolist()
        [[2.0, 0.0]]

    """
    inputs, weight, bias = as_array(inputs), as_array(weight), as_array(bias)
    expect_rank(inputs, 2, "inputs")
    expect_rank(weight, 2, "weight")
    expect_rank(bias, 1, "bias")
    batch, in_features = inputs.shape
    out_features = weight.shape[0]
    expect_extent(weight.shape[1], in_features, "fc_relu weight input features")
    expect_extent(bias.shape[0], out_features, "fc_relu bias length")

    biased = comprehend((batch, out_features), lambda idx: bias[idx[1]], config=config)
    linear = comprehend_reduce(
        (batch, out_features),
        (in_features,),
        lambda o, r: inputs[o[0], r[0]] * weight[o[1], r[0]],
        SUM,
        base=biased,
        config=config,
    )
    return relu(linear, config=config)


def transposed_matmul(a: Any, b: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """``a @ b.T`` for a (M, K) and b (N, K), giving (M, N)."""
    a, b = as_array(a), as_array(b)
    expect_rank(a, 2, "a")
    expect_rank(b, 2, "b")
    m, k = a.shape
    n = b.shape[0]
    expect_extent(b.shape[1], k, "transposed_matmul shared axis")
    return comprehend_reduce(
        (m, n),
        (k,),
        lambda o, r: a[o[0], r[0]] * b[o[1], r[0]],
        SUM,
        config=config,
    )


def transposed_batch_matmul(x: Any, y: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Batched ``x @ y.T``: (B, N, M) with (B, K, M) gives (B, N, K).

    Examples:
        >>> import jax.numpy as jnp
        >>> transposed_batch_matmul(jnp.ones((2, 3, 4)), jnp.ones((2, 5, 4))).shape
        (2, 3, 5)

    """
    x, y = as_array(x), as_array(y)
    expect_rank(x, 3, "x")
    expect_rank(y, 3, "y")
    batch, n, m = x.shape
    expect_extent(y.shape[0], batch, "transposed_batch_matmul batch")
    expect_extent(y.shape[2], m, "transposed_batch_matmul shared axis")
    k = y.shape[1]
    return comprehend_reduce(
        (batch, n, k),
        (m,),
        lambda o, r: x[o[0], o[1], r[0]] * y[o[0], o[2], r[0]],
        SUM,
        config=config,
    )


def outer_product_matmul(a: Any, b: Any, *, config: EvalConfig | None = None) -> ArrayValue:
    """Matmul of every ``a[p]`` with every ``b[s]``.

    ``out[p, s, q, t] = sum_r a[p, q, r] * b[s, r, t]``.

    Args:
        a: Stack of matrices (P, Q, R).
        b: Stack of matrices (S, R, T).
        config: Optional ``EvalConfig``.

    Returns:
        Array (P, S, Q, T).

    """
    a, b = as_array(a), as_array(b)
    expect_rank(a, 3, "a")
    expect_rank(b, 3, "b")
    p, q, r = a.shape
    s, _, t = b.shape
    expect_extent(b.shape[1], r, "outer_product_matmul shared axis")
    return comprehend_reduce(
        (p, s, q, t),
        (r,),
        lambda o, k: a[o[0], o[2], k[0]] * b[o[1], k[0], o[3]],
        SUM,
        config=config,
    )
