"""Tests for jax_idx.kernels matrix-product kernels."""

from __future__ import annotations

import jax
import jax.numpy as jnp
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_idx.arrays import from_literal
from jax_idx.errors import RankMismatch, ShapeMismatch
from jax_idx.kernels import (
    fc_relu,
    matvec,
    outer_product_matmul,
    sgemm,
    transposed_batch_matmul,
    transposed_matmul,
)

TOL = {"rtol": 1e-4, "atol": 1e-4}


def _normal(key, shape, index):
    return jax.random.normal(jax.random.fold_in(key, index), shape)


class TestMatvec:
    """Tests for matvec."""

    def test_scenario(self, config):
        out = matvec([[1, 2, 3], [4, 5, 6]], [1, 1, 1], config=config)
        assert out.shape == (2,)
        assert out.tolist() == [6, 15]

    def test_matches_jnp(self, config, key):
        a = _normal(key, (5, 4), 0)
        x = _normal(key, (4,), 1)
        assert matvec(a, x, config=config).allclose(a @ x, **TOL)

    def test_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            matvec([[1, 2, 3]], [1, 1])

    def test_rank_mismatch(self):
        with pytest.raises(RankMismatch):
            matvec([1, 2, 3], [1, 1, 1])

    @given(
        st.integers(min_value=1, max_value=6),
        st.integers(min_value=1, max_value=6),
    )
    @settings(max_examples=10, deadline=None)
    def test_shape_property(self, m, k):
        """Property: (M,K) . (K,) = (M,)."""
        assert matvec(jnp.ones((m, k)), jnp.ones(k)).shape == (m,)


class TestSgemm:
    """Tests for sgemm."""

    def test_matches_jnp(self, config, key):
        a = _normal(key, (3, 4), 0)
        b = _normal(key, (4, 2), 1)
        c = _normal(key, (3, 2), 2)
        out = sgemm(1.5, -0.5, a, b, c, config=config)
        assert out.allclose(1.5 * (a @ b) - 0.5 * c, **TOL)

    def test_c_unchanged(self, config):
        c = from_literal([[1.0, 1.0], [1.0, 1.0]])
        out = sgemm(2.0, 1.0, [[1.0, 0.0], [0.0, 1.0]], [[1.0, 2.0], [3.0, 4.0]], c, config=config)
        assert out.tolist() == [[3.0, 5.0], [7.0, 9.0]]
        assert c.tolist() == [[1.0, 1.0], [1.0, 1.0]]

    def test_beta_zero(self, config):
        out = sgemm(1.0, 0.0, jnp.eye(2), jnp.ones((2, 2)), jnp.full((2, 2), 100.0), config=config)
        assert out.allclose(jnp.ones((2, 2)))

    def test_inner_mismatch(self):
        with pytest.raises(ShapeMismatch):
            sgemm(1.0, 1.0, jnp.ones((2, 3)), jnp.ones((4, 2)), jnp.ones((2, 2)))

    def test_c_shape_mismatch(self):
        with pytest.raises(ShapeMismatch):
            sgemm(1.0, 1.0, jnp.ones((2, 3)), jnp.ones((3, 2)), jnp.ones((3, 2)))


class TestFcRelu:
    """Tests for fc_relu."""

    def test_matches_jnp(self, config, key):
        x = _normal(key, (4, 5), 0)
        w = _normal(key, (3, 5), 1)
        b = _normal(key, (3,), 2)
        expected = jnp.maximum(x @ w.T + b, 0.0)
        out = fc_relu(x, w, b, config=config)
        assert out.shape == (4, 3)
        assert out.allclose(expected, **TOL)

    def test_non_negative(self, key):
        out = fc_relu(_normal(key, (6, 4), 0), _normal(key, (5, 4), 1), _normal(key, (5,), 2))
        assert bool(jnp.all(out.data >= 0.0))

    def test_bias_length(self):
        with pytest.raises(ShapeMismatch):
            fc_relu(jnp.ones((2, 3)), jnp.ones((4, 3)), jnp.ones(3))


class TestTransposedMatmul:
    """Tests for transposed_matmul."""

    def test_matches_jnp(self, config, key):
        a = _normal(key, (3, 5), 0)
        b = _normal(key, (4, 5), 1)
        out = transposed_matmul(a, b, config=config)
        assert out.shape == (3, 4)
        assert out.allclose(a @ b.T, **TOL)

    def test_shared_axis_mismatch(self):
        with pytest.raises(ShapeMismatch):
            transposed_matmul(jnp.ones((3, 5)), jnp.ones((4, 6)))


class TestTransposedBatchMatmul:
    """Tests for transposed_batch_matmul."""

    def test_matches_einsum(self, config, key):
        x = _normal(key, (2, 3, 4), 0)
        y = _normal(key, (2, 5, 4), 1)
        out = transposed_batch_matmul(x, y, config=config)
        assert out.shape == (2, 3, 5)
        assert out.allclose(jnp.einsum("bnm,bkm->bnk", x, y), **TOL)

    def test_batch_mismatch(self):
        with pytest.raises(ShapeMismatch):
            transposed_batch_matmul(jnp.ones((2, 3, 4)), jnp.ones((3, 5, 4)))


class TestOuterProductMatmul:
    """Tests for outer_product_matmul."""

    def test_matches_einsum(self, config, key):
        a = _normal(key, (2, 3, 4), 0)
        b = _normal(key, (3, 4, 2), 1)
        out = outer_product_matmul(a, b, config=config)
        assert out.shape == (2, 3, 3, 2)
        assert out.allclose(jnp.einsum("pqr,srt->psqt", a, b), **TOL)

    def test_rank_mismatch(self):
        with pytest.raises(RankMismatch):
            outer_product_matmul(jnp.ones((3, 4)), jnp.ones((2, 4, 2)))
