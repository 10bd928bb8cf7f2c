"""Tests for jax_idx.domain module."""

from __future__ import annotations

import jax.numpy as jnp
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_idx.domain import as_shape, domain, full_domain, iterate, shape_of, size
from jax_idx.errors import InvalidDomain, ShapeMismatch


class TestAsShape:
    """Tests for as_shape."""

    def test_sequence(self):
        assert as_shape([2, 3]) == (2, 3)

    def test_single_int(self):
        assert as_shape(4) == (4,)

    def test_zero_extent_allowed(self):
        assert as_shape((0, 5)) == (0, 5)

    def test_negative_extent(self):
        with pytest.raises(InvalidDomain):
            as_shape((2, -1))

    def test_non_integer(self):
        with pytest.raises(InvalidDomain):
            as_shape((2.5,))


class TestShapeOf:
    """Tests for shape_of."""

    def test_jax_array(self):
        assert shape_of(jnp.ones((2, 5))) == (2, 5)

    def test_scalar(self):
        assert shape_of(jnp.array(1.0)) == ()


class TestDomain:
    """Tests for domain construction and iteration."""

    def test_row_major_order(self):
        d = domain((0, 1), (2, 3))
        assert list(iterate(d)) == [(0, 1), (0, 2), (1, 1), (1, 2)]

    def test_step(self):
        d = domain((0,), (5,), step=2)
        assert list(d) == [(0,), (2,), (4,)]
        assert d.extents == (3,)

    def test_per_dimension_step(self):
        d = domain((0, 0), (4, 3), step=(2, 1))
        assert d.extents == (2, 3)
        assert list(d)[:4] == [(0, 0), (0, 1), (0, 2), (2, 0)]

    def test_rank_mismatch(self):
        with pytest.raises(ShapeMismatch):
            domain((0, 0), (3,))

    def test_step_rank_mismatch(self):
        with pytest.raises(ShapeMismatch):
            domain((0, 0), (3, 3), step=(1,))

    def test_lower_exceeds_upper(self):
        with pytest.raises(InvalidDomain):
            domain((3,), (2,))

    def test_zero_step(self):
        with pytest.raises(InvalidDomain):
            domain((0,), (2,), step=0)

    def test_empty_dimension(self):
        d = domain((0, 2), (3, 2))
        assert list(d) == []
        assert size(d) == 0
        assert d.is_empty

    def test_restartable(self):
        d = domain((0, 0), (2, 2))
        assert list(iterate(d)) == list(iterate(d))
        assert list(d) == list(d)

    def test_rank_zero(self):
        d = full_domain(())
        assert list(d) == [()]
        assert size(d) == 1

    def test_index_matrix_matches_iteration(self):
        d = domain((1, 0, 2), (3, 4, 7), step=(1, 2, 3))
        assert [tuple(row) for row in d.index_matrix().tolist()] == list(d)

    def test_len(self):
        assert len(full_domain((2, 3))) == 6

    @given(
        st.lists(st.integers(min_value=0, max_value=4), min_size=0, max_size=3),
        st.integers(min_value=1, max_value=3),
    )
    @settings(max_examples=25, deadline=None)
    def test_size_matches_iteration(self, dims, step):
        """Property: size equals the number of iterated indices."""
        d = domain((0,) * len(dims), dims, step=step)
        assert size(d) == len(list(iterate(d)))

    @given(st.lists(st.integers(min_value=1, max_value=4), min_size=1, max_size=3))
    @settings(max_examples=25, deadline=None)
    def test_indices_in_bounds(self, dims):
        """Property: every index of full_domain(shape) is valid for shape."""
        for idx in full_domain(dims):
            assert all(0 <= i < n for i, n in zip(idx, dims))


class TestFullDomain:
    """Tests for full_domain."""

    def test_extents(self):
        assert full_domain((2, 3)).extents == (2, 3)

    def test_lower_is_zero(self):
        d = full_domain((4, 1))
        assert d.lower == (0, 0)
        assert d.upper == (4, 1)
        assert d.step == (1, 1)
