"""Tests for jax_idx.windows module."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_idx.errors import InvalidWindow, RankMismatch
from jax_idx.windows import (
    window_domain,
    window_inner_domain,
    window_output_shape,
    window_position,
)


class TestWindowOutputShape:
    """Tests for window_output_shape."""

    def test_full_rank_window(self):
        assert window_output_shape((5, 7), (3, 2)) == (3, 6)

    def test_trailing_window_passes_leading_axes(self):
        assert window_output_shape((2, 3, 5, 5), (3, 3)) == (2, 3, 3, 3)

    def test_stride(self):
        assert window_output_shape((1, 1, 4, 4), (2, 2), strides=2) == (1, 1, 2, 2)

    def test_stride_floors(self):
        assert window_output_shape((7,), (3,), strides=(2,)) == (3,)
        assert window_output_shape((8,), (3,), strides=(2,)) == (3,)

    def test_odd_pooling(self):
        assert window_output_shape((1, 1, 5, 5), (2, 2), strides=(2, 2)) == (1, 1, 2, 2)

    def test_window_equal_to_input(self):
        assert window_output_shape((3,), (3,)) == (1,)

    def test_window_larger_than_input(self):
        with pytest.raises(InvalidWindow):
            window_output_shape((1, 1, 2, 5), (3, 3))

    def test_zero_stride(self):
        with pytest.raises(InvalidWindow):
            window_output_shape((5,), (2,), strides=0)

    def test_zero_window(self):
        with pytest.raises(InvalidWindow):
            window_output_shape((5,), (0,))

    def test_numpy_integer_window_and_stride(self):
        assert window_output_shape((4,), np.int64(2)) == (3,)
        assert window_output_shape((1, 7), (np.int32(3),), strides=np.int64(2)) == (1, 3)

    def test_float_window(self):
        with pytest.raises(InvalidWindow):
            window_output_shape((4,), 2.0)

    def test_float_stride(self):
        with pytest.raises(InvalidWindow):
            window_output_shape((4,), (2,), strides=(1.5,))

    def test_window_rank_too_large(self):
        with pytest.raises(RankMismatch):
            window_output_shape((5,), (2, 2))

    def test_stride_rank_mismatch(self):
        with pytest.raises(RankMismatch):
            window_output_shape((5, 5), (2, 2), strides=(1, 1, 1))

    def test_catchable_as_value_error(self):
        with pytest.raises(ValueError):
            window_output_shape((2,), (3,))

    @given(
        st.lists(st.integers(min_value=1, max_value=12), min_size=1, max_size=4),
        st.data(),
    )
    @settings(max_examples=30, deadline=None)
    def test_stride_one_round_trip(self, dims, data):
        """Property: out + window - 1 == in for stride 1."""
        window = [data.draw(st.integers(min_value=1, max_value=n)) for n in dims]
        out = window_output_shape(dims, window)
        for o, w, n in zip(out, window, dims):
            assert o + w - 1 == n

    @given(
        st.integers(min_value=1, max_value=30),
        st.integers(min_value=1, max_value=5),
        st.integers(min_value=1, max_value=4),
    )
    @settings(max_examples=30, deadline=None)
    def test_last_window_in_bounds(self, n, w, s):
        """Property: the last window ends inside the input, one more would not."""
        if w > n:
            with pytest.raises(InvalidWindow):
                window_output_shape((n,), (w,), strides=s)
            return
        (out,) = window_output_shape((n,), (w,), strides=s)
        assert (out - 1) * s + w <= n
        assert out * s + w > n


class TestWindowDomain:
    """Tests for window_domain and window_inner_domain."""

    def test_domain_extents(self):
        assert window_domain((4, 4), (2, 2), strides=2).extents == (2, 2)

    def test_inner_domain(self):
        assert list(window_inner_domain((2, 2))) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_inner_domain_int(self):
        assert window_inner_domain(3).extents == (3,)


class TestWindowPosition:
    """Tests for window_position."""

    def test_unit_stride(self):
        assert window_position((1, 2), (1, 0)) == (2, 2)

    def test_leading_axes_pass_through(self):
        assert window_position((0, 2, 1), (1, 1), strides=2) == (0, 5, 3)

    def test_per_axis_strides(self):
        assert window_position((3, 1), (0, 2), strides=(2, 3)) == (6, 5)

    def test_window_longer_than_index(self):
        with pytest.raises(RankMismatch):
            window_position((1,), (0, 0))
