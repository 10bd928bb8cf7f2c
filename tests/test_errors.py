"""Tests for jax_idx.errors."""

from __future__ import annotations

import pytest

import jax_idx
from jax_idx.errors import (
    EmptyReduction,
    ErrorKind,
    IndexEngineError,
    IndexOutOfBounds,
    IndexTypeError,
    InvalidDomain,
    InvalidWindow,
    RankMismatch,
    ShapeMismatch,
    out_of_bounds,
)


class TestErrorKinds:
    """Tests for the error hierarchy."""

    @pytest.mark.parametrize(
        ("cls", "kind", "builtin"),
        [
            (ShapeMismatch, ErrorKind.SHAPE_MISMATCH, ValueError),
            (RankMismatch, ErrorKind.RANK_MISMATCH, ValueError),
            (IndexOutOfBounds, ErrorKind.INDEX_OUT_OF_BOUNDS, IndexError),
            (InvalidWindow, ErrorKind.INVALID_WINDOW, ValueError),
            (EmptyReduction, ErrorKind.EMPTY_REDUCTION, ValueError),
            (InvalidDomain, ErrorKind.INVALID_DOMAIN, ValueError),
            (IndexTypeError, ErrorKind.INDEX_TYPE, TypeError),
        ],
    )
    def test_kind_and_builtin(self, cls, kind, builtin):
        err = cls("message")
        assert err.kind is kind
        assert isinstance(err, IndexEngineError)
        assert isinstance(err, builtin)
        assert str(err) == "message"

    def test_kind_is_string(self):
        assert ErrorKind.INVALID_WINDOW == "invalid_window"

    def test_exported_from_package(self):
        assert jax_idx.ShapeMismatch is ShapeMismatch
        assert "IndexOutOfBounds" in jax_idx.__all__


class TestIndexOutOfBounds:
    """Tests for IndexOutOfBounds attributes."""

    def test_defaults_none(self):
        err = IndexOutOfBounds("bad")
        assert err.index is None
        assert err.shape is None
        assert err.position is None

    def test_attributes_are_tuples(self):
        err = IndexOutOfBounds("bad", index=[4], shape=[3], position=[0, 1])
        assert err.index == (4,)
        assert err.shape == (3,)
        assert err.position == (0, 1)

    def test_out_of_bounds_helper(self):
        err = out_of_bounds((2, 5), (2, 3))
        assert err.index == (2, 5)
        assert err.shape == (2, 3)
        assert "(2, 5)" in str(err)
        assert "(2, 3)" in str(err)
