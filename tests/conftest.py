"""Shared fixtures for jax_idx tests."""

from __future__ import annotations

import jax
import pytest

from jax_idx.config import EvalConfig


@pytest.fixture(params=["vectorized", "loop"])
def config(request):
    """Run a test once per evaluation strategy."""
    return EvalConfig(strategy=request.param)


@pytest.fixture
def key():
    return jax.random.key(0)
