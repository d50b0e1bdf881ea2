"""Shared test fixtures."""

from __future__ import annotations

import pytest

from essentials_sync.github.transport import clear_token_cache


@pytest.fixture(autouse=True)
def _clear_token_cache() -> None:
    """Forget any resolved GitHub token so tests do not leak auth state."""
    clear_token_cache()
    yield
    clear_token_cache()
