"""Tests for tools/_helpers.py -- Context glue."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from essentials_sync.tools._helpers import get_context, progress_reporter


class TestGetContext:
    def test_rejects_foreign_lifespan_context(self):
        ctx = MagicMock()
        ctx.request_context.lifespan_context = {"not": "an AppContext"}

        with pytest.raises(TypeError, match="need an AppContext, got dict"):
            get_context(ctx)


class TestProgressReporter:
    async def test_forwards_label_and_fraction(self):
        ctx = MagicMock()
        ctx.report_progress = AsyncMock()

        await progress_reporter(ctx)("Checking Unity.Foo (1/4)…", 0.0)

        ctx.report_progress.assert_awaited_once_with(
            progress=0.0, total=1.0, message="Checking Unity.Foo (1/4)…"
        )
