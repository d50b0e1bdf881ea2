"""Glue between FastMCP's Context and the sync machinery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context

from essentials_sync.installer.adapter import ProgressCallback

if TYPE_CHECKING:
    from essentials_sync.server import AppContext


def get_context(ctx: Context) -> AppContext:
    """Return the adapters built by ``app_lifespan``.

    Raises:
        TypeError: The server was started without ``app_lifespan``.
    """
    from essentials_sync.server import AppContext

    app = ctx.request_context.lifespan_context
    if not isinstance(app, AppContext):
        msg = (
            f"essentials-sync tools need an AppContext, got {type(app).__name__}. "
            "Start the server through essentials_sync.server.mcp."
        )
        raise TypeError(msg)
    return app


def progress_reporter(ctx: Context) -> ProgressCallback:
    """Forward ``(label, fraction)`` progress to the client as MCP progress notifications."""

    async def _report(label: str, fraction: float) -> None:
        await ctx.report_progress(progress=fraction, total=1.0, message=label)

    return _report
