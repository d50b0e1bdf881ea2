"""list_packages tool -- show what the local registry has installed."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from essentials_sync.errors import EssentialsSyncError
from essentials_sync.github.revisions import installed_revision
from essentials_sync.tools._helpers import get_context


async def list_packages(ctx: Context) -> list[dict[str, object]]:
    """List the packages currently installed in the local registry.

    Returns:
        One entry per package with its id, source descriptor, and the
        pinned commit when the source is a git checkout.
    """
    try:
        app = get_context(ctx)
        packages = await app.registry.list_packages()
    except EssentialsSyncError as exc:
        return [{"error": str(exc)}]

    if not packages:
        return [{"message": f"No packages installed in {app.settings.packages_dir}."}]

    return [
        {
            "package_id": p.package_id,
            "source": p.source,
            "revision": installed_revision(p.source) or "",
        }
        for p in packages
    ]
