"""essentials-sync: keep a publisher's git-hosted packages installed and current.

The ``essentials-sync`` command serves the ``sync_packages`` and
``list_packages`` tools over MCP stdio.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _distribution_version

DISTRIBUTION_NAME = "essentials-sync"
_LOCAL_VERSION_FALLBACK = "0.0.0+local"


def _resolve_version() -> str:
    try:
        return _distribution_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        # Running from a source checkout that was never installed.
        return _LOCAL_VERSION_FALLBACK


__version__ = _resolve_version()


def main() -> None:
    """Entry point for the `essentials-sync` command: log to stderr, serve on stdio."""
    from essentials_sync.config import configure_logging
    from essentials_sync.server import mcp

    configure_logging()
    mcp.run(transport="stdio")
