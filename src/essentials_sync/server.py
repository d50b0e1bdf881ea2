"""MCP server that keeps a publisher's git-hosted packages installed and current."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from essentials_sync.config import REQUEST_TIMEOUT, Settings, load_settings
from essentials_sync.github.base import (
    DirectoryClientPort,
    ManifestResolverPort,
    RevisionTrackerPort,
)
from essentials_sync.github.directory import DirectoryClient
from essentials_sync.github.manifest import ManifestResolver
from essentials_sync.github.revisions import RevisionTracker
from essentials_sync.github.transport import resolve_github_token
from essentials_sync.installer.base import PackageRegistryPort
from essentials_sync.installer.git import GitPackageRegistry
from essentials_sync.tools.packages import list_packages
from essentials_sync.tools.sync import sync_packages


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations."""

    settings: Settings
    token: str | None
    http_client: httpx.AsyncClient
    directory: DirectoryClientPort
    manifests: ManifestResolverPort
    revisions: RevisionTrackerPort
    registry: PackageRegistryPort


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage shared adapter lifecycle — the composition root."""
    settings = load_settings()
    token, _ = resolve_github_token(settings.token_env)

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=10.0),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
    ) as http_client:
        yield AppContext(
            settings=settings,
            token=token,
            http_client=http_client,
            directory=DirectoryClient(http_client, token=token),
            manifests=ManifestResolver(
                http_client,
                token=token,
                package_prefix=settings.package_prefix,
            ),
            revisions=RevisionTracker(http_client, token=token),
            registry=GitPackageRegistry(settings.packages_dir),
        )


mcp = FastMCP(
    "essentials-sync",
    instructions=(
        "essentials-sync installs and updates a publisher's packages from GitHub.\n\n"
        "- **sync_packages** installs every package that is missing and updates "
        "every package whose default branch moved on. Pass include_templates=False "
        "to leave template repositories out. The result lists each repository "
        "with what happened to it; report failures and skips to the user with "
        "their reasons.\n"
        "- **list_packages** shows what is installed right now and at which commit."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(list_packages)

# ─── Destructive tools ────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(sync_packages)
