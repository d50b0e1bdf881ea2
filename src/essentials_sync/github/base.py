"""Ports: GitHub directory listing, manifest resolution, and revision lookup."""

from __future__ import annotations

from typing import Protocol

from essentials_sync.models import ManifestRejection, PackageManifest, RepositoryRecord


class DirectoryClientPort(Protocol):
    """Port for listing a publisher's repositories."""

    async def list_repositories(self, owner: str) -> list[RepositoryRecord]:
        """Return every repository of ``owner`` in discovery order."""
        ...


class ManifestResolverPort(Protocol):
    """Port for fetching and validating a repository's package.json."""

    async def resolve(self, repo: RepositoryRecord) -> PackageManifest | ManifestRejection:
        """Resolve the package manifest on the repository's default branch."""
        ...


class RevisionTrackerPort(Protocol):
    """Port for looking up the newest commit of a repository."""

    async def latest_revision(self, repo: RepositoryRecord) -> str | None:
        """Return the head commit SHA of the default branch, or None."""
        ...
