"""Port: the local installed-package registry."""

from __future__ import annotations

from typing import Protocol

from essentials_sync.models import InstalledPackage


class PackageRegistryPort(Protocol):
    """Port for the host package manager that owns the installed set."""

    async def list_packages(self) -> list[InstalledPackage]:
        """Return every installed package, in the registry's own order."""
        ...

    async def add(self, source: str) -> InstalledPackage:
        """Install or update the package behind ``source``.

        Either fully succeeds or raises InstallError leaving prior state intact.
        """
        ...
