"""In-memory view of the installed registry for the duration of one run."""

from __future__ import annotations

from collections.abc import Iterable

from essentials_sync.installer.base import PackageRegistryPort
from essentials_sync.models import InstalledPackage


def _key(package_id: str) -> str:
    return package_id.casefold()


class RegistrySnapshot:
    """Installed packages keyed case-insensitively by package id.

    Loading keeps the first record for ids that differ only in case.
    ``put`` overwrites, so later lookups in the same run see earlier installs.
    """

    def __init__(self, packages: Iterable[InstalledPackage] = ()) -> None:
        self._by_id: dict[str, InstalledPackage] = {}
        for package in packages:
            self._by_id.setdefault(_key(package.package_id), package)

    @classmethod
    async def capture(cls, registry: PackageRegistryPort) -> RegistrySnapshot:
        return cls(await registry.list_packages())

    def get(self, package_id: str) -> InstalledPackage | None:
        return self._by_id.get(_key(package_id))

    def put(self, package: InstalledPackage) -> None:
        self._by_id[_key(package.package_id)] = package

    def packages(self) -> list[InstalledPackage]:
        return list(self._by_id.values())

    def __contains__(self, package_id: object) -> bool:
        return isinstance(package_id, str) and _key(package_id) in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)
