"""Installed-package registry backed by shallow git checkouts.

Layout under the packages directory::

    Packages/
      packages-lock.json          # {"dependencies": {id: {"source", "hash"}}}
      com.example.foo/            # checkout of the package's repository
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from essentials_sync.errors import InstallError, RegistryReadError
from essentials_sync.installer.subprocess import run_command
from essentials_sync.models import InstalledPackage

logger = logging.getLogger(__name__)

INDEX_NAME = "packages-lock.json"

_CLONE_TIMEOUT = 600.0
_GIT_TIMEOUT = 30.0
# Package names double as directory names, so keep them to a safe alphabet.
_PACKAGE_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


def split_source(source: str) -> tuple[str, str | None]:
    """Split ``url#ref`` into (url, ref). A missing ref means the remote HEAD."""
    url, sep, ref = source.partition("#")
    return url.strip(), (ref.strip() or None) if sep else None


def pinned_source(source: str, commit: str) -> str:
    return f"{source}@{commit}" if commit else source


def read_index(root: Path) -> dict[str, dict[str, str]]:
    """Read the dependency map from ``root/packages-lock.json``.

    Returns an empty map if the file does not exist or is empty.

    Raises:
        RegistryReadError: If the file contains invalid JSON.
    """
    path = root / INDEX_NAME
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        data = json.loads(text)
    except (OSError, json.JSONDecodeError) as exc:
        raise RegistryReadError(f"Invalid package index {path}: {exc}") from exc

    deps = data.get("dependencies", {}) if isinstance(data, dict) else {}
    if not isinstance(deps, dict):
        raise RegistryReadError(f"Invalid package index {path}: 'dependencies' is not an object")
    return {
        name: {"source": str(entry.get("source", "")), "hash": str(entry.get("hash", ""))}
        for name, entry in deps.items()
        if isinstance(entry, dict)
    }


def _atomic_write_index(root: Path, deps: dict[str, dict[str, str]]) -> None:
    """Write the index atomically via tempfile + os.replace."""
    root.mkdir(parents=True, exist_ok=True)
    path = root / INDEX_NAME
    fd = None
    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(root), suffix=".tmp", prefix=".packages-lock_")
        content = json.dumps({"dependencies": deps}, indent=2, ensure_ascii=False) + "\n"
        os.write(fd, content.encode("utf-8"))
        os.close(fd)
        fd = None
        os.replace(tmp_path, str(path))
        tmp_path = None
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)


async def _git(cmd: list[str], *, timeout: float, cwd: str | None = None) -> tuple[int, str, str]:
    try:
        return await run_command(cmd, timeout=timeout, cwd=cwd)
    except OSError as exc:
        raise InstallError(f"Could not run git: {exc}") from exc


def _read_package_name(checkout: Path) -> str:
    manifest = checkout / "package.json"
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InstallError(f"Cloned repository has no readable package.json: {exc}") from exc
    name = data.get("name") if isinstance(data, dict) else None
    if not isinstance(name, str) or not _PACKAGE_NAME_PATTERN.match(name):
        raise InstallError(f"Cloned package.json has an invalid package name: {name!r}")
    return name


@dataclass
class GitPackageRegistry:
    """Materialize packages as shallow git checkouts under ``root``."""

    root: Path

    async def list_packages(self) -> list[InstalledPackage]:
        return [
            InstalledPackage(package_id=name, source=pinned_source(entry["source"], entry["hash"]))
            for name, entry in read_index(self.root).items()
        ]

    async def add(self, source: str) -> InstalledPackage:
        """Clone ``source`` and install it, replacing any previous checkout.

        The clone happens in a staging directory; the installed set only
        changes once the clone, manifest read, and commit lookup succeeded.

        Raises:
            InstallError: If any step fails. Prior state is left untouched.
        """
        url, ref = split_source(source)
        if not url:
            raise InstallError(f"Invalid source descriptor: {source!r}")

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(dir=str(self.root), prefix=".staging-"))
        except OSError as exc:
            raise InstallError(f"Cannot prepare packages directory {self.root}: {exc}") from exc

        try:
            checkout = staging / "checkout"
            cmd = ["git", "clone", "--depth", "1"]
            if ref:
                cmd += ["--branch", ref]
            cmd += [url, str(checkout)]
            returncode, stdout, stderr = await _git(cmd, timeout=_CLONE_TIMEOUT)
            if returncode != 0:
                raise InstallError(f"git clone failed: {(stderr or stdout).strip()}")

            package_id = _read_package_name(checkout)

            returncode, stdout, stderr = await _git(
                ["git", "rev-parse", "HEAD"],
                timeout=_GIT_TIMEOUT,
                cwd=str(checkout),
            )
            if returncode != 0:
                raise InstallError(f"git rev-parse failed: {(stderr or stdout).strip()}")
            commit = stdout.strip().lower()

            self._swap_in(package_id, checkout, staging / "previous", source, commit)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.info("Installed %s at %s", package_id, commit[:12])
        return InstalledPackage(package_id=package_id, source=pinned_source(source, commit))

    def _swap_in(
        self,
        package_id: str,
        checkout: Path,
        backup: Path,
        source: str,
        commit: str,
    ) -> None:
        """Move the checkout into place and record it; undo both on failure."""
        target = self.root / package_id
        try:
            deps = read_index(self.root)
        except RegistryReadError as exc:
            raise InstallError(str(exc)) from exc
        deps[package_id] = {"source": source, "hash": commit}

        moved = False
        try:
            if target.exists():
                os.replace(target, backup)
            os.replace(checkout, target)
            moved = True
            _atomic_write_index(self.root, deps)
        except OSError as exc:
            if moved:
                shutil.rmtree(target, ignore_errors=True)
            if backup.exists():
                os.replace(backup, target)
            raise InstallError(f"Could not install {package_id} into {target}: {exc}") from exc
