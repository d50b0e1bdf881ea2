"""Tests for the git-checkout package registry (installer/git.py)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from essentials_sync.errors import InstallError, RegistryReadError
from essentials_sync.installer.git import (
    INDEX_NAME,
    GitPackageRegistry,
    pinned_source,
    read_index,
    split_source,
)
from essentials_sync.models import InstalledPackage

_SOURCE = "https://github.com/X/Unity.Foo.git#main"

# --- Helpers ---------------------------------------------------------------


def _fake_git(package_name: str = "com.x.foo", commit: str = "ABCDEF1234"):
    """Stand-in for run_command that fakes clone and rev-parse."""
    calls: list[list[str]] = []

    async def _run(cmd, env=None, timeout=60.0, cwd=None):
        calls.append(list(cmd))
        if cmd[:2] == ["git", "clone"]:
            dest = Path(cmd[-1])
            dest.mkdir(parents=True)
            (dest / "package.json").write_text(json.dumps({"name": package_name}))
            return (0, "", "")
        if cmd[:2] == ["git", "rev-parse"]:
            return (0, commit + "\n", "")
        return (1, "", "unexpected command")

    _run.calls = calls
    return _run


def _write_index(root: Path, deps: dict) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / INDEX_NAME).write_text(json.dumps({"dependencies": deps}))


def _staging_dirs(root: Path) -> list[Path]:
    return [p for p in root.iterdir() if p.name.startswith(".staging-")]


# --- Source helpers ---------------------------------------------------------


class TestSourceHelpers:
    def test_split_with_ref(self) -> None:
        assert split_source(_SOURCE) == ("https://github.com/X/Unity.Foo.git", "main")

    def test_split_without_ref(self) -> None:
        assert split_source("https://github.com/X/Unity.Foo.git") == (
            "https://github.com/X/Unity.Foo.git",
            None,
        )

    def test_split_empty_ref(self) -> None:
        assert split_source("https://github.com/X/Unity.Foo.git#") == (
            "https://github.com/X/Unity.Foo.git",
            None,
        )

    def test_pinned_source(self) -> None:
        assert pinned_source(_SOURCE, "abc") == f"{_SOURCE}@abc"
        assert pinned_source(_SOURCE, "") == _SOURCE


# --- list_packages ----------------------------------------------------------


class TestListPackages:
    async def test_missing_directory(self, tmp_path: Path) -> None:
        registry = GitPackageRegistry(tmp_path / "Packages")
        assert await registry.list_packages() == []

    async def test_reads_index_in_order(self, tmp_path: Path) -> None:
        _write_index(
            tmp_path,
            {
                "com.x.foo": {"source": _SOURCE, "hash": "abc123"},
                "com.x.bar": {"source": "https://example.test/bar.git", "hash": ""},
            },
        )

        packages = await GitPackageRegistry(tmp_path).list_packages()

        assert packages == [
            InstalledPackage("com.x.foo", f"{_SOURCE}@abc123"),
            InstalledPackage("com.x.bar", "https://example.test/bar.git"),
        ]

    async def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / INDEX_NAME).write_text("")
        assert await GitPackageRegistry(tmp_path).list_packages() == []

    async def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / INDEX_NAME).write_text("{broken")

        with pytest.raises(RegistryReadError, match="Invalid package index"):
            await GitPackageRegistry(tmp_path).list_packages()

    def test_non_object_dependencies(self, tmp_path: Path) -> None:
        (tmp_path / INDEX_NAME).write_text(json.dumps({"dependencies": ["com.x.foo"]}))

        with pytest.raises(RegistryReadError):
            read_index(tmp_path)


# --- add --------------------------------------------------------------------


class TestAdd:
    async def test_fresh_install(self, tmp_path: Path) -> None:
        fake = _fake_git()
        registry = GitPackageRegistry(tmp_path / "Packages")

        with patch("essentials_sync.installer.git.run_command", new=fake):
            package = await registry.add(_SOURCE)

        assert package == InstalledPackage("com.x.foo", f"{_SOURCE}@abcdef1234")
        root = tmp_path / "Packages"
        assert (root / "com.x.foo" / "package.json").exists()
        assert read_index(root) == {"com.x.foo": {"source": _SOURCE, "hash": "abcdef1234"}}
        assert _staging_dirs(root) == []
        clone_cmd = fake.calls[0]
        assert clone_cmd[:6] == [
            "git",
            "clone",
            "--depth",
            "1",
            "--branch",
            "main",
        ]
        assert clone_cmd[6] == "https://github.com/X/Unity.Foo.git"

    async def test_update_replaces_checkout(self, tmp_path: Path) -> None:
        target = tmp_path / "com.x.foo"
        target.mkdir()
        (target / "stale.txt").write_text("old")
        _write_index(tmp_path, {"com.x.foo": {"source": _SOURCE, "hash": "abc123"}})

        with patch("essentials_sync.installer.git.run_command", new=_fake_git(commit="def456")):
            package = await GitPackageRegistry(tmp_path).add(_SOURCE)

        assert package.source == f"{_SOURCE}@def456"
        assert not (target / "stale.txt").exists()
        assert (target / "package.json").exists()
        assert read_index(tmp_path)["com.x.foo"]["hash"] == "def456"

    async def test_keeps_other_index_entries(self, tmp_path: Path) -> None:
        _write_index(tmp_path, {"com.x.bar": {"source": "bar-src", "hash": "111"}})

        with patch("essentials_sync.installer.git.run_command", new=_fake_git()):
            await GitPackageRegistry(tmp_path).add(_SOURCE)

        assert list(read_index(tmp_path)) == ["com.x.bar", "com.x.foo"]

    async def test_clone_failure_leaves_state_untouched(self, tmp_path: Path) -> None:
        _write_index(tmp_path, {"com.x.foo": {"source": _SOURCE, "hash": "abc123"}})

        async def _fail(cmd, env=None, timeout=60.0, cwd=None):
            return (128, "", "fatal: repository not found")

        with (
            patch("essentials_sync.installer.git.run_command", new=_fail),
            pytest.raises(InstallError, match="repository not found"),
        ):
            await GitPackageRegistry(tmp_path).add(_SOURCE)

        assert read_index(tmp_path)["com.x.foo"]["hash"] == "abc123"
        assert _staging_dirs(tmp_path) == []

    async def test_unsafe_package_name_rejected(self, tmp_path: Path) -> None:
        with (
            patch("essentials_sync.installer.git.run_command", new=_fake_git("../escape")),
            pytest.raises(InstallError, match="invalid package name"),
        ):
            await GitPackageRegistry(tmp_path).add(_SOURCE)

        assert not (tmp_path / INDEX_NAME).exists()
        assert _staging_dirs(tmp_path) == []

    async def test_empty_source_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InstallError, match="Invalid source descriptor"):
            await GitPackageRegistry(tmp_path).add("#main")

    async def test_missing_git_binary(self, tmp_path: Path) -> None:
        async def _no_git(cmd, env=None, timeout=60.0, cwd=None):
            raise FileNotFoundError(2, "No such file or directory", "git")

        with (
            patch("essentials_sync.installer.git.run_command", new=_no_git),
            pytest.raises(InstallError, match="Could not run git"),
        ):
            await GitPackageRegistry(tmp_path).add(_SOURCE)

        assert _staging_dirs(tmp_path) == []
