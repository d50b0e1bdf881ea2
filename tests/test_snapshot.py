"""Tests for the per-run registry snapshot and candidate filtering."""

from __future__ import annotations

from unittest.mock import AsyncMock

from essentials_sync.models import InstalledPackage, RepositoryRecord
from essentials_sync.reconcile.candidates import filter_candidates
from essentials_sync.reconcile.snapshot import RegistrySnapshot


class TestRegistrySnapshot:
    def test_lookup_is_case_insensitive(self) -> None:
        snapshot = RegistrySnapshot([InstalledPackage("com.X.Foo", "src@abc")])

        assert snapshot.get("com.x.foo") == InstalledPackage("com.X.Foo", "src@abc")
        assert "COM.X.FOO" in snapshot

    def test_first_duplicate_wins(self) -> None:
        snapshot = RegistrySnapshot(
            [InstalledPackage("com.x.foo", "first"), InstalledPackage("COM.X.FOO", "second")]
        )

        assert len(snapshot) == 1
        assert snapshot.get("com.x.foo").source == "first"

    def test_put_overwrites(self) -> None:
        snapshot = RegistrySnapshot([InstalledPackage("com.x.foo", "old")])

        snapshot.put(InstalledPackage("com.x.foo", "new"))

        assert snapshot.get("com.x.foo").source == "new"
        assert len(snapshot) == 1

    def test_missing(self) -> None:
        snapshot = RegistrySnapshot()
        assert snapshot.get("com.x.foo") is None
        assert 42 not in snapshot

    async def test_capture_reads_registry_once(self) -> None:
        registry = AsyncMock()
        registry.list_packages = AsyncMock(return_value=[InstalledPackage("com.x.foo", "s")])

        snapshot = await RegistrySnapshot.capture(registry)

        assert snapshot.packages() == [InstalledPackage("com.x.foo", "s")]
        registry.list_packages.assert_awaited_once()


def _repos(*names: str) -> list[RepositoryRecord]:
    return [RepositoryRecord(name, "X") for name in names]


class TestFilterCandidates:
    def test_prefix_and_order(self) -> None:
        repos = _repos("Unity.B", "Other", "Unity.A", "unity.lower")

        selected = filter_candidates(repos, "Unity.")

        assert [r.name for r in selected] == ["Unity.B", "Unity.A"]

    def test_excluded_kept_by_default(self) -> None:
        repos = _repos("Unity.Foo", "Unity.Template.Core")

        selected = filter_candidates(repos, "Unity.", exclude_prefix="Unity.Template")

        assert [r.name for r in selected] == ["Unity.Foo", "Unity.Template.Core"]

    def test_excluded_dropped_on_request(self) -> None:
        repos = _repos("Unity.Foo", "Unity.Template.Core", "Unity.Templates")

        selected = filter_candidates(
            repos, "Unity.", exclude_prefix="Unity.Template", include_excluded=False
        )

        assert [r.name for r in selected] == ["Unity.Foo"]

    def test_empty_exclude_prefix_drops_nothing(self) -> None:
        repos = _repos("Unity.Foo", "Unity.Bar")

        selected = filter_candidates(repos, "Unity.", exclude_prefix="", include_excluded=False)

        assert len(selected) == 2

    def test_nameless_records_dropped(self) -> None:
        assert filter_candidates(_repos(""), "") == []
