"""Decide and carry out install/update/skip for each candidate repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from essentials_sync.github.base import ManifestResolverPort, RevisionTrackerPort
from essentials_sync.github.revisions import installed_revision, same_revision
from essentials_sync.installer.adapter import UNKNOWN_ERROR, InstallerAdapter, ProgressCallback
from essentials_sync.models import (
    FastPathPolicy,
    InstalledPackage,
    ManifestRejection,
    OutcomeKind,
    ReconciliationOutcome,
    RepositoryRecord,
)
from essentials_sync.reconcile.report import ReportAggregator, describe
from essentials_sync.reconcile.snapshot import RegistrySnapshot

logger = logging.getLogger(__name__)


def git_source(repo: RepositoryRecord) -> str:
    """Source descriptor that pins the install to the repository's default branch."""
    return f"https://github.com/{repo.owner_login}/{repo.name}.git#{repo.default_branch}"


def fast_path_enabled(policy: FastPathPolicy, token: str | None) -> bool:
    """Whether the commit comparison may short-circuit the installer.

    The commit lookup spends the same API quota as repository listing, so by
    default it only runs when a token raises that quota.
    """
    if policy is FastPathPolicy.ALWAYS:
        return True
    if policy is FastPathPolicy.NEVER:
        return False
    return bool(token and token.strip())


@dataclass
class ReconciliationEngine:
    """Reconcile candidates one at a time, strictly in discovery order."""

    manifests: ManifestResolverPort
    revisions: RevisionTrackerPort
    installer: InstallerAdapter
    use_fast_path: bool = False

    async def run(
        self,
        candidates: list[RepositoryRecord],
        snapshot: RegistrySnapshot,
        report: ReportAggregator,
        progress: ProgressCallback | None = None,
    ) -> list[ReconciliationOutcome]:
        """Reconcile every candidate and record exactly one outcome for each.

        A failing candidate never stops the loop. ``snapshot`` is updated in
        place after each successful install.
        """
        outcomes: list[ReconciliationOutcome] = []
        total = len(candidates)
        for index, repo in enumerate(candidates):
            fraction = index / max(1, total)
            if progress is not None:
                await progress(f"Checking {repo.name} ({index + 1}/{total})…", fraction)

            outcome = await self.reconcile(repo, snapshot, fraction=fraction, progress=progress)
            report.record(outcome)
            outcomes.append(outcome)

            if outcome.kind is OutcomeKind.FAILED:
                logger.warning("%s", describe(outcome))
            else:
                logger.info("%s", describe(outcome))
        return outcomes

    async def reconcile(
        self,
        repo: RepositoryRecord,
        snapshot: RegistrySnapshot,
        *,
        fraction: float = 0.0,
        progress: ProgressCallback | None = None,
    ) -> ReconciliationOutcome:
        """Reconcile a single candidate against the snapshot."""
        manifest = await self.manifests.resolve(repo)
        if isinstance(manifest, ManifestRejection):
            return ReconciliationOutcome(
                repository=repo.name,
                kind=OutcomeKind.SKIPPED_INVALID,
                reason=manifest.reason,
            )

        package_id = manifest.package_id
        installed = snapshot.get(package_id)

        if installed is not None and await self._is_current(repo, installed):
            return ReconciliationOutcome(
                repository=repo.name,
                kind=OutcomeKind.UP_TO_DATE,
                package_id=package_id,
                old_source=installed.source,
                new_source=installed.source,
            )

        result = await self.installer.apply(
            git_source(repo),
            label=repo.name,
            fraction=fraction,
            progress=progress,
        )
        if not result.success or result.package is None:
            return ReconciliationOutcome(
                repository=repo.name,
                kind=OutcomeKind.FAILED,
                package_id=package_id,
                old_source=installed.source if installed else "",
                reason=result.message or UNKNOWN_ERROR,
            )

        new_source = result.package.source
        snapshot.put(InstalledPackage(package_id=package_id, source=new_source))

        if installed is None:
            kind = OutcomeKind.INSTALLED
        elif installed.source != new_source:
            kind = OutcomeKind.UPDATED
        else:
            kind = OutcomeKind.UP_TO_DATE
        return ReconciliationOutcome(
            repository=repo.name,
            kind=kind,
            package_id=package_id,
            old_source=installed.source if installed else "",
            new_source=new_source,
        )

    async def _is_current(self, repo: RepositoryRecord, installed: InstalledPackage) -> bool:
        """Commit shortcut: installed pin equals the branch head. Never authoritative on False."""
        if not self.use_fast_path:
            return False
        pinned = installed_revision(installed.source)
        if pinned is None:
            return False
        latest = await self.revisions.latest_revision(repo)
        return same_revision(pinned, latest)
