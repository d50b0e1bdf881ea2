"""One full sync pass: discover, filter, reconcile, summarize."""

from __future__ import annotations

import logging

from essentials_sync.config import Settings
from essentials_sync.github.base import DirectoryClientPort
from essentials_sync.installer.adapter import ProgressCallback
from essentials_sync.installer.base import PackageRegistryPort
from essentials_sync.models import SyncSummary
from essentials_sync.reconcile.candidates import filter_candidates
from essentials_sync.reconcile.engine import ReconciliationEngine
from essentials_sync.reconcile.report import ReportAggregator
from essentials_sync.reconcile.snapshot import RegistrySnapshot

logger = logging.getLogger(__name__)


async def synchronize(
    settings: Settings,
    directory: DirectoryClientPort,
    engine: ReconciliationEngine,
    registry: PackageRegistryPort,
    report: ReportAggregator,
    *,
    include_excluded: bool = True,
    progress: ProgressCallback | None = None,
) -> SyncSummary:
    """Run one reconciliation pass for ``settings.owner``.

    Outcomes are recorded into ``report`` as they happen, so a caller that
    catches an exception from here still has the partial results.

    Raises:
        DiscoveryError: Repository listing was rate limited or unusable.
            No candidate has been processed in that case.
    """
    if progress is not None:
        await progress("Querying GitHub repositories…", 0.0)

    repositories = await directory.list_repositories(settings.owner)
    candidates = filter_candidates(
        repositories,
        settings.repo_prefix,
        exclude_prefix=settings.exclude_prefix,
        include_excluded=include_excluded,
    )
    if not candidates:
        logger.info(
            "No repositories with prefix '%s' found for '%s'",
            settings.repo_prefix,
            settings.owner,
        )
        return report.summarize()

    logger.info("Reconciling %d candidates for '%s'", len(candidates), settings.owner)
    snapshot = await RegistrySnapshot.capture(registry)
    await engine.run(candidates, snapshot, report, progress)

    if progress is not None:
        await progress("Done", 1.0)
    return report.summarize()
