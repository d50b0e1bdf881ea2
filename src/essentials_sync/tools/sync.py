"""sync_packages tool -- install or update every package of the publisher."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import Context

from essentials_sync.errors import EssentialsSyncError
from essentials_sync.installer.adapter import InstallerAdapter
from essentials_sync.reconcile.engine import ReconciliationEngine, fast_path_enabled
from essentials_sync.reconcile.report import ReportAggregator
from essentials_sync.reconcile.runner import synchronize
from essentials_sync.tools._helpers import get_context, progress_reporter

logger = logging.getLogger(__name__)


async def sync_packages(
    ctx: Context,
    include_templates: bool = True,
) -> dict[str, object]:
    """Install missing packages and update outdated ones from the publisher's GitHub.

    Lists the publisher's repositories, keeps those with the configured name
    prefix, validates each repository's package.json, and installs or updates
    the package from its default branch. Packages whose installed commit
    already matches the branch head are left alone.

    Args:
        include_templates: When False, repositories in the templates
            sub-category (e.g. ``Unity.Template*``) are not synced.

    Returns:
        Counts of installed, updated, up-to-date, skipped, and failed
        packages, one message per repository, and a rendered report.
    """
    report = ReportAggregator()
    try:
        app = get_context(ctx)
        settings = app.settings

        engine = ReconciliationEngine(
            manifests=app.manifests,
            revisions=app.revisions,
            installer=InstallerAdapter(app.registry),
            use_fast_path=fast_path_enabled(settings.fast_path, app.token),
        )

        summary = await synchronize(
            settings,
            app.directory,
            engine,
            app.registry,
            report,
            include_excluded=include_templates,
            progress=progress_reporter(ctx),
        )

        if summary.total == 0:
            return {
                "success": True,
                "message": (
                    f"No repositories with prefix '{settings.repo_prefix}' found "
                    f"for the user {settings.owner}."
                ),
                **summary.to_dict(),
            }

        rendered = report.render()
        await ctx.info(rendered)
        return {
            "success": True,
            "owner": settings.owner,
            **summary.to_dict(),
            "report": rendered,
        }

    except EssentialsSyncError as exc:
        return {"success": False, "error": str(exc), **report.summarize().to_dict()}
    except Exception as exc:
        logger.debug("sync_packages failed", exc_info=True)
        await ctx.error(f"Unexpected error in sync_packages: {exc}")
        return {
            "success": False,
            "error": f"Internal error: {type(exc).__name__}",
            **report.summarize().to_dict(),
            "report": report.render(),
        }
