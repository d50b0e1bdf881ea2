"""Drive a registry install to completion while reporting progress."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from essentials_sync.config import INSTALL_POLL_INTERVAL
from essentials_sync.errors import InstallError
from essentials_sync.installer.base import PackageRegistryPort
from essentials_sync.models import InstalledPackage, InstallResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], Awaitable[None]]

UNKNOWN_ERROR = "Unknown error"


@dataclass
class InstallerAdapter:
    """Wraps ``registry.add`` with poll-based progress ticks.

    There is no overall deadline: an install may legitimately take minutes
    (large clones), so the adapter waits for as long as the registry does.
    """

    registry: PackageRegistryPort
    poll_interval: float = INSTALL_POLL_INTERVAL

    async def apply(
        self,
        source: str,
        *,
        label: str = "",
        fraction: float = 0.0,
        progress: ProgressCallback | None = None,
    ) -> InstallResult:
        """Install ``source`` and wait for the registry to finish.

        Returns a result even on failure (never raises InstallError). Any
        other exception from the registry propagates to the caller. If this
        call is cancelled or a progress callback raises, the install is
        cancelled and awaited before the exception leaves.
        """
        task = asyncio.ensure_future(self.registry.add(source))
        started = time.monotonic()
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=self.poll_interval)
                if done:
                    break
                if progress is not None:
                    elapsed = time.monotonic() - started
                    await progress(f"Installing {label or source}… ({elapsed:.0f}s)", fraction)
        finally:
            if not task.done():
                await _abandon(task, source)

        try:
            package = task.result()
        except InstallError as exc:
            message = str(exc).strip() or UNKNOWN_ERROR
            logger.warning("Install of %s failed: %s", source, message)
            return InstallResult(success=False, message=message)

        return InstallResult(
            success=True,
            package=package,
            message=f"{package.package_id} installed from {package.source}",
        )


async def _abandon(task: asyncio.Future[InstalledPackage], source: str) -> None:
    """Cancel an install the caller stopped waiting for and collect its outcome."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        logger.warning("Install of %s was cancelled", source)
    except Exception:
        logger.debug("Abandoned install of %s failed", source, exc_info=True)
