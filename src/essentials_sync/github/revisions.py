"""Commit lookups used by the up-to-date shortcut."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import quote as urlquote

import httpx

from essentials_sync.github.transport import API_BASE_URL, fetch, github_headers
from essentials_sync.models import RepositoryRecord

logger = logging.getLogger(__name__)

_REVISION_PATTERN = re.compile(r"^[0-9a-fA-F]{4,40}$")


def installed_revision(source: str) -> str | None:
    """Extract the pinned commit from a source descriptor.

    Git-sourced descriptors end in ``@<commit>``. Returns None when there is
    no such suffix, e.g. for ``git@github.com:...`` URLs or version strings.
    """
    if not source or "@" not in source:
        return None
    token = source.rpartition("@")[2].strip()
    if not _REVISION_PATTERN.match(token):
        return None
    return token.lower()


def same_revision(a: str | None, b: str | None) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


@dataclass
class RevisionTracker:
    """Look up the head commit of a repository's default branch."""

    http: httpx.AsyncClient
    token: str | None = None

    async def latest_revision(self, repo: RepositoryRecord) -> str | None:
        """Return the head commit SHA, or None if GitHub cannot tell us."""
        owner = urlquote(repo.owner_login, safe="")
        name = urlquote(repo.name, safe="")
        ref = urlquote(repo.default_branch, safe="")
        resp = await fetch(
            self.http,
            f"{API_BASE_URL}/repos/{owner}/{name}/commits/{ref}",
            headers=github_headers(self.token),
        )
        if resp is None or not resp.is_success:
            logger.debug(
                "No head commit for %s (status %s)",
                repo.name,
                resp.status_code if resp is not None else "unreachable",
            )
            return None
        try:
            data = resp.json()
        except ValueError:
            return None
        sha = data.get("sha") if isinstance(data, dict) else None
        if not isinstance(sha, str) or not sha:
            return None
        return sha.lower()
