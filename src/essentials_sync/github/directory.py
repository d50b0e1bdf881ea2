"""List a publisher's repositories through the GitHub REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote as urlquote

import httpx

from essentials_sync.config import MAX_PAGES, PAGE_SIZE
from essentials_sync.errors import DirectoryTransportError, RateLimitedError
from essentials_sync.github.transport import (
    API_BASE_URL,
    fetch,
    github_headers,
    is_quota_exhausted,
)
from essentials_sync.models import RepositoryRecord

logger = logging.getLogger(__name__)


@dataclass
class DirectoryClient:
    """Async client for ``GET /users/{owner}/repos``."""

    http: httpx.AsyncClient
    token: str | None = None
    page_size: int = PAGE_SIZE
    max_pages: int = MAX_PAGES

    async def list_repositories(self, owner: str) -> list[RepositoryRecord]:
        """Collect every repository of ``owner``, page by page.

        Stops at the first empty page, or at a page GitHub could not serve,
        and returns whatever was gathered so far. Hitting ``max_pages`` is not
        an error either.

        Raises:
            RateLimitedError: A page was refused because the quota is exhausted.
            DirectoryTransportError: A page body was not a JSON array.
        """
        url = f"{API_BASE_URL}/users/{urlquote(owner, safe='')}/repos"
        headers = github_headers(self.token)
        records: list[RepositoryRecord] = []

        for page in range(1, self.max_pages + 1):
            resp = await fetch(
                self.http,
                url,
                headers=headers,
                params={"per_page": self.page_size, "page": page},
            )
            if resp is None:
                logger.warning(
                    "Could not reach GitHub for page %d of '%s'; keeping %d repositories",
                    page,
                    owner,
                    len(records),
                )
                break
            if is_quota_exhausted(resp):
                logger.warning("GitHub rate limit exhausted while listing page %d", page)
                raise RateLimitedError(
                    "GitHub API rate limit exceeded. Try again later or set a GitHub token."
                )
            if not resp.is_success:
                logger.warning(
                    "GitHub returned HTTP %d for page %d of '%s'; keeping %d repositories",
                    resp.status_code,
                    page,
                    owner,
                    len(records),
                )
                break

            entries = self._decode_page(resp, owner, page)
            if not entries:
                break
            for entry in entries:
                record = self._parse_repository(entry, owner)
                if record is not None:
                    records.append(record)
        else:
            logger.info("Stopped listing '%s' at the %d page cap", owner, self.max_pages)

        logger.info("Discovered %d repositories for '%s'", len(records), owner)
        return records

    # ── Parsing helpers ──────────────────────────────────────────

    def _decode_page(self, resp: httpx.Response, owner: str, page: int) -> list[object]:
        """Decode one listing page into its raw entries. An empty body is an empty page."""
        if not resp.content.strip():
            return []
        try:
            data = resp.json()
        except ValueError as exc:
            raise DirectoryTransportError(
                f"GitHub returned malformed JSON for page {page} of '{owner}': {exc}"
            ) from exc
        if not isinstance(data, list):
            raise DirectoryTransportError(
                f"Expected a JSON array for page {page} of '{owner}', "
                f"got {type(data).__name__}."
            )
        return data

    @staticmethod
    def _parse_repository(entry: object, owner: str) -> RepositoryRecord | None:
        """Parse a repository object; entries without a name are dropped."""
        if not isinstance(entry, dict):
            return None
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            return None
        owner_raw = entry.get("owner")
        login = owner_raw.get("login") if isinstance(owner_raw, dict) else None
        branch = entry.get("default_branch")
        return RepositoryRecord(
            name=name,
            owner_login=login if isinstance(login, str) and login else owner,
            default_branch=branch if isinstance(branch, str) and branch else "main",
        )
