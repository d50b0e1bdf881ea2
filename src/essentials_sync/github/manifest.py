"""Fetch and validate a repository's package.json."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from urllib.parse import quote as urlquote

import httpx

from essentials_sync.config import DEFAULT_PACKAGE_PREFIX
from essentials_sync.github.transport import (
    RAW_BASE_URL,
    fetch,
    github_headers,
    is_quota_exhausted,
)
from essentials_sync.models import (
    ManifestRejection,
    PackageManifest,
    RejectionKind,
    RepositoryRecord,
)

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


def is_valid_package_id(package_id: str, prefix: str = DEFAULT_PACKAGE_PREFIX) -> bool:
    """Check the namespace rule: the id starts with ``prefix`` and has a name after it."""
    return package_id.startswith(prefix) and len(package_id) > len(prefix)


def manifest_url(repo: RepositoryRecord) -> str:
    owner = urlquote(repo.owner_login, safe="")
    name = urlquote(repo.name, safe="")
    branch = urlquote(repo.default_branch, safe="/")
    return f"{RAW_BASE_URL}/{owner}/{name}/{branch}/{MANIFEST_FILE}"


@dataclass
class ManifestResolver:
    """Resolve ``package.json`` on a repository's default branch."""

    http: httpx.AsyncClient
    token: str | None = None
    package_prefix: str = DEFAULT_PACKAGE_PREFIX

    async def resolve(self, repo: RepositoryRecord) -> PackageManifest | ManifestRejection:
        """Fetch and validate the manifest.

        Never raises. Transport problems and content problems come back as a
        ManifestRejection whose ``kind`` tells them apart.
        """
        resp = await fetch(
            self.http,
            manifest_url(repo),
            headers=github_headers(self.token, api=False),
        )
        if resp is not None and is_quota_exhausted(resp):
            return ManifestRejection(
                RejectionKind.RATE_LIMITED,
                f"rate limited while fetching {MANIFEST_FILE}",
            )
        if resp is None or not resp.is_success:
            return ManifestRejection(
                RejectionKind.NOT_FOUND,
                f"{MANIFEST_FILE} missing or unreachable",
            )
        return self.parse(resp.text)

    def parse(self, text: str) -> PackageManifest | ManifestRejection:
        """Parse manifest text and apply the namespace rule."""
        if not text.strip():
            return ManifestRejection(RejectionKind.MALFORMED, f"{MANIFEST_FILE} is empty")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            return ManifestRejection(
                RejectionKind.MALFORMED,
                f"{MANIFEST_FILE} is not valid JSON: {exc.msg}",
            )
        if not isinstance(data, dict):
            return ManifestRejection(
                RejectionKind.MALFORMED,
                f"{MANIFEST_FILE} is not a JSON object",
            )

        package_id = data.get("name")
        if not isinstance(package_id, str) or not package_id.strip():
            return ManifestRejection(
                RejectionKind.POLICY,
                f"{MANIFEST_FILE} has no package name",
            )
        package_id = package_id.strip()
        if not is_valid_package_id(package_id, self.package_prefix):
            return ManifestRejection(
                RejectionKind.POLICY,
                f"package name '{package_id}' is outside the '{self.package_prefix}' namespace",
            )

        version = data.get("version")
        return PackageManifest(
            package_id=package_id,
            version=version if isinstance(version, str) else None,
        )
