"""Shared plumbing for talking to GitHub: auth, deadlines, rate-limit detection."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess

import httpx

from essentials_sync.config import DEADLINE_GRACE, DEFAULT_TOKEN_ENV, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.github.com"
RAW_BASE_URL = "https://raw.githubusercontent.com"
USER_AGENT = "essentials-sync"

# ─── Runtime state ─────────────────────────────────────────

_token_resolved: bool = False
_resolved_token: str | None = None
_resolved_token_source: str = "none"  # env | gh_cli | none


def clear_token_cache() -> None:
    """Forget the resolved token (primarily for tests)."""
    global _resolved_token
    global _resolved_token_source
    global _token_resolved

    _token_resolved = False
    _resolved_token = None
    _resolved_token_source = "none"


# ─── Auth resolution ───────────────────────────────────────


def resolve_github_token(env_var: str = DEFAULT_TOKEN_ENV) -> tuple[str | None, str]:
    """Resolve auth token: env first, then `gh auth token` fallback.

    Returns (token, source) where source is one of "env", "gh_cli", "none".
    """
    global _resolved_token
    global _resolved_token_source
    global _token_resolved

    env_token = os.environ.get(env_var, "").strip()
    if env_token:
        return env_token, "env"

    if _token_resolved:
        return _resolved_token, _resolved_token_source

    _token_resolved = True
    gh_token = _resolve_gh_cli_token()
    if gh_token:
        logger.info("Using GitHub token from `gh auth token` fallback.")
        _resolved_token = gh_token
        _resolved_token_source = "gh_cli"
        return gh_token, "gh_cli"

    logger.info(
        "No GitHub auth token found (checked %s and `gh auth token`). "
        "Unauthenticated requests are limited to 60 per hour.",
        env_var,
    )
    _resolved_token = None
    _resolved_token_source = "none"
    return None, "none"


def _resolve_gh_cli_token() -> str | None:
    """Try to read a token from local GitHub CLI auth context."""
    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None

    if completed.returncode != 0:
        return None
    token = completed.stdout.strip()
    return token or None


def github_headers(token: str | None, *, api: bool = True) -> dict[str, str]:
    headers = {"User-Agent": USER_AGENT}
    if api:
        headers["Accept"] = "application/vnd.github+json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


# ─── Requests ──────────────────────────────────────────────


def is_quota_exhausted(resp: httpx.Response) -> bool:
    """True when GitHub refused the request because the rate limit is used up."""
    if resp.status_code != 403:
        return False
    return resp.headers.get("X-RateLimit-Remaining", "").strip() == "0"


async def fetch(
    http: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str],
    params: dict[str, object] | None = None,
    deadline: float = REQUEST_TIMEOUT + DEADLINE_GRACE,
) -> httpx.Response | None:
    """GET ``url`` within a hard wall-clock deadline.

    Returns None when the request errors or overruns the deadline; the caller
    treats that the same as an unreachable endpoint.
    """
    try:
        return await asyncio.wait_for(
            http.get(url, headers=headers, params=params),
            timeout=deadline,
        )
    except TimeoutError:
        logger.warning("GET %s did not finish within %.0fs", url, deadline)
        return None
    except httpx.HTTPError as exc:
        logger.debug("GET %s failed: %s", url, exc, exc_info=True)
        return None
