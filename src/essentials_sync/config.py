"""Runtime settings, read from the process environment."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from essentials_sync.errors import ConfigError
from essentials_sync.models import FastPathPolicy

DEFAULT_OWNER = "CanTalat-Yakan"
DEFAULT_REPO_PREFIX = "Unity."
DEFAULT_EXCLUDE_PREFIX = "Unity.Template"
DEFAULT_PACKAGE_PREFIX = "com."
DEFAULT_PACKAGES_DIR = "Packages"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"

PAGE_SIZE = 100
MAX_PAGES = 20
REQUEST_TIMEOUT = 30.0
DEADLINE_GRACE = 5.0
INSTALL_POLL_INTERVAL = 0.05

_ENV_PREFIX = "ESSENTIALS_SYNC_"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True, slots=True)
class Settings:
    """Everything a sync run needs to know about its publisher and host."""

    owner: str = DEFAULT_OWNER
    repo_prefix: str = DEFAULT_REPO_PREFIX
    exclude_prefix: str = DEFAULT_EXCLUDE_PREFIX
    package_prefix: str = DEFAULT_PACKAGE_PREFIX
    packages_dir: Path = Path(DEFAULT_PACKAGES_DIR)
    fast_path: FastPathPolicy = FastPathPolicy.CREDENTIALED
    token_env: str = DEFAULT_TOKEN_ENV


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from ``ESSENTIALS_SYNC_*`` environment variables.

    Unset or blank variables fall back to the defaults.

    Raises:
        ConfigError: If ``ESSENTIALS_SYNC_FAST_PATH`` is not a known policy.
    """
    env = os.environ if environ is None else environ

    def _get(name: str, default: str) -> str:
        value = env.get(_ENV_PREFIX + name, "").strip()
        return value or default

    raw_policy = _get("FAST_PATH", FastPathPolicy.CREDENTIALED.value).lower()
    try:
        policy = FastPathPolicy(raw_policy)
    except ValueError as exc:
        allowed = ", ".join(p.value for p in FastPathPolicy)
        raise ConfigError(
            f"Invalid {_ENV_PREFIX}FAST_PATH value '{raw_policy}'. Expected one of: {allowed}."
        ) from exc

    return Settings(
        owner=_get("OWNER", DEFAULT_OWNER),
        repo_prefix=_get("REPO_PREFIX", DEFAULT_REPO_PREFIX),
        # An explicit empty string disables the exclusion, so no fallback here.
        exclude_prefix=env.get(_ENV_PREFIX + "EXCLUDE_PREFIX", DEFAULT_EXCLUDE_PREFIX).strip(),
        package_prefix=_get("PACKAGE_PREFIX", DEFAULT_PACKAGE_PREFIX),
        packages_dir=Path(_get("PACKAGES_DIR", DEFAULT_PACKAGES_DIR)),
        fast_path=policy,
        token_env=_get("TOKEN_ENV", DEFAULT_TOKEN_ENV),
    )


def configure_logging(environ: Mapping[str, str] | None = None, *, force: bool = False) -> None:
    """Initialise the root logger for the stdio server.

    Records go to stderr because stdout carries the MCP protocol. The level
    comes from ``ESSENTIALS_SYNC_LOG_LEVEL`` (default ``INFO``).

    Raises:
        ConfigError: If the level is not a standard logging level name.
    """
    env = os.environ if environ is None else environ
    name = env.get(_ENV_PREFIX + "LOG_LEVEL", "").strip().upper() or "INFO"
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ConfigError(f"Invalid {_ENV_PREFIX}LOG_LEVEL value '{name}'.")

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format=_LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
