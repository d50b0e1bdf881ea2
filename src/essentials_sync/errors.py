"""Exception hierarchy for essentials-sync.

All exceptions inherit from EssentialsSyncError (single catch point).
Messages are user-facing -- clear, actionable, no stack traces.
"""

from __future__ import annotations


class EssentialsSyncError(Exception):
    """Base exception for all essentials-sync errors."""


class ConfigError(EssentialsSyncError):
    """Invalid configuration value."""


class DiscoveryError(EssentialsSyncError):
    """Repository discovery failed; the run cannot continue."""


class RateLimitedError(DiscoveryError):
    """GitHub API quota is exhausted."""


class DirectoryTransportError(DiscoveryError):
    """Repository listing returned an unusable or malformed response."""


class RegistryReadError(EssentialsSyncError):
    """Error reading the installed-package registry."""


class InstallError(EssentialsSyncError):
    """Package installation failed."""
