"""Domain models for essentials-sync. Frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# ─── Enumerations ─────────────────────────────────────────────


class RejectionKind(StrEnum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"
    POLICY = "policy"


class OutcomeKind(StrEnum):
    INSTALLED = "installed"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    SKIPPED_INVALID = "skipped_invalid"
    FAILED = "failed"


class FastPathPolicy(StrEnum):
    """When the commit-comparison shortcut may skip the installer."""

    CREDENTIALED = "credentialed"  # only with a non-empty GitHub token
    ALWAYS = "always"
    NEVER = "never"


# ─── Remote Models ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RepositoryRecord:
    """A repository as returned by the GitHub directory listing."""

    name: str
    owner_login: str
    default_branch: str = "main"


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """The fields of a repository's package.json that the sync cares about."""

    package_id: str
    version: str | None = None


@dataclass(frozen=True, slots=True)
class ManifestRejection:
    """Why a repository's package.json was not usable."""

    kind: RejectionKind
    reason: str


# ─── Local Models ─────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """A package currently present in the local registry.

    ``source`` is the opaque source descriptor. Git-sourced packages end in
    ``@<commit>``, the pinned revision.
    """

    package_id: str
    source: str


@dataclass(frozen=True, slots=True)
class InstallResult:
    success: bool
    package: InstalledPackage | None = None
    message: str = ""


# ─── Reconciliation Models ────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """What happened to a single candidate during a sync run."""

    repository: str
    kind: OutcomeKind
    package_id: str = ""
    old_source: str = ""
    new_source: str = ""
    reason: str = ""


@dataclass(frozen=True, slots=True)
class SyncSummary:
    """Counts per outcome kind plus one message per candidate, in run order."""

    installed: int = 0
    updated: int = 0
    up_to_date: int = 0
    skipped: int = 0
    failed: int = 0
    messages: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return self.installed + self.updated + self.up_to_date + self.skipped + self.failed

    def to_dict(self) -> dict[str, object]:
        return {
            "installed": self.installed,
            "updated": self.updated,
            "up_to_date": self.up_to_date,
            "skipped": self.skipped,
            "failed": self.failed,
            "messages": list(self.messages),
        }
