"""Accumulate reconciliation outcomes into counts and a readable report."""

from __future__ import annotations

from essentials_sync.models import OutcomeKind, ReconciliationOutcome, SyncSummary

_SECTION_TITLES: dict[OutcomeKind, str] = {
    OutcomeKind.INSTALLED: "Installed",
    OutcomeKind.UPDATED: "Updated",
    OutcomeKind.UP_TO_DATE: "Up to date",
    OutcomeKind.SKIPPED_INVALID: "Skipped",
    OutcomeKind.FAILED: "Failed",
}


def describe(outcome: ReconciliationOutcome) -> str:
    """One-line, user-facing description of an outcome."""
    name = outcome.repository
    match outcome.kind:
        case OutcomeKind.INSTALLED:
            return f"{name} -> {outcome.package_id} (installed)"
        case OutcomeKind.UPDATED:
            return f"{name} -> {outcome.package_id} (updated)"
        case OutcomeKind.UP_TO_DATE:
            return f"{name} -> {outcome.package_id} (up to date)"
        case OutcomeKind.SKIPPED_INVALID:
            return f"{name}: skipped, {outcome.reason}"
        case _:
            return f"{name}: failed, {outcome.reason}"


class ReportAggregator:
    """Collects one outcome per candidate. Pure accumulation, no I/O."""

    def __init__(self) -> None:
        self._outcomes: list[ReconciliationOutcome] = []

    def record(self, outcome: ReconciliationOutcome) -> None:
        self._outcomes.append(outcome)

    @property
    def outcomes(self) -> list[ReconciliationOutcome]:
        return list(self._outcomes)

    def summarize(self) -> SyncSummary:
        counts = {kind: 0 for kind in OutcomeKind}
        for outcome in self._outcomes:
            counts[outcome.kind] += 1
        return SyncSummary(
            installed=counts[OutcomeKind.INSTALLED],
            updated=counts[OutcomeKind.UPDATED],
            up_to_date=counts[OutcomeKind.UP_TO_DATE],
            skipped=counts[OutcomeKind.SKIPPED_INVALID],
            failed=counts[OutcomeKind.FAILED],
            messages=tuple(describe(o) for o in self._outcomes),
        )

    def render(self) -> str:
        """Multi-line report grouped by outcome kind, in run order within each group."""
        summary = self.summarize()
        lines = [
            f"Sync complete: {summary.installed} installed, {summary.updated} updated, "
            f"{summary.up_to_date} up to date, {summary.skipped} skipped, "
            f"{summary.failed} failed."
        ]
        for kind, title in _SECTION_TITLES.items():
            group = [o for o in self._outcomes if o.kind == kind]
            if not group:
                continue
            lines.append("")
            lines.append(f"{title}:")
            lines.extend(f"  • {describe(o)}" for o in group)
        return "\n".join(lines)
