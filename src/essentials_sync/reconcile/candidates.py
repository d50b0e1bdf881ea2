"""Select which discovered repositories take part in a sync."""

from __future__ import annotations

from collections.abc import Iterable

from essentials_sync.models import RepositoryRecord


def filter_candidates(
    repositories: Iterable[RepositoryRecord],
    prefix: str,
    *,
    exclude_prefix: str = "",
    include_excluded: bool = True,
) -> list[RepositoryRecord]:
    """Keep repositories whose name starts with ``prefix``, in discovery order.

    When ``include_excluded`` is False, names starting with ``exclude_prefix``
    (e.g. the templates sub-category) are dropped as well. Both prefix checks
    are case-sensitive.
    """
    selected: list[RepositoryRecord] = []
    for repo in repositories:
        if not repo.name or not repo.name.startswith(prefix):
            continue
        if not include_excluded and exclude_prefix and repo.name.startswith(exclude_prefix):
            continue
        selected.append(repo)
    return selected
