"""Search, filter and sort over the open marketplace.

``run_query`` is a pure function of ``(projects, query)``.  Search and
filter are independent predicates, so their order does not matter; the sort
is applied last and is stable, so ties keep ledger index order.

The ``recent`` / ``today`` filters match on the wording of the age label
("hour" / "day"), not on a timestamp window.  A project listed two days ago
is "today" and one listed three hours ago is "recent"; one listed minutes
ago ("Just now") matches neither.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from gigledger.models.project import NormalizedProject
from gigledger.models.query import FilterBy, ProjectQuery, SortBy

_FILTER_LABEL_WORDS: dict[FilterBy, str] = {
    FilterBy.RECENT: "hour",
    FilterBy.TODAY: "day",
}

# sort key, descending?
_SORT_KEYS: dict[SortBy, tuple[Callable[[NormalizedProject], Any], bool]] = {
    SortBy.NEWEST: (lambda p: p.deadline, True),
    SortBy.OLDEST: (lambda p: p.deadline, False),
    SortBy.PRICE_HIGH: (lambda p: p.amount, True),
    SortBy.PRICE_LOW: (lambda p: p.amount, False),
}


def matches_search(project: NormalizedProject, term: str) -> bool:
    """Case-insensitive substring match on name or description."""
    q = term.lower()
    if not q:
        return True
    return q in project.name.lower() or q in project.description.lower()


def matches_filter(project: NormalizedProject, filter_by: FilterBy) -> bool:
    word = _FILTER_LABEL_WORDS.get(filter_by)
    if word is None:
        return True
    return word in project.age_label


def run_query(
    projects: Iterable[NormalizedProject], query: ProjectQuery | None = None
) -> list[NormalizedProject]:
    """Apply *query* to *projects* and return a new ordered list.

    The input order is taken as ledger index order for tie-breaking.
    """
    query = query or ProjectQuery()
    selected = [
        p
        for p in projects
        if matches_search(p, query.search_term) and matches_filter(p, query.filter_by)
    ]
    key, descending = _SORT_KEYS[query.sort_by]
    # sorted() keeps equal elements in input order even with reverse=True.
    return sorted(selected, key=key, reverse=descending)
