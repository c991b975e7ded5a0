"""Marketplace query parameters."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FilterBy(str, Enum):
    """Age buckets, matched against the rendered age label."""

    ALL = "all"
    RECENT = "recent"  # label mentions hours
    TODAY = "today"  # label mentions days


class SortBy(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_HIGH = "price-high"
    PRICE_LOW = "price-low"


class ProjectQuery(BaseModel):
    """Search, filter and sort controls for the marketplace view."""

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    filter_by: FilterBy = FilterBy.ALL
    sort_by: SortBy = SortBy.NEWEST
