"""
Filtering, sorting and pagination of portfolio listings.

``parse_query`` turns raw query-string values into an ``EntryQuery``. The same
query is rendered two ways: as SQLAlchemy statements for ``SqlPortfolioDb``
and as plain predicates/sort keys for ``InMemoryPortfolioDb``. Both renderings
must agree on every ordering and filter rule.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy import Select, func, or_, select

from showcase.models import Category, PortfolioEntry

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class SortMode(str, enum.Enum):
    NEWEST = "최신순"
    POPULAR = "인기순"
    NAME = "이름순"
    VIEWS = "조회순"


SORT_ALIASES = {
    "newest": SortMode.NEWEST,
    "latest": SortMode.NEWEST,
    "popularity": SortMode.POPULAR,
    "popular": SortMode.POPULAR,
    "name": SortMode.NAME,
    "views": SortMode.VIEWS,
}

# (attribute, descending). Featured entries always come first.
SORT_KEYS: dict[SortMode, tuple[tuple[str, bool], ...]] = {
    SortMode.NEWEST: (("featured", True), ("created_at", True)),
    SortMode.POPULAR: (("featured", True), ("views", True), ("likes", True)),
    SortMode.NAME: (("featured", True), ("title", False)),
    SortMode.VIEWS: (("featured", True), ("views", True)),
}

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class EntryQuery:
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    search_terms: tuple[str, ...] = ()
    featured: Optional[bool] = None
    sort: SortMode = SortMode.NEWEST
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def parse_sort(value: Optional[str]) -> SortMode:
    if not value:
        return SortMode.NEWEST
    value = value.strip()
    for mode in SortMode:
        if mode.value == value:
            return mode
    return SORT_ALIASES.get(value.lower(), SortMode.NEWEST)


def parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def _parse_positive_int(
    value: Optional[str], default: int, maximum: Optional[int] = None
) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number


def split_tags(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(t.strip() for t in value.split(",") if t.strip())


def parse_query(params: Mapping[str, str]) -> EntryQuery:
    """Build an ``EntryQuery`` from query-string values.

    Absent or unrecognised values leave that axis unfiltered.
    """
    category = (params.get("category") or "").strip() or None
    if category not in Category.values():
        category = None
    search = (params.get("search") or "").strip()
    return EntryQuery(
        category=category,
        tags=split_tags(params.get("tags")),
        search_terms=tuple(search.split()),
        featured=parse_bool(params.get("featured")),
        sort=parse_sort(params.get("sort")),
        page=_parse_positive_int(params.get("page"), DEFAULT_PAGE),
        limit=_parse_positive_int(params.get("limit"), DEFAULT_LIMIT, MAX_LIMIT),
    )


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def compute(cls, query: EntryQuery, total_items: int) -> "Pagination":
        return cls(
            current_page=query.page,
            total_pages=math.ceil(total_items / query.limit),
            total_items=total_items,
            items_per_page=query.limit,
        )

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    def as_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


# -- in-memory rendering -----------------------------------------------------


def _contains(haystack: str, needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


def matches(entry: PortfolioEntry, query: EntryQuery) -> bool:
    if query.category is not None and entry.category != query.category:
        return False
    if query.tags and not set(query.tags).intersection(entry.tags):
        return False
    if query.featured is not None and entry.featured != query.featured:
        return False
    if query.search_terms:
        return any(
            _contains(entry.title, term)
            or _contains(entry.description, term)
            or any(_contains(tag, term) for tag in entry.tags)
            for term in query.search_terms
        )
    return True


def sort_entries(
    entries: Iterable[PortfolioEntry], sort: SortMode
) -> list[PortfolioEntry]:
    # Stable multi-key sort: apply the least significant key first.
    ordered = sorted(entries, key=lambda e: e.id)
    for attribute, descending in reversed(SORT_KEYS[sort]):
        ordered.sort(key=lambda e: getattr(e, attribute), reverse=descending)
    return ordered


def page_slice(
    entries: Sequence[PortfolioEntry], query: EntryQuery
) -> list[PortfolioEntry]:
    return list(entries[query.skip : query.skip + query.limit])


# -- SQL rendering -----------------------------------------------------------


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def sql_filters(query: EntryQuery, entry_row, tag_row) -> list:
    """WHERE clauses for ``query`` against the entry and tag tables."""
    clauses = []
    if query.category is not None:
        clauses.append(entry_row.category == query.category)
    if query.tags:
        clauses.append(
            entry_row.id.in_(
                select(tag_row.entry_id).where(tag_row.tag.in_(query.tags))
            )
        )
    if query.featured is not None:
        clauses.append(entry_row.featured == query.featured)
    if query.search_terms:
        per_term = []
        for term in query.search_terms:
            pattern = _like_pattern(term)
            per_term.append(
                or_(
                    entry_row.title.ilike(pattern, escape="\\"),
                    entry_row.description.ilike(pattern, escape="\\"),
                    entry_row.id.in_(
                        select(tag_row.entry_id).where(
                            tag_row.tag.ilike(pattern, escape="\\")
                        )
                    ),
                )
            )
        clauses.append(or_(*per_term))
    return clauses


def sql_order_by(sort: SortMode, entry_row) -> list:
    order = []
    for attribute, descending in SORT_KEYS[sort]:
        column = getattr(entry_row, attribute)
        order.append(column.desc() if descending else column.asc())
    order.append(entry_row.id.asc())
    return order


def build_page_select(query: EntryQuery, entry_row, tag_row) -> Select:
    return (
        select(entry_row)
        .where(*sql_filters(query, entry_row, tag_row))
        .order_by(*sql_order_by(query.sort, entry_row))
        .offset(query.skip)
        .limit(query.limit)
    )


def build_count_select(query: EntryQuery, entry_row, tag_row) -> Select:
    return (
        select(func.count())
        .select_from(entry_row)
        .where(*sql_filters(query, entry_row, tag_row))
    )
