from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

import pandas as pd

from ev_dashboard.aggregations import numeric_values
from ev_dashboard.records import NUMERIC_COLUMNS, RecordSet, cell_text, display_value, is_truthy
from ev_dashboard.settings import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS


SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class SortState:
    column: str
    direction: SortDirection = "asc"


@dataclass(frozen=True)
class TableQuery:
    search: str = ""
    filters: Dict[str, str] = field(default_factory=dict)
    sort: Optional[SortState] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class TablePage:
    rows: List[Dict[str, Any]]
    total_count: int
    filtered_count: int
    current_page: int
    total_pages: int
    page_size: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def display_rows(self) -> List[Dict[str, str]]:
        return [{col: display_value(col, v) for col, v in row.items()} for row in self.rows]

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["has_previous"] = self.has_previous
        out["has_next"] = self.has_next
        return out


def total_pages(count: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(int(page), max(1, pages)))


# ---------------- Reducers ----------------
def set_search(query: TableQuery, text: str) -> TableQuery:
    return replace(query, search=text or "", page=1)


def set_filter(query: TableQuery, column: str, value: str) -> TableQuery:
    return replace(query, filters={**query.filters, column: value}, page=1)


def clear_filter(query: TableQuery, column: str) -> TableQuery:
    filters = {k: v for k, v in query.filters.items() if k != column}
    return replace(query, filters=filters, page=1)


def clear_filters(query: TableQuery) -> TableQuery:
    return replace(query, filters={}, page=1)


def toggle_sort(query: TableQuery, column: str) -> TableQuery:
    """Cycle asc -> desc -> unsorted on one column; a new column starts at asc."""
    current = query.sort
    if current is not None and current.column == column:
        sort = SortState(column, "desc") if current.direction == "asc" else None
    else:
        sort = SortState(column, "asc")
    return replace(query, sort=sort, page=1)


def set_page_size(query: TableQuery, page_size: int, options: Sequence[int] = PAGE_SIZE_OPTIONS) -> TableQuery:
    if page_size not in options:
        raise ValueError(f"page_size must be one of {list(options)}, got {page_size}")
    return replace(query, page_size=page_size, page=1)


def go_to_page(query: TableQuery, page: int, pages: int) -> TableQuery:
    return replace(query, page=clamp_page(page, pages))


def next_page(query: TableQuery, pages: int) -> TableQuery:
    if query.page >= pages:
        return query
    return go_to_page(query, query.page + 1, pages)


def previous_page(query: TableQuery, pages: int) -> TableQuery:
    if query.page <= 1:
        return query
    return go_to_page(query, query.page - 1, pages)


def normalize_query(
    raw: dict,
    *,
    columns: Optional[Iterable[str]] = None,
    page_sizes: Sequence[int] = PAGE_SIZE_OPTIONS,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> TableQuery:
    """Build a TableQuery from loosely typed input (API bodies, session state).

    Page sizes outside ``page_sizes`` fall back to ``default_page_size``.
    When ``columns`` is given, filters and sorts on other columns raise
    ValueError.
    """
    known = set(columns) if columns is not None else None

    search = str(raw.get("search") or "").strip()

    filters: Dict[str, str] = {}
    for col, value in (raw.get("filters") or {}).items():
        if value is None or str(value) == "":
            continue
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        filters[str(col)] = str(value)

    sort = None
    raw_sort = raw.get("sort") or None
    if raw_sort and raw_sort.get("column"):
        direction = raw_sort.get("direction") if raw_sort.get("direction") in ("asc", "desc") else "asc"
        sort = SortState(column=str(raw_sort["column"]), direction=direction)

    if known is not None:
        unknown = [c for c in filters if c not in known]
        if sort is not None and sort.column not in known:
            unknown.append(sort.column)
        if unknown:
            raise ValueError(f"Unknown column(s): {', '.join(sorted(set(unknown)))}")

    try:
        page = int(raw.get("page", 1))
    except Exception:
        page = 1
    page = max(1, page)

    try:
        page_size = int(raw.get("page_size", default_page_size))
    except Exception:
        page_size = default_page_size
    if page_size not in page_sizes:
        page_size = default_page_size

    return TableQuery(search=search, filters=filters, sort=sort, page=page, page_size=page_size)


# ---------------- Derived, memoized per record set ----------------
@lru_cache(maxsize=8)
def build_search_index(records: RecordSet) -> pd.Series:
    """Lowercase blob of every non-empty field value, one entry per record."""
    texts = [
        " ".join(cell_text(v).lower() for v in row if is_truthy(v))
        for row in records.frame.itertuples(index=False, name=None)
    ]
    return pd.Series(texts, index=records.frame.index, dtype=object)


@lru_cache(maxsize=64)
def column_text(records: RecordSet, column: str) -> pd.Series:
    return records.column(column).map(cell_text).astype(object)


@lru_cache(maxsize=64)
def unique_values(records: RecordSet, column: str) -> Tuple[str, ...]:
    """Sorted distinct non-empty values of a column across the full record set."""
    values = {cell_text(v) for v in records.column(column) if is_truthy(v)}
    return tuple(sorted(values))


def _sort_key(records: RecordSet, column: str) -> pd.Series:
    # Numeric columns compare as numbers; everything else by displayed text,
    # case-insensitively. Missing values become NaN and sort last.
    if column in NUMERIC_COLUMNS:
        return numeric_values(records.column(column))
    text = column_text(records, column)
    return text.map(lambda s: s.casefold() if s else None)


def apply_query(records: RecordSet, query: TableQuery) -> TablePage:
    """Search, filter, sort and paginate, in that order."""
    frame = records.frame
    mask = pd.Series(True, index=frame.index)

    term = (query.search or "").lower()
    if term:
        mask &= build_search_index(records).str.contains(term, regex=False).astype(bool)

    for column, value in query.filters.items():
        if not value:
            continue
        if column not in frame.columns:
            raise ValueError(f"Unknown filter column: {column}")
        mask &= column_text(records, column) == str(value)

    order = frame.index[mask.to_numpy()]
    if query.sort is not None:
        if query.sort.column not in frame.columns:
            raise ValueError(f"Unknown sort column: {query.sort.column}")
        keys = _sort_key(records, query.sort.column).loc[order]
        order = keys.sort_values(
            ascending=query.sort.direction == "asc",
            kind="stable",
            na_position="last",
        ).index

    filtered_count = len(order)
    pages = total_pages(filtered_count, query.page_size)
    page = clamp_page(query.page, pages)
    start = (page - 1) * query.page_size
    page_index = order[start : start + query.page_size]

    return TablePage(
        rows=frame.loc[page_index].to_dict(orient="records"),
        total_count=len(frame),
        filtered_count=filtered_count,
        current_page=page,
        total_pages=pages,
        page_size=query.page_size,
    )


def query_frame(records: RecordSet, query: TableQuery) -> pd.DataFrame:
    """Every matching row in view order (no pagination), e.g. for CSV export."""
    everything = replace(query, page=1, page_size=max(1, len(records)))
    page = apply_query(records, everything)
    return pd.DataFrame(page.rows, columns=records.columns)
