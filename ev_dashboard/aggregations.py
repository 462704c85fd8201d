"""Grouped and binned summaries of a record set, shaped for chart series.

Every function is pure and memoized on the record set token, so repeated calls
for an unchanged snapshot cost a cache lookup. Results are tuples of frozen
buckets and can be shared safely between callers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from ev_dashboard.records import RecordSet, cell_text, is_number, is_truthy
from ev_dashboard.settings import (
    HISTOGRAM_BIN_WIDTH,
    MAKE_TOP_N,
    MODEL_YEAR_MAX,
    MODEL_YEAR_MIN,
    POSTAL_CODE_TOP_N,
)


@dataclass(frozen=True)
class AggregateBucket:
    label: str
    value: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PostalCodeBucket:
    label: str
    value: int
    models: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value, "models": list(self.models)}


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency_0(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"${float(value):,.0f}"


def numeric_values(series: pd.Series) -> pd.Series:
    """Float view of a column; anything that is not a finite number becomes NaN."""
    return pd.Series(
        [float(v) if is_number(v) else np.nan for v in series],
        index=series.index,
        dtype=float,
    )


def _group_labels(records: RecordSet, field: str) -> pd.Series:
    col = records.column(field)
    keep = col[[is_truthy(v) for v in col]]
    return keep.map(cell_text).astype(object)


def _counts_desc(labels: pd.Series) -> pd.Series:
    # sort=False keeps first-seen group order; the stable sort keeps it for ties.
    counts = labels.groupby(labels, sort=False).size()
    return counts.sort_values(ascending=False, kind="stable")


@lru_cache(maxsize=64)
def full_distribution(records: RecordSet, field: str) -> Tuple[AggregateBucket, ...]:
    labels = _group_labels(records, field)
    if labels.empty:
        return ()
    counts = _counts_desc(labels)
    return tuple(AggregateBucket(label=str(k), value=int(v)) for k, v in counts.items())


@lru_cache(maxsize=64)
def top_n_distribution(records: RecordSet, field: str, n: int = MAKE_TOP_N) -> Tuple[AggregateBucket, ...]:
    if n <= 0:
        return ()
    return full_distribution(records, field)[:n]


def _make_model(make: object, model: object) -> str:
    return " ".join(t for t in (cell_text(make), cell_text(model)) if t)


@lru_cache(maxsize=16)
def postal_code_distribution(
    records: RecordSet,
    n: int = POSTAL_CODE_TOP_N,
    field: str = "PostalCode",
) -> Tuple[PostalCodeBucket, ...]:
    if n <= 0 or len(records) == 0:
        return ()
    codes = records.column(field)
    mask = [is_truthy(v) for v in codes]
    df = pd.DataFrame(
        {
            "code": codes.map(cell_text),
            "model": [_make_model(a, b) for a, b in zip(records.column("Make"), records.column("Model"))],
        },
        index=codes.index,
    )[mask]
    if df.empty:
        return ()

    counts = _counts_desc(df["code"]).head(n)

    models: Dict[str, Dict[str, None]] = {}
    for code, model in zip(df["code"], df["model"]):
        seen = models.setdefault(code, {})
        if model:
            seen.setdefault(model, None)

    return tuple(
        PostalCodeBucket(label=str(code), value=int(count), models=tuple(models.get(code, {})))
        for code, count in counts.items()
    )


def _bound_label(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


@lru_cache(maxsize=16)
def numeric_histogram(
    records: RecordSet,
    field: str,
    bin_width: int = HISTOGRAM_BIN_WIDTH,
) -> Tuple[AggregateBucket, ...]:
    """Count values per ``[low, low + bin_width)`` bin, ordered by ``low``.

    Labels look like ``"0-50"``. Bins are ordered numerically, never by label
    text, so ``"100-150"`` follows ``"50-100"``.
    """
    if bin_width <= 0:
        raise ValueError(f"bin_width must be positive, got {bin_width}")
    values = numeric_values(records.column(field)).dropna()
    if values.empty:
        return ()
    lows = np.floor(values / bin_width) * bin_width
    counts = lows.value_counts().sort_index()
    return tuple(
        AggregateBucket(label=f"{_bound_label(low)}-{_bound_label(low + bin_width)}", value=int(count))
        for low, count in counts.items()
    )


@lru_cache(maxsize=16)
def model_year_distribution(
    records: RecordSet,
    field: str = "ModelYear",
    min_year: int = MODEL_YEAR_MIN,
    max_year: int = MODEL_YEAR_MAX,
) -> Tuple[AggregateBucket, ...]:
    years = numeric_values(records.column(field)).dropna()
    years = np.trunc(years)
    years = years[(years >= min_year) & (years <= max_year)]
    if years.empty:
        return ()
    counts = years.value_counts().sort_index()
    return tuple(AggregateBucket(label=str(int(y)), value=int(c)) for y, c in counts.items())


@lru_cache(maxsize=64)
def mean_of(records: RecordSet, field: str) -> Optional[float]:
    """Mean over all records; non-numeric cells add nothing to the sum.

    Returns None for an empty record set.
    """
    total = len(records)
    if total == 0:
        return None
    values = numeric_values(records.column(field))
    return float(values.sum(skipna=True)) / total


@lru_cache(maxsize=64)
def distinct_count(records: RecordSet, field: str) -> int:
    return int(records.column(field).nunique(dropna=True))


def most_common(records: RecordSet, field: str) -> Optional[str]:
    buckets = full_distribution(records, field)
    return buckets[0].label if buckets else None


def total_count(records: RecordSet) -> int:
    return len(records)


def as_series(buckets: Tuple[Any, ...]) -> list:
    """Plain ``[{label, value, ...}]`` list for JSON payloads and charts."""
    return [b.to_dict() for b in buckets]
