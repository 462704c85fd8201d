from __future__ import annotations

import hashlib
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


logger = logging.getLogger(__name__)

CANONICAL_COLUMNS = [
    "VIN",
    "County",
    "City",
    "State",
    "PostalCode",
    "ModelYear",
    "Make",
    "Model",
    "ElectricVehicleType",
    "Eligibility",
    "ElectricRange",
    "MSRP",
    "LegislativeDistrict",
    "DOLVehicleID",
    "VehicleLocation",
    "ElectricUtility",
    "CensusTract",
]

NUMERIC_COLUMNS = frozenset(
    {"ModelYear", "ElectricRange", "MSRP", "LegislativeDistrict", "DOLVehicleID", "CensusTract"}
)

# Never coerced to numbers even when every character is a digit.
OPAQUE_COLUMNS = frozenset({"VIN", "PostalCode", "VehicleLocation"})

VIN_DISPLAY_LENGTH = 10

# Headers used by the published Washington State export, mapped to canonical names.
RECORD_COLUMNS = {
    "VIN (1-10)": "VIN",
    "Postal Code": "PostalCode",
    "Model Year": "ModelYear",
    "Electric Vehicle Type": "ElectricVehicleType",
    "Clean Alternative Fuel Vehicle (CAFV) Eligibility": "Eligibility",
    "CleanAlternativeFuelVehicle": "Eligibility",
    "Electric Range": "ElectricRange",
    "Base MSRP": "MSRP",
    "BaseMSRP": "MSRP",
    "Legislative District": "LegislativeDistrict",
    "DOL Vehicle ID": "DOLVehicleID",
    "Vehicle Location": "VehicleLocation",
    "Electric Utility": "ElectricUtility",
    "2020 Census Tract": "CensusTract",
    "Census Tract": "CensusTract",
}

_INT_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NA


def is_truthy(value: object) -> bool:
    """Missing, empty and zero values do not count as a group or search value."""
    if is_missing(value):
        return False
    return bool(value)


def is_number(value: object) -> bool:
    """True for finite int/float values (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def coerce_cell(value: object, *, opaque: bool = False) -> Any:
    """Turn one raw CSV cell into None, a number, or the original string."""
    if is_missing(value):
        return None
    s = str(value)
    stripped = s.strip()
    if not stripped:
        return None
    if opaque:
        return s
    if _INT_RE.match(stripped):
        return int(stripped)
    if _NUMBER_RE.match(stripped):
        num = float(stripped)
        if not math.isfinite(num):
            return s
        if num.is_integer():
            return int(num)
        return num
    return s


def cell_text(value: object) -> str:
    if is_missing(value):
        return ""
    return str(value)


def display_value(column: str, value: object) -> str:
    text = cell_text(value)
    if column == "VIN":
        return text[:VIN_DISPLAY_LENGTH]
    return text


@dataclass(frozen=True)
class RecordSet:
    """Immutable collection of parsed vehicle rows.

    Equality and hashing use ``token`` only, so a record set can key memoized
    computations. The frame is never mutated; callers get copies.
    """

    token: str
    frame: pd.DataFrame = field(compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def columns(self) -> List[str]:
        return list(self.frame.columns)

    def column(self, name: str) -> pd.Series:
        if name not in self.frame.columns:
            return pd.Series([None] * len(self.frame), index=self.frame.index, dtype=object)
        return self.frame[name]

    def to_frame(self) -> pd.DataFrame:
        return self.frame.copy()

    def to_records(self) -> List[Dict[str, Any]]:
        return self.frame.to_dict(orient="records")

    @classmethod
    def empty(cls, token: str = "empty") -> "RecordSet":
        return cls(token=token, frame=pd.DataFrame({c: pd.Series(dtype=object) for c in CANONICAL_COLUMNS}))

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "RecordSet":
        frame = df.reset_index(drop=True).astype(object)
        frame = frame.where(pd.notna(frame), None)
        digest = hashlib.sha1(frame.to_csv(index=False).encode("utf-8")).hexdigest()
        return cls(token=digest, frame=frame)


def canonical_column(name: str) -> str:
    name = str(name).strip()
    return RECORD_COLUMNS.get(name, name)


def _coerce_column(series: pd.Series, column: str) -> pd.Series:
    opaque = column in OPAQUE_COLUMNS
    # dtype=object keeps ints as ints and None as None (no float/NaN upcast).
    return pd.Series([coerce_cell(v, opaque=opaque) for v in series], index=series.index, dtype=object)


def _read_frame(text: str) -> pd.DataFrame:
    # Cells stay raw strings; coercion happens per column afterwards.
    options = dict(dtype=str, keep_default_na=False, index_col=False, engine="python", skip_blank_lines=True)
    width = len(pd.read_csv(io.StringIO(text), nrows=0, **options).columns)
    long_rows: List[int] = []

    def fit_long_row(row: List[str]) -> List[str]:
        long_rows.append(len(row))
        return row[:width]

    raw = pd.read_csv(io.StringIO(text), on_bad_lines=fit_long_row, **options)
    # Short rows come back padded with NaN; present-but-empty cells are "".
    short_rows = int(raw.isna().any(axis=1).sum())
    if long_rows or short_rows:
        logger.warning(
            "Fitted malformed rows to %d columns: %d truncated, %d padded",
            width,
            len(long_rows),
            short_rows,
        )
    return raw


def parse_records(text: Optional[str]) -> RecordSet:
    """Parse CSV text with a header row into a RecordSet.

    Malformed rows are kept: extra fields are dropped and short rows are padded
    with None, so the output has one record per data row. Text the CSV parser
    cannot read yields an empty record set instead of an exception.
    """
    text = (text or "").lstrip("\ufeff")
    token = hashlib.sha1(text.encode("utf-8")).hexdigest()
    if not text.strip():
        return RecordSet.empty(token)

    try:
        raw = _read_frame(text)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        logger.warning("CSV text could not be parsed: %s", exc)
        return RecordSet.empty(token)

    raw.columns = [canonical_column(c) for c in raw.columns]
    raw = raw.loc[:, ~raw.columns.duplicated()]

    data = {col: _coerce_column(raw[col], col) for col in raw.columns}
    frame = pd.DataFrame(data, index=raw.index, columns=list(raw.columns))
    for col in CANONICAL_COLUMNS:
        if col not in frame.columns:
            frame[col] = pd.Series([None] * len(frame), index=frame.index, dtype=object)
    frame = frame.reset_index(drop=True)

    logger.debug("Parsed %d record(s) with columns %s", len(frame), list(frame.columns))
    return RecordSet(token=token, frame=frame)
