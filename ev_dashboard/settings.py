from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple


PROJECT_DIR = Path(__file__).resolve().parents[1]
DATA_PATH = PROJECT_DIR / "data" / "Electric_Vehicle_Population_Data.csv"

HISTOGRAM_BIN_WIDTH = 50
MAKE_TOP_N = 5
POSTAL_CODE_TOP_N = 10
SEARCH_DEBOUNCE_SECONDS = 0.1
PAGE_SIZE_OPTIONS: Tuple[int, ...] = (5, 10, 15, 20, 25, 50)
DEFAULT_PAGE_SIZE = 10
MODEL_YEAR_MIN = 2000
MODEL_YEAR_MAX = 2024


@dataclass(frozen=True)
class DashboardSettings:
    data_path: Path = DATA_PATH
    bin_width: int = HISTOGRAM_BIN_WIDTH
    make_top_n: int = MAKE_TOP_N
    postal_code_top_n: int = POSTAL_CODE_TOP_N
    debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    page_sizes: List[int] = field(default_factory=lambda: list(PAGE_SIZE_OPTIONS))
    default_page_size: int = DEFAULT_PAGE_SIZE
    model_year_min: int = MODEL_YEAR_MIN
    model_year_max: int = MODEL_YEAR_MAX


def _as_int(value: object, default: int, *, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return max(lo, min(hi, out))


def _as_int_list(values: Optional[Iterable[object]]) -> List[int]:
    if not values:
        return []
    out: List[int] = []
    for v in values:
        try:
            out.append(int(v))  # type: ignore[arg-type]
        except Exception:
            continue
    return out


def normalize_settings(raw: Optional[dict] = None) -> DashboardSettings:
    raw = raw or {}

    data_path = Path(raw["data_path"]) if raw.get("data_path") else DATA_PATH
    bin_width = _as_int(raw.get("bin_width", HISTOGRAM_BIN_WIDTH), HISTOGRAM_BIN_WIDTH, lo=1, hi=10_000)
    make_top_n = _as_int(raw.get("make_top_n", MAKE_TOP_N), MAKE_TOP_N, lo=1, hi=100)
    postal_code_top_n = _as_int(raw.get("postal_code_top_n", POSTAL_CODE_TOP_N), POSTAL_CODE_TOP_N, lo=1, hi=100)

    try:
        debounce_seconds = float(raw.get("debounce_seconds", SEARCH_DEBOUNCE_SECONDS))
    except Exception:
        debounce_seconds = SEARCH_DEBOUNCE_SECONDS
    debounce_seconds = max(0.0, debounce_seconds)

    page_sizes = sorted({x for x in _as_int_list(raw.get("page_sizes")) if x > 0}) or list(PAGE_SIZE_OPTIONS)
    default_page_size = _as_int(raw.get("default_page_size", DEFAULT_PAGE_SIZE), DEFAULT_PAGE_SIZE, lo=1, hi=10_000)
    if default_page_size not in page_sizes:
        default_page_size = page_sizes[0]

    model_year_min = _as_int(raw.get("model_year_min", MODEL_YEAR_MIN), MODEL_YEAR_MIN, lo=0, hi=9999)
    model_year_max = _as_int(raw.get("model_year_max", MODEL_YEAR_MAX), MODEL_YEAR_MAX, lo=model_year_min, hi=9999)

    return DashboardSettings(
        data_path=data_path,
        bin_width=bin_width,
        make_top_n=make_top_n,
        postal_code_top_n=postal_code_top_n,
        debounce_seconds=debounce_seconds,
        page_sizes=page_sizes,
        default_page_size=default_page_size,
        model_year_min=model_year_min,
        model_year_max=model_year_max,
    )
