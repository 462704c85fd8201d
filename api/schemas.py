from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ev_dashboard.settings import DEFAULT_PAGE_SIZE


class SortModel(BaseModel):
    column: str
    direction: Literal["asc", "desc"] = "asc"


class TableQueryModel(BaseModel):
    search: str = ""
    filters: Dict[str, Union[str, int, float]] = Field(default_factory=dict)
    sort: Optional[SortModel] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


class SettingsModel(BaseModel):
    bin_width: Optional[int] = None
    make_top_n: Optional[int] = None
    postal_code_top_n: Optional[int] = None
    model_year_min: Optional[int] = None
    model_year_max: Optional[int] = None


class StatusResponse(BaseModel):
    status: Literal["ready", "error"]
    path: str
    records: int = 0
    token: Optional[str] = None
    error: Optional[str] = None


class MetaColumnsResponse(BaseModel):
    columns: List[str]


class MetaValuesResponse(BaseModel):
    column: str
    values: List[str]
