from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    MetaColumnsResponse,
    MetaValuesResponse,
    SettingsModel,
    StatusResponse,
    TableQueryModel,
)
from ev_dashboard.data import DatasetState, load_dataset, reload_dataset
from ev_dashboard.metrics_overview import compute_overview
from ev_dashboard.metrics_table import compute_table
from ev_dashboard.query import TableQuery, normalize_query, query_frame, unique_values
from ev_dashboard.settings import DATA_PATH, DashboardSettings, normalize_settings


app = FastAPI(title="EV Population Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SETTINGS = normalize_settings()


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with pandas/numpy scalars and NaN mapped to plain values."""

    def _finite(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        return None if math.isnan(out) or math.isinf(out) else out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _finite,
                np.floating: _finite,
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _status(state: DatasetState) -> StatusResponse:
    return StatusResponse(
        status=state.status,
        path=str(state.path),
        records=len(state.records),
        token=state.records.token if state.ready else None,
        error=state.error,
    )


def _dataset() -> DatasetState:
    return load_dataset(DATA_PATH)


def _unavailable(state: DatasetState) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": state.error, "type": "DatasetLoadError"})


def _settings_from_model(model: SettingsModel) -> DashboardSettings:
    raw = {
        "page_sizes": SETTINGS.page_sizes,
        "default_page_size": SETTINGS.default_page_size,
        **model.model_dump(exclude_none=True),
    }
    return normalize_settings(raw)


def _query_from_model(model: TableQueryModel, state: DatasetState) -> TableQuery:
    return normalize_query(
        model.model_dump(),
        columns=state.records.columns,
        page_sizes=SETTINGS.page_sizes,
        default_page_size=SETTINGS.default_page_size,
    )


@app.get("/status")
def status():
    try:
        return _json(_status(_dataset()).model_dump())
    except Exception as exc:
        logger.exception("status failed")
        return _error(exc)


@app.post("/reload")
def reload():
    try:
        state = reload_dataset(DATA_PATH)
        return _json(_status(state).model_dump(), status_code=200 if state.ready else 503)
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)


@app.get("/overview")
def overview(settings: SettingsModel = Depends()):
    try:
        state = _dataset()
        if not state.ready:
            return _unavailable(state)
        return _json(compute_overview(state.records, _settings_from_model(settings)))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.get("/meta/columns")
def meta_columns():
    try:
        state = _dataset()
        if not state.ready:
            return _unavailable(state)
        return _json(MetaColumnsResponse(columns=state.records.columns).model_dump())
    except Exception as exc:
        logger.exception("meta_columns failed")
        return _error(exc)


@app.get("/meta/values/{column}")
def meta_values(column: str):
    try:
        state = _dataset()
        if not state.ready:
            return _unavailable(state)
        if column not in state.records.columns:
            return JSONResponse(status_code=404, content={"error": f"Unknown column: {column}", "type": "KeyError"})
        values = list(unique_values(state.records, column))
        return _json(MetaValuesResponse(column=column, values=values).model_dump())
    except Exception as exc:
        logger.exception("meta_values failed")
        return _error(exc)


@app.post("/table")
def table(query: TableQueryModel):
    try:
        state = _dataset()
        if not state.ready:
            return _unavailable(state)
        q = _query_from_model(query, state)
        return _json(compute_table(state.records, q, SETTINGS))
    except ValueError as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("table failed")
        return _error(exc)


@app.post("/export")
def export(query: TableQueryModel):
    try:
        state = _dataset()
        if not state.ready:
            return _unavailable(state)
        q = _query_from_model(query, state)
        csv_bytes = query_frame(state.records, q).to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=vehicles.csv"},
        )
    except ValueError as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
