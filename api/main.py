from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import MetaListResponse, SelectionModel
from core.data import load_dashboard_data
from core.filters import GENDERS, STROKE_STYLES, Selection, normalize_selection
from core.metrics_debug import compute_debug
from core.metrics_map import compute_map
from core.metrics_medals import compute_medals
from core.metrics_rankings import compute_rankings
from core.metrics_stages import compute_stages, qualifying_events


app = FastAPI(title="Paris 2024 Swimming Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Compute = Callable[[Selection, Dict[str, Any]], Dict[str, Any]]


def _selection_from_model(model: SelectionModel) -> Selection:
    return normalize_selection(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                frozenset: sorted,
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _run(name: str, compute: Compute, model: SelectionModel) -> JSONResponse:
    try:
        data_ctx = load_dashboard_data()
        return _json(compute(_selection_from_model(model), data_ctx))
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc)


@app.get("/meta/genders", response_model=MetaListResponse)
def meta_genders():
    return {"values": list(GENDERS)}


@app.get("/meta/styles", response_model=MetaListResponse)
def meta_styles():
    return {"values": list(STROKE_STYLES)}


@app.get("/meta/events")
def meta_events():
    try:
        data_ctx = load_dashboard_data()
        return _json({"values": qualifying_events(data_ctx.get("results"))})
    except Exception as exc:
        logger.exception("meta_events failed")
        return _error(exc)


@app.get("/meta/countries")
def meta_countries(gender: str = Query(default="Women"), stroke_style: str = Query(default="Freestyle")):
    try:
        data_ctx = load_dashboard_data()
        selection = normalize_selection({"gender": gender, "stroke_style": stroke_style})
        return _json({"values": compute_rankings(selection, data_ctx)["countries"]})
    except Exception as exc:
        logger.exception("meta_countries failed")
        return _error(exc)


@app.post("/map")
def world_map(selection: SelectionModel):
    return _run("map", compute_map, selection)


@app.post("/medals")
def medals(selection: SelectionModel):
    return _run("medals", compute_medals, selection)


@app.post("/rankings")
def rankings(selection: SelectionModel):
    return _run("rankings", compute_rankings, selection)


@app.post("/stages")
def stages(selection: SelectionModel):
    return _run("stages", compute_stages, selection)


@app.post("/debug")
def debug(selection: SelectionModel):
    return _run("debug", compute_debug, selection)


def export_frame(view: str, selection: Selection, data_ctx: Dict[str, Any]) -> pd.DataFrame:
    if view == "map":
        counts = compute_map(selection, data_ctx)["counts"]
        return pd.DataFrame({"country_code": list(counts), "athletes": list(counts.values())})
    if view == "medals":
        return pd.DataFrame(compute_medals(selection, data_ctx)["tally"])
    if view == "rankings":
        series = compute_rankings(selection, data_ctx)["series"]
        rows = [
            {"athlete": s["athlete"], "country": s["country"], "event": event, "rank": rank}
            for s in series
            for event, rank in s["ranks"].items()
        ]
        return pd.DataFrame(rows, columns=["athlete", "country", "event", "rank"])
    if view == "stages":
        return pd.DataFrame(compute_stages(selection, data_ctx)["records"])
    return pd.DataFrame()


@app.post("/export/{view}")
def export_view(view: str, selection: SelectionModel):
    data_ctx = load_dashboard_data()
    export_df = export_frame(view, _selection_from_model(selection), data_ctx)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={view}.csv"},
    )
