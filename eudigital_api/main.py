from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eudigital.chart_bubble import compute_bubble
from eudigital.chart_choropleth import compute_choropleth
from eudigital.chart_diverging import compute_diverging
from eudigital.chart_pyramid import compute_pyramid
from eudigital.chart_radar import compute_radar
from eudigital.chart_revenue import compute_revenue
from eudigital.chart_sankey import compute_sankey
from eudigital.config import configure_logging, cors_origins
from eudigital_api.schemas import SelectionModel


configure_logging()
app = FastAPI(title="EU Digital Transformation API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CHARTS: Dict[str, Callable[[Optional[dict]], Dict[str, Any]]] = {
    "choropleth": compute_choropleth,
    "bubble": compute_bubble,
    "pyramid": compute_pyramid,
    "diverging": compute_diverging,
    "revenue": compute_revenue,
    "sankey": compute_sankey,
    "radar": compute_radar,
}


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
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
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _compute_for(chart: str) -> Callable[[Optional[dict]], Dict[str, Any]]:
    compute = CHARTS.get(chart)
    if compute is None:
        raise HTTPException(status_code=404, detail=f"Unknown chart: {chart}")
    return compute


@app.get("/health")
def health():
    return {"status": "ok", "charts": list(CHARTS)}


@app.get("/meta/years/{chart}")
def meta_years(chart: str):
    compute = _compute_for(chart)
    try:
        payload = compute(None)
        years = [int(y) for y in payload.get("years", []) or []]
        return _json({"chart": chart, "years": years, "status": payload.get("status")})
    except Exception as exc:
        logger.exception("meta_years failed for %s", chart)
        return _error(exc)


@app.get("/meta/countries/{chart}")
def meta_countries(chart: str):
    compute = _compute_for(chart)
    try:
        payload = compute(None)
        countries = [str(c) for c in payload.get("countries", []) or []]
        return _json({"chart": chart, "countries": countries, "status": payload.get("status")})
    except Exception as exc:
        logger.exception("meta_countries failed for %s", chart)
        return _error(exc)


@app.post("/charts/{chart}")
def chart_payload(chart: str, selection: SelectionModel):
    compute = _compute_for(chart)
    try:
        return _json(compute(selection.model_dump()))
    except Exception as exc:
        logger.exception("%s failed", chart)
        return _error(exc)
