from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

import altair as alt
import plotly.graph_objects as go

from eudigital.selection import ChartSelection

alt.data_transformers.disable_max_rows()

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_ERROR = "error"

NO_DATA_COLOR = "#cccccc"
NO_DATA_LABEL = "No Data Available"
ACCENT_COLOR = "#4a90e2"
MALE_COLOR = "#4a90e2"
FEMALE_COLOR = "#ff6b6b"
ABOVE_COLOR = "#ff6b6b"
BELOW_COLOR = "#4a90e2"
PALETTE = ["#4F8EF7", "#F7B32B", "#E4572E", "#76B041", "#A259F7", "#F76E9A", "#43BCCD", "#FF8C42"]


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def to_plotly_spec(fig: go.Figure) -> Dict[str, Any]:
    """Convert a Plotly figure into a plain dict (JSON-serializable)."""
    return json.loads(fig.to_json())


def base_payload(selection: ChartSelection, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "status": STATUS_OK,
        "message": None,
        "records": [],
        "charts": {},
    }
    payload.update(extra)
    return payload


def error_payload(selection: ChartSelection, message: Optional[str], **extra: Any) -> Dict[str, Any]:
    payload = base_payload(selection, **extra)
    payload["status"] = STATUS_ERROR
    payload["message"] = message or "Data could not be loaded."
    return payload


def empty_payload(selection: ChartSelection, message: str, **extra: Any) -> Dict[str, Any]:
    payload = base_payload(selection, **extra)
    payload["status"] = STATUS_EMPTY
    payload["message"] = message
    return payload
