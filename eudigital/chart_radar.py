from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eudigital import config
from eudigital.charts import ACCENT_COLOR, PALETTE, base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import activity_countries, load_activity_table
from eudigital.extract import CategoryGrid
from eudigital.selection import normalize_selection

GRID_LEVELS = 5
PANELS_PER_ROW = 4


def polar_point(index: int, count: int, radius: float) -> tuple:
    angle = index * (2 * math.pi / count) - math.pi / 2
    return radius * math.cos(angle), radius * math.sin(angle)


def radar_profiles(grid: CategoryGrid) -> List[Dict[str, Any]]:
    """One profile per age group; missing activity values count as 0."""
    profiles = []
    for i, row in enumerate(grid.rows):
        values = [v if v is not None else 0.0 for v in row.values]
        profiles.append({"age_group": row.group, "values": values, "color": PALETTE[i % len(PALETTE)]})
    return profiles


def radar_points(activities: List[str], values: List[float]) -> List[Dict[str, Any]]:
    max_value = max(values) if values and max(values) > 0 else 1.0
    n = len(activities)
    points = []
    for i, (activity, value) in enumerate(zip(activities, values)):
        x, y = polar_point(i, n, value / max_value)
        points.append({"activity": activity, "value": value, "x": x, "y": -y, "order": i})
    return points


def _grid_frame(activities: List[str]) -> pd.DataFrame:
    n = len(activities)
    rows = []
    for level in range(1, GRID_LEVELS + 1):
        r = level / GRID_LEVELS
        for i in range(n + 1):
            x, y = polar_point(i % n, n, r)
            rows.append({"level": level, "x": x, "y": -y, "order": i})
    return pd.DataFrame(rows)


def _axis_frame(activities: List[str]) -> pd.DataFrame:
    n = len(activities)
    rows = []
    for i, activity in enumerate(activities):
        x, y = polar_point(i, n, 1.0)
        rows.append({"activity": activity, "x": 0.0, "y": 0.0, "x2": x, "y2": -y, "lx": x * 1.15, "ly": -y * 1.15})
    return pd.DataFrame(rows)


def build_radar_panel(activities: List[str], profile: Dict[str, Any]) -> alt.LayerChart:
    scale = alt.Scale(domain=[-1.3, 1.3])
    x_enc = alt.X("x:Q", scale=scale, axis=None)
    y_enc = alt.Y("y:Q", scale=scale, axis=None)
    points = radar_points(activities, profile["values"])
    closed = pd.DataFrame(points + [dict(points[0], order=len(points))])
    color = profile["color"]

    grid = alt.Chart(_grid_frame(activities)).mark_line(color=ACCENT_COLOR, strokeWidth=0.5, opacity=0.3).encode(
        x=x_enc, y=y_enc, detail="level:N", order="order:Q"
    )
    axes_df = _axis_frame(activities)
    spokes = alt.Chart(axes_df).mark_rule(color=ACCENT_COLOR, opacity=0.7).encode(x=x_enc, y=y_enc, x2="x2:Q", y2="y2:Q")
    labels = alt.Chart(axes_df).mark_text(fontSize=11, fontWeight=600).encode(
        x=alt.X("lx:Q", scale=scale, axis=None), y=alt.Y("ly:Q", scale=scale, axis=None), text="activity:N"
    )
    outline = alt.Chart(closed).mark_line(color=color, strokeWidth=3.5).encode(x=x_enc, y=y_enc, order="order:Q")
    dots = alt.Chart(pd.DataFrame(points)).mark_circle(color=color, size=60, opacity=1).encode(
        x=x_enc,
        y=y_enc,
        tooltip=[alt.Tooltip("activity:N", title=profile["age_group"]), alt.Tooltip("value:Q", title="Share (%)")],
    )
    return alt.layer(grid, spokes, labels, outline, dots).properties(
        title=alt.TitleParams(profile["age_group"], color=color), width=260, height=260
    )


def compute_radar(raw: Optional[dict] = None) -> Dict[str, Any]:
    countries = activity_countries(config.ACTIVITIES_FILE)
    selection = normalize_selection(raw, available_entities=countries, default_country=config.DEFAULT_RADAR_COUNTRY)
    loaded, grid = load_activity_table(config.ACTIVITIES_FILE, country=selection.country)
    if not loaded.ok:
        return error_payload(selection, loaded.message, countries=[], activities=[])
    profiles = radar_profiles(grid)
    if not grid.categories or not profiles:
        return empty_payload(selection, f"No activity data for {selection.country}.", countries=countries, activities=grid.categories)

    payload = base_payload(selection, countries=countries, activities=grid.categories)
    payload["records"] = profiles
    panels = [build_radar_panel(grid.categories, p) for p in profiles]
    chart = alt.concat(*panels, columns=PANELS_PER_ROW).properties(
        title=f"Internet activities by age group: {selection.country}"
    )
    payload["charts"] = {"radar": to_vega_spec(chart)}
    return payload
