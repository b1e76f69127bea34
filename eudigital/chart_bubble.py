from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eudigital import config
from eudigital.charts import ACCENT_COLOR, base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import load_indicator
from eudigital.extract import EntitySeries, series_for_year
from eudigital.selection import FOCUSED, OVERVIEW, normalize_selection

METRICS = {
    "buyers": ("Online buyers (%)", config.BUYERS_FILE),
    "enterprises": ("Enterprises with online orders (%)", config.ENTERPRISES_FILE),
    "turnover": ("E-commerce turnover (%)", config.TURNOVER_FILE),
}
MIN_METRICS = 2


def combine_metrics(per_metric: Dict[str, Dict[str, float]], year: int) -> List[Dict[str, Any]]:
    """One bubble per country having at least two of the three indicators.

    A missing indicator is plotted at 0 and listed under ``missing``.
    """
    countries = sorted(set().union(*[set(v) for v in per_metric.values()]))
    rows = []
    for country in countries:
        values = {m: per_metric[m].get(country) for m in METRICS}
        present = [m for m, v in values.items() if v is not None]
        if len(present) < MIN_METRICS:
            continue
        row: Dict[str, Any] = {"country": country, "year": year}
        row.update({m: (v if v is not None else 0.0) for m, v in values.items()})
        row["missing"] = [m for m in METRICS if values[m] is None]
        rows.append(row)
    return rows


def focus_history(series: Dict[str, EntitySeries], country: str, years: List[int]) -> List[Dict[str, Any]]:
    rows = []
    for metric, (label, _) in METRICS.items():
        values = series[metric].get(country) or {}
        for year in years:
            if year in values:
                rows.append({"country": country, "year": year, "metric": label, "value": values[year]})
    return rows


def build_bubble_chart(rows: List[Dict[str, Any]], year: int) -> alt.Chart:
    df = pd.DataFrame(rows)
    x_max = float(df["buyers"].max() or 0) * 1.1 or 1.0
    y_max = float(df["enterprises"].max() or 0) * 1.1 or 1.0
    t_max = float(df["turnover"].max() or 0) or 1.0
    hover = alt.selection_point(fields=["country"], on="mouseover", empty=False)
    return (
        alt.Chart(df, title=f"E-commerce Adoption Correlation, {year}")
        .mark_circle(stroke="#ffffff", opacity=0.85)
        .encode(
            x=alt.X("buyers:Q", title="Individuals using internet for buying goods or services (%)", scale=alt.Scale(domain=[0, x_max])),
            y=alt.Y("enterprises:Q", title="Enterprises having received orders online (%)", scale=alt.Scale(domain=[0, y_max])),
            size=alt.Size("turnover:Q", title="E-commerce turnover (%)", scale=alt.Scale(domain=[0, t_max], range=[25, 900])),
            color=alt.Color("turnover:Q", scale=alt.Scale(scheme="blues", domain=[0, t_max]), legend=None),
            strokeWidth=alt.condition(hover, alt.value(3), alt.value(2)),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("year:O", title="Year"),
                alt.Tooltip("buyers:Q", title="Online Buyers", format=".1f"),
                alt.Tooltip("enterprises:Q", title="Enterprises with Online Orders", format=".1f"),
                alt.Tooltip("turnover:Q", title="E-commerce Turnover", format=".1f"),
            ],
        )
        .add_params(hover)
        .properties(width="container", height=480)
    )


def build_focus_chart(rows: List[Dict[str, Any]], country: str) -> alt.Chart:
    return (
        alt.Chart(pd.DataFrame(rows), title=f"{country}: e-commerce indicators over time")
        .mark_line(point=True, color=ACCENT_COLOR)
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("value:Q", title="Share (%)"),
            color=alt.Color("metric:N", title="Indicator"),
            tooltip=["metric", "year", alt.Tooltip("value:Q", format=".1f")],
        )
        .properties(width="container", height=320)
    )


def compute_bubble(raw: Optional[dict] = None) -> Dict[str, Any]:
    series: Dict[str, EntitySeries] = {}
    years = set()
    failures = []
    for metric, (_, filename) in METRICS.items():
        loaded, result = load_indicator(filename, "bubble")
        if not loaded.ok:
            failures.append(loaded.message)
        series[metric] = result.series
        years.update(result.years)
    years_list = sorted(years)
    countries = sorted(set().union(*[set(s) for s in series.values()]))

    selection = normalize_selection(
        raw, available_years=years_list, available_entities=countries, default_year=config.DEFAULT_YEAR
    )
    if failures:
        return error_payload(selection, "; ".join(m for m in failures if m), years=years_list)
    if selection.year is None:
        return empty_payload(selection, "No e-commerce data found for 2020-2024.", years=years_list)

    per_metric = {m: series_for_year(s, selection.year) for m, s in series.items()}
    rows = combine_metrics(per_metric, selection.year)
    if not rows:
        return empty_payload(selection, f"No countries with enough data for {selection.year}.", years=years_list)

    payload = base_payload(selection, years=years_list, countries=[r["country"] for r in rows], mode=OVERVIEW)
    payload["records"] = rows
    payload["charts"] = {"bubbles": to_vega_spec(build_bubble_chart(rows, selection.year))}

    if selection.focus:
        country = selection.focus[0]
        history = focus_history(series, country, years_list)
        payload["mode"] = FOCUSED
        payload["focus"] = {"country": country, "records": history}
        if history:
            payload["charts"]["focus"] = to_vega_spec(build_focus_chart(history, country))
    return payload
