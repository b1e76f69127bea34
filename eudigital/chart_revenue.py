from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eudigital import config
from eudigital.charts import base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import load_indicator
from eudigital.extract import EntitySeries, series_for_year
from eudigital.selection import FOCUSED, OVERVIEW, normalize_selection


def ranked_rows(series: EntitySeries, year: int) -> List[Dict[str, Any]]:
    values = series_for_year(series, year)
    rows = [{"country": c, "year": year, "value": v} for c, v in values.items()]
    return sorted(rows, key=lambda r: (-r["value"], r["country"]))


def history_rows(series: EntitySeries, countries: List[str], years: List[int]) -> List[Dict[str, Any]]:
    rows = []
    for country in countries:
        values = series.get(country) or {}
        for year in years:
            if year in values:
                rows.append({"country": country, "year": year, "value": values[year]})
    return rows


def build_bar_chart(rows: List[Dict[str, Any]], year: int, focus: List[str]) -> alt.Chart:
    df = pd.DataFrame(rows)
    df["focused"] = df["country"].isin(focus)
    x_max = float(df["value"].max() or 0) * 1.1 or 10.0
    hover = alt.selection_point(fields=["country"], on="mouseover", empty=False)
    click = alt.selection_point(name="focus", fields=["country"], on="click", toggle="true")
    base = alt.Chart(df).encode(
        x=alt.X("value:Q", title="Share of turnover (%)", scale=alt.Scale(domain=[0, x_max])),
        y=alt.Y("country:N", title=None, sort="-x"),
    )
    bars = (
        base.mark_bar(cursor="pointer", stroke="#333333")
        .encode(
            color=alt.Color("country:N", scale=alt.Scale(scheme="category10"), legend=None),
            opacity=alt.condition(hover, alt.value(0.7), alt.value(1)),
            strokeWidth=alt.condition("datum.focused", alt.value(2), alt.value(0)),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("year:O", title="Year"),
                alt.Tooltip("value:Q", title="Value (%)", format=".2f"),
            ],
        )
        .add_params(hover, click)
    )
    labels = base.mark_text(align="left", dx=5, color="#333333").encode(text=alt.Text("value:Q", format=".2f"))
    return alt.layer(bars, labels).properties(
        title=f"Share of enterprises' turnover on e-commerce (%), {year}", width="container", height=560
    )


def build_history_chart(rows: List[Dict[str, Any]]) -> alt.Chart:
    hover = alt.selection_point(fields=["country"], on="mouseover", empty="all")
    return (
        alt.Chart(pd.DataFrame(rows))
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("value:Q", title="Share of turnover (%)"),
            color=alt.Color("country:N", scale=alt.Scale(scheme="category10"), title="Country"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["country", "year", alt.Tooltip("value:Q", format=".2f")],
        )
        .add_params(hover)
        .properties(title="Selected countries over time", width="container", height=400)
    )


def compute_revenue(raw: Optional[dict] = None) -> Dict[str, Any]:
    loaded, result = load_indicator(config.TURNOVER_FILE, "revenue")
    countries = sorted(result.series)
    selection = normalize_selection(raw, available_years=result.years, available_entities=countries)
    if not loaded.ok:
        return error_payload(selection, loaded.message, years=[], countries=[], mode=OVERVIEW)
    if result.empty or selection.year is None:
        return empty_payload(selection, "No e-commerce turnover data found.", years=result.years, countries=countries, mode=OVERVIEW)

    rows = ranked_rows(result.series, selection.year)
    if not rows:
        return empty_payload(selection, f"No countries with data for {selection.year}.", years=result.years, countries=countries, mode=OVERVIEW)

    mode = FOCUSED if selection.focus else OVERVIEW
    payload = base_payload(selection, years=result.years, countries=countries, mode=mode)
    payload["records"] = rows
    payload["charts"] = {"bars": to_vega_spec(build_bar_chart(rows, selection.year, selection.focus))}

    if mode == FOCUSED:
        history = history_rows(result.series, selection.focus, result.years)
        payload["focus"] = {"countries": selection.focus, "records": history}
        if history:
            payload["charts"]["history"] = to_vega_spec(build_history_chart(history))
    return payload
