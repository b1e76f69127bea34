from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eudigital import config
from eudigital.charts import FEMALE_COLOR, MALE_COLOR, base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import PopulationData, PyramidPoint, load_population
from eudigital.selection import ChartSelection, as_int, normalize_selection, resolve_year


def pyramid_rows(points: List[PyramidPoint]) -> List[Dict[str, Any]]:
    """Male/female value per age group, youngest first; a missing side is 0."""
    groups: Dict[str, Dict[str, Any]] = {}
    for p in points:
        row = groups.setdefault(p.age_group, {"age_group": p.age_group, "age_start": p.age_start, "male": 0.0, "female": 0.0})
        row["male" if p.gender == "Male" else "female"] = p.value
    return sorted(groups.values(), key=lambda r: r["age_start"])


def country_years(data: PopulationData, country: Optional[str]) -> List[int]:
    by_year = data.points.get(country or "") or {}
    return [y for y in data.years if by_year.get(y)]


def build_pyramid_chart(rows: List[Dict[str, Any]], country: str, year: int) -> alt.Chart:
    long_rows = []
    for r in rows:
        long_rows.append({"age_group": r["age_group"], "age_start": r["age_start"], "gender": "Male", "value": r["male"], "signed": -r["male"]})
        long_rows.append({"age_group": r["age_group"], "age_start": r["age_start"], "gender": "Female", "value": r["female"], "signed": r["female"]})
    df = pd.DataFrame(long_rows)
    max_value = float(df["value"].max() or 0) or 1.0
    order = [r["age_group"] for r in sorted(rows, key=lambda r: r["age_start"], reverse=True)]
    hover = alt.selection_point(fields=["age_group", "gender"], on="mouseover", empty=False)
    return (
        alt.Chart(df, title=f"Daily internet usage: {country}, {year}")
        .mark_bar()
        .encode(
            x=alt.X(
                "signed:Q",
                title="Individuals using the internet daily (%)",
                scale=alt.Scale(domain=[-max_value, max_value]),
                axis=alt.Axis(labelExpr="abs(datum.value)"),
            ),
            y=alt.Y("age_group:N", title="Age group", sort=order),
            color=alt.Color("gender:N", scale=alt.Scale(domain=["Male", "Female"], range=[MALE_COLOR, FEMALE_COLOR])),
            opacity=alt.condition(hover, alt.value(0.7), alt.value(1)),
            tooltip=[
                alt.Tooltip("age_group:N", title="Age group"),
                alt.Tooltip("gender:N", title="Gender"),
                alt.Tooltip("value:Q", title="Usage (%)", format=".1f"),
            ],
        )
        .add_params(hover)
        .properties(width="container", height=460)
    )


def compute_pyramid(raw: Optional[dict] = None) -> Dict[str, Any]:
    loaded, data = load_population()
    selection = normalize_selection(
        raw,
        available_years=data.years,
        available_entities=data.countries,
        default_country=config.DEFAULT_PYRAMID_COUNTRY,
    )
    if not loaded.ok:
        return error_payload(selection, loaded.message, years=[], countries=[], years_with_data=[])
    if not data.points:
        return empty_payload(selection, "No usage data found in the workbook.", years=data.years, countries=data.countries, years_with_data=[])

    available = country_years(data, selection.country)
    year = resolve_year(as_int((raw or {}).get("year")), available, available[0] if available else None)
    selection = ChartSelection(year=year, country=selection.country, focus=selection.focus)

    extra = {"years": data.years, "countries": data.countries, "years_with_data": available}
    if year is None:
        return empty_payload(selection, f"No data for {selection.country}.", **extra)

    rows = pyramid_rows(data.points[selection.country][year])
    payload = base_payload(selection, **extra)
    payload["records"] = rows
    payload["charts"] = {"pyramid": to_vega_spec(build_pyramid_chart(rows, selection.country, year))}
    return payload
