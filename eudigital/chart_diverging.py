from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eudigital import config
from eudigital.charts import ABOVE_COLOR, BELOW_COLOR, base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import load_indicator
from eudigital.extract import series_for_year
from eudigital.selection import normalize_selection


def eu_average(values: Dict[str, float]) -> float:
    if not values:
        return 0.0
    return sum(values.values()) / len(values)


def diverging_rows(values: Dict[str, float]) -> List[Dict[str, Any]]:
    """Each country's gap to the unweighted mean of all countries, alphabetically."""
    average = eu_average(values)
    return [
        {
            "country": country,
            "value": value,
            "divergence": value - average,
            "is_above_average": value > average,
        }
        for country, value in sorted(values.items(), key=lambda kv: kv[0])
    ]


def build_diverging_chart(rows: List[Dict[str, Any]], average: float, year: int) -> alt.LayerChart:
    df = pd.DataFrame(rows)
    df["position"] = df["is_above_average"].map({True: "Above average", False: "Below average"})
    lo = min(float(df["divergence"].min()), 0.0) * 1.1
    hi = max(float(df["divergence"].max()), 0.0) * 1.1
    hover = alt.selection_point(fields=["country"], on="mouseover", empty=False)
    bars = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("divergence:Q", title="Difference from EU average (percentage points)", scale=alt.Scale(domain=[lo, hi])),
            y=alt.Y("country:N", title=None, sort=None),
            color=alt.Color(
                "position:N",
                title=None,
                scale=alt.Scale(domain=["Above average", "Below average"], range=[ABOVE_COLOR, BELOW_COLOR]),
            ),
            opacity=alt.condition(hover, alt.value(0.7), alt.value(1)),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("value:Q", title="Value (%)", format=".1f"),
                alt.Tooltip("divergence:Q", title="Difference", format="+.1f"),
                alt.Tooltip("position:N", title="Position"),
            ],
        )
        .add_params(hover)
    )
    rule = alt.Chart(pd.DataFrame({"x": [0.0]})).mark_rule(color="#666666", strokeDash=[5, 5], strokeWidth=2).encode(x="x:Q")
    return alt.layer(bars, rule).properties(
        title=f"Internet non-usage vs EU average ({average:.1f}%), {year}", width="container", height=520
    )


def compute_diverging(raw: Optional[dict] = None) -> Dict[str, Any]:
    loaded, result = load_indicator(config.NON_USE_FILE, "diverging")
    selection = normalize_selection(raw, available_years=result.years, default_year=config.DEFAULT_YEAR)
    if not loaded.ok:
        return error_payload(selection, loaded.message, years=[])
    if selection.year is None:
        return empty_payload(selection, "No internet non-usage data found for 2020-2024.", years=result.years)

    values = series_for_year(result.series, selection.year)
    if not values:
        return empty_payload(selection, f"No countries with data for {selection.year}.", years=result.years)

    average = eu_average(values)
    rows = diverging_rows(values)
    payload = base_payload(selection, years=result.years, average=average)
    payload["records"] = rows
    payload["charts"] = {"diverging": to_vega_spec(build_diverging_chart(rows, average, selection.year))}
    return payload
