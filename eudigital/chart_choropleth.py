from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt

from eudigital import config
from eudigital.charts import NO_DATA_COLOR, NO_DATA_LABEL, base_payload, empty_payload, error_payload, to_vega_spec
from eudigital.data import load_geometry, load_indicator
from eudigital.extract import EntitySeries, correct_name
from eudigital.selection import normalize_selection

COLOR_DOMAIN = [50, 100]


def access_label(value: Optional[float]) -> str:
    if value is None:
        return NO_DATA_LABEL
    return f"Access: {value:.1f}%"


def pair_features(features: List[dict], series: EntitySeries, year: int) -> List[Dict[str, Any]]:
    """Attach the selected year's value to each region by corrected name."""
    corrections = config.chart_config("choropleth").corrections
    paired = []
    for feature in features:
        props = dict(feature.get("properties") or {})
        raw_name = str(props.get(config.GEO_NAME_PROPERTY) or "").strip()
        entity = correct_name(raw_name, corrections)
        value = (series.get(entity) or {}).get(year)
        paired.append(
            {
                "type": "Feature",
                "geometry": feature.get("geometry"),
                "properties": {
                    "name": raw_name,
                    "entity": entity,
                    "year": year,
                    "value": value,
                    "has_data": value is not None,
                    # None: colour comes from the sequential scale.
                    "fill": NO_DATA_COLOR if value is None else None,
                    "label": access_label(value),
                },
            }
        )
    return paired


def build_choropleth_chart(features: List[Dict[str, Any]], year: int) -> alt.Chart:
    hover = alt.selection_point(fields=["properties.name"], on="mouseover", empty=False)
    return (
        alt.Chart(alt.Data(values=features), title=f"Internet access level of households, {year}")
        .mark_geoshape(stroke="#ffffff")
        .encode(
            color=alt.condition(
                "datum.properties.value === null",
                alt.value(NO_DATA_COLOR),
                alt.Color(
                    "properties.value:Q",
                    title="Households with access (%)",
                    scale=alt.Scale(scheme="blues", domain=COLOR_DOMAIN),
                ),
            ),
            strokeWidth=alt.condition(hover, alt.value(3), alt.value(1)),
            tooltip=[
                alt.Tooltip("properties.name:N", title="Country"),
                alt.Tooltip("properties.year:O", title="Year"),
                alt.Tooltip("properties.label:N", title="Access"),
            ],
        )
        .add_params(hover)
        .project(type="mercator")
        .properties(width="container", height=500)
    )


def compute_choropleth(raw: Optional[dict] = None) -> Dict[str, Any]:
    loaded, result = load_indicator(config.CHOROPLETH_FILE, "choropleth")
    selection = normalize_selection(raw, available_years=result.years, default_year=config.DEFAULT_YEAR)
    if not loaded.ok:
        return error_payload(selection, loaded.message, years=[])
    geo = load_geometry()
    if not geo.ok:
        return error_payload(selection, geo.message, years=result.years)
    if result.empty or selection.year is None:
        return empty_payload(selection, "No internet access data found.", years=result.years)

    features = pair_features(geo.geojson["features"], result.series, selection.year)
    records = [f["properties"] for f in features]
    payload = base_payload(selection, years=result.years)
    payload["records"] = records
    payload["summary"] = {
        "regions": len(records),
        "regions_with_data": sum(1 for r in records if r["has_data"]),
        "unmatched_entities": sorted(set(result.series) - {r["entity"] for r in records}),
    }
    payload["charts"] = {"map": to_vega_spec(build_choropleth_chart(features, selection.year))}
    return payload
