from __future__ import annotations

from typing import Any, Dict, List, Optional

import plotly.graph_objects as go

from eudigital import config
from eudigital.charts import ACCENT_COLOR, base_payload, empty_payload, error_payload, to_plotly_spec
from eudigital.data import load_activity_table, short_age_label
from eudigital.extract import CategoryGrid
from eudigital.selection import normalize_selection

LINK_COLOR = "rgba(105, 179, 162, 0.6)"


def sankey_graph(grid: CategoryGrid) -> Dict[str, List[Any]]:
    """Age-group -> activity nodes and links; cells without a value draw no link."""
    age_groups: List[str] = []
    for row in grid.rows:
        label = short_age_label(row.group)
        if label not in age_groups:
            age_groups.append(label)
    nodes = age_groups + [a for a in grid.categories if a not in age_groups]
    index = {name: i for i, name in enumerate(nodes)}

    links = []
    for row in grid.rows:
        source = index[short_age_label(row.group)]
        for activity, value in zip(grid.categories, row.values):
            if value is None:
                continue
            links.append({"source": source, "target": index[activity], "value": value})
    return {"nodes": [{"name": n} for n in nodes], "links": links}


def build_sankey_figure(graph: Dict[str, List[Any]]) -> go.Figure:
    labels = [n["name"] for n in graph["nodes"]]
    links = graph["links"]
    fig = go.Figure(
        go.Sankey(
            node=dict(pad=20, thickness=15, label=labels, color=ACCENT_COLOR),
            link=dict(
                source=[l["source"] for l in links],
                target=[l["target"] for l in links],
                value=[l["value"] for l in links],
                color=LINK_COLOR,
                hovertemplate="%{source.label} to %{target.label}<br>%{value}%<extra></extra>",
            ),
        )
    )
    fig.update_layout(title="Digital Activity by Age Group", height=500, margin=dict(l=10, r=10, t=50, b=10))
    return fig


def compute_sankey(raw: Optional[dict] = None) -> Dict[str, Any]:
    selection = normalize_selection(raw)
    loaded, grid = load_activity_table(config.SANKEY_FILE)
    if not loaded.ok:
        return error_payload(selection, loaded.message)
    graph = sankey_graph(grid)
    if not graph["links"]:
        return empty_payload(selection, "No age-group activity data found.")

    payload = base_payload(selection, nodes=graph["nodes"])
    payload["records"] = [
        {
            "source": graph["nodes"][l["source"]]["name"],
            "target": graph["nodes"][l["target"]]["name"],
            "value": l["value"],
        }
        for l in graph["links"]
    ]
    payload["charts"] = {"sankey": to_plotly_spec(build_sankey_figure(graph))}
    return payload
