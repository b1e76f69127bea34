from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

import pandas as pd
import pytest

from eudigital import config
from eudigital.data import clear_caches

EU27 = config.EU27_LABEL


def write_workbook(path: Path, sheets: Dict[str, List[list]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
    return path


def square(x: float, y: float) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]],
    }


def population_sheet(description: str, rows: List[list]) -> List[list]:
    return [
        ["Data extracted on 01/03/2025"],
        ["Source of data", "Eurostat"],
        ["Time frequency", "Annual"],
        ["Individual type", description],
        ["Unit of measure", "Percentage of individuals"],
        [None],
        ["TIME", 2022, 2023, 2024],
        ["GEO (Labels)"],
    ] + rows


def activity_sheet(rows: List[list]) -> List[list]:
    return [
        ["Activities", None, None, None, None, None],
        [
            "GEO",
            "Individual type",
            "Internet use: Internet banking",
            None,
            "Internet use: sending/receiving e-mails",
            None,
        ],
        ["GEO (Labels)", "IND_TYPE (Labels)", None, None, None, None],
    ] + rows


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("EUDIGITAL_DATA_DIR", str(tmp_path))
    clear_caches()
    yield tmp_path
    clear_caches()


@pytest.fixture
def assets(data_dir):
    """A complete, small data directory covering every chart."""
    write_workbook(
        data_dir / config.CHOROPLETH_FILE,
        {
            "Sheet 1": [
                ["GEO (Labels)", 2023, 2024],
                ["Belgium", 92.1, 93.4],
                ["Czechia", 90.0, ":"],
                [EU27, 93.0, 94.0],
            ]
        },
    )
    geo = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"NAME": "Belgium"}, "geometry": square(4, 50)},
            {"type": "Feature", "properties": {"NAME": "Czech Republic"}, "geometry": square(14, 49)},
            {"type": "Feature", "properties": {"NAME": "Atlantis"}, "geometry": square(-30, 40)},
        ],
    }
    (data_dir / config.GEOJSON_FILE).write_text(json.dumps(geo), encoding="utf-8")

    write_workbook(
        data_dir / config.BUYERS_FILE,
        {"Sheet 1": [["GEO (Labels)", 2023, 2024], ["Belgium", 70.0, 72.0], ["Denmark", 85.0, 86.5], ["Estonia", 60.0, ":"], ["Ireland", 75.0, 77.0]]},
    )
    write_workbook(
        data_dir / config.ENTERPRISES_FILE,
        {"Sheet 1": [["GEO (Labels)", 2023, 2024], ["Belgium", 30.0, 31.0], ["Denmark", 35.0, 36.0], [EU27, 24.0, 25.0]]},
    )
    write_workbook(
        data_dir / config.TURNOVER_FILE,
        {
            "Sheet 1": [
                ["GEO (Labels)", 2022, 2023, 2024],
                ["Belgium", 28.0, 29.5, 31.2],
                ["Denmark", ":", 30.0, 27.4],
                ["Ireland", 40.0, 41.0, 42.5],
                [EU27, 19.0, 20.0, 21.0],
            ]
        },
    )
    write_workbook(
        data_dir / config.NON_USE_FILE,
        {
            "Sheet 1": [
                ["GEO (Labels)", 2023, 2024],
                [EU27, 6.0, 5.5],
                ["Bulgaria", 14.0, 12.0],
                ["Denmark", 1.0, 2.0],
                ["Portugal", 8.0, 7.0],
            ]
        },
    )
    write_workbook(
        data_dir / config.POPULATION_FILE,
        {
            "Summary": [["Contents"], ["Sheet 1", "Males 16 to 24 years"]],
            "Sheet 1": population_sheet(
                "Males 16 to 24 years",
                [[EU27, 95.0, 96.0, 97.0], ["Belgium", ":", 94.0, 95.0], ["Euro area - 20 countries", 94.0, 95.0, 96.0]],
            ),
            "Sheet 2": population_sheet(
                "Females 16 to 24 years",
                [[EU27, 96.0, 97.0, 98.0], ["Belgium", ":", 95.0, 96.5]],
            ),
            "Sheet 3": population_sheet(
                "Males 55 to 74 years",
                [[EU27, 60.0, 63.0, 66.0], ["Belgium", ":", 58.0, 61.0]],
            ),
        },
    )
    write_workbook(
        data_dir / config.ACTIVITIES_FILE,
        {
            "Sheet 1": activity_sheet(
                [
                    ["Belgium", "Individuals, 16 to 24 years old", 40.0, None, 88.0, None],
                    ["Belgium", "Individuals, 55 to 74 years old", 55.0, None, ":", None],
                    ["Germany", "Individuals, 16 to 24 years old", 35.0, None, 90.0, None],
                    [EU27, "Individuals, 16 to 24 years old", 38.0, None, 87.0, None],
                ]
            )
        },
    )
    write_workbook(
        data_dir / config.SANKEY_FILE,
        {
            "Sheet 1": activity_sheet(
                [
                    ["European Union", "Individuals, 16 to 24 years old", 45.0, None, 89.0, None],
                    ["European Union", "Individuals, 25 to 54 years old", 70.0, None, ":", None],
                    ["European Union", "All individuals", 60.0, None, 80.0, None],
                ]
            )
        },
    )
    return data_dir
