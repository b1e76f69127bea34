import json

import pytest

from eudigital import config
from eudigital.chart_bubble import combine_metrics, compute_bubble
from eudigital.chart_choropleth import compute_choropleth
from eudigital.chart_diverging import compute_diverging, diverging_rows
from eudigital.chart_pyramid import compute_pyramid
from eudigital.chart_radar import compute_radar, radar_points
from eudigital.chart_revenue import compute_revenue
from eudigital.chart_sankey import compute_sankey
from eudigital.charts import NO_DATA_COLOR, NO_DATA_LABEL, STATUS_EMPTY, STATUS_ERROR, STATUS_OK
from eudigital.selection import FOCUSED, OVERVIEW

from conftest import EU27, write_workbook

ALL_CHARTS = [compute_choropleth, compute_bubble, compute_pyramid, compute_diverging, compute_revenue, compute_sankey, compute_radar]


def test_choropleth_marks_regions_without_data(assets):
    payload = compute_choropleth()
    assert payload["status"] == STATUS_OK
    assert payload["selection"]["year"] == 2024
    by_name = {r["name"]: r for r in payload["records"]}

    assert by_name["Belgium"]["value"] == 93.4
    assert by_name["Belgium"]["label"] == "Access: 93.4%"
    assert by_name["Belgium"]["fill"] is None

    czech = by_name["Czech Republic"]
    assert czech["entity"] == "Czechia"
    assert czech["value"] is None
    assert czech["fill"] == NO_DATA_COLOR
    assert czech["label"] == NO_DATA_LABEL

    assert by_name["Atlantis"]["has_data"] is False
    assert payload["summary"] == {"regions": 3, "regions_with_data": 1, "unmatched_entities": [EU27]}
    assert payload["charts"]["map"]["mark"]["type"] == "geoshape"


def test_choropleth_earlier_year(assets):
    payload = compute_choropleth({"year": 2023})
    by_name = {r["name"]: r for r in payload["records"]}
    assert by_name["Czech Republic"]["value"] == 90.0


def test_bubble_needs_two_of_three_metrics(assets):
    payload = compute_bubble()
    assert payload["status"] == STATUS_OK
    assert payload["mode"] == OVERVIEW
    assert payload["years"] == [2022, 2023, 2024]
    rows = {r["country"]: r for r in payload["records"]}
    assert set(rows) == {"Belgium", "Denmark", "Ireland"}
    assert rows["Ireland"]["enterprises"] == 0.0
    assert rows["Ireland"]["missing"] == ["enterprises"]
    assert rows["Belgium"]["missing"] == []


def test_bubble_focus_adds_history(assets):
    payload = compute_bubble({"focus": ["Denmark"]})
    assert payload["mode"] == FOCUSED
    assert payload["focus"]["country"] == "Denmark"
    assert {r["metric"] for r in payload["focus"]["records"]} == {
        "Online buyers (%)",
        "Enterprises with online orders (%)",
        "E-commerce turnover (%)",
    }
    assert "focus" in payload["charts"]


def test_combine_metrics_skips_single_metric_countries():
    rows = combine_metrics({"buyers": {"A": 1.0, "B": 2.0}, "enterprises": {"A": 3.0}, "turnover": {}}, 2024)
    assert [r["country"] for r in rows] == ["A"]
    assert rows[0]["turnover"] == 0.0


def test_pyramid_defaults_to_eu_and_first_year(assets):
    payload = compute_pyramid()
    assert payload["selection"]["country"] == EU27
    assert payload["selection"]["year"] == 2022
    assert payload["countries"] == [EU27, "Belgium"]
    assert [r["age_group"] for r in payload["records"]] == ["16-24", "55-74"]
    assert payload["records"][1]["female"] == 0.0


def test_pyramid_snaps_invalid_year_to_first_with_data(assets):
    payload = compute_pyramid({"country": "Belgium", "year": 2022})
    assert payload["years_with_data"] == [2023, 2024]
    assert payload["selection"]["year"] == 2023
    payload = compute_pyramid({"country": "Belgium", "year": 2024})
    assert payload["selection"]["year"] == 2024
    assert payload["records"][0] == {"age_group": "16-24", "age_start": 16, "male": 95.0, "female": 96.5}


def test_pyramid_chart_mirrors_male_values(assets):
    spec = compute_pyramid({"country": "Belgium", "year": 2024})["charts"]["pyramid"]
    values = next(iter(spec["datasets"].values()))
    male = [v for v in values if v["gender"] == "Male"]
    assert all(v["signed"] == -v["value"] for v in male)
    assert spec["encoding"]["x"]["scale"]["domain"] == [-96.5, 96.5]


def test_diverging_against_average(assets):
    payload = compute_diverging()
    assert payload["average"] == pytest.approx(7.0)
    assert [r["country"] for r in payload["records"]] == ["Bulgaria", "Denmark", "Portugal"]
    flags = {r["country"]: r["is_above_average"] for r in payload["records"]}
    assert flags == {"Bulgaria": True, "Denmark": False, "Portugal": False}


def test_diverging_rows_without_values():
    assert diverging_rows({}) == []


def test_revenue_sorted_descending(assets):
    payload = compute_revenue()
    assert payload["selection"]["year"] == 2024
    assert [r["country"] for r in payload["records"]] == ["Ireland", "Belgium", "Denmark"]
    assert "history" not in payload["charts"]


def test_revenue_focus_shows_history(assets):
    payload = compute_revenue({"year": 2023, "focus": ["Denmark", "Atlantis"]})
    assert payload["mode"] == FOCUSED
    assert payload["selection"]["focus"] == ["Denmark"]
    assert payload["focus"]["records"] == [
        {"country": "Denmark", "year": 2023, "value": 30.0},
        {"country": "Denmark", "year": 2024, "value": 27.4},
    ]
    assert "history" in payload["charts"]


def test_sankey_drops_missing_links(assets):
    payload = compute_sankey()
    assert [n["name"] for n in payload["nodes"]] == ["16-24", "25-54", "Internet Banking", "E-mail"]
    assert payload["records"] == [
        {"source": "16-24", "target": "Internet Banking", "value": 45.0},
        {"source": "16-24", "target": "E-mail", "value": 89.0},
        {"source": "25-54", "target": "Internet Banking", "value": 70.0},
    ]
    assert payload["charts"]["sankey"]["data"][0]["type"] == "sankey"


def test_radar_profiles_for_country(assets):
    payload = compute_radar()
    assert payload["selection"]["country"] == "Belgium"
    assert payload["countries"] == ["Belgium", "Germany"]
    assert payload["activities"] == ["Internet Banking", "E-mail"]
    assert [p["values"] for p in payload["records"]] == [[40.0, 88.0], [55.0, 0.0]]
    assert payload["records"][0]["color"] != payload["records"][1]["color"]


def test_radar_points_scale_to_maximum():
    points = radar_points(["a", "b", "c", "d"], [50.0, 100.0, 0.0, 25.0])
    assert points[1]["x"] == pytest.approx(1.0)
    assert points[0]["y"] == pytest.approx(0.5)
    assert points[2]["x"] == pytest.approx(0.0) and points[2]["y"] == pytest.approx(0.0)


@pytest.mark.parametrize("compute", ALL_CHARTS)
def test_missing_files_give_error_payloads(data_dir, compute):
    payload = compute()
    assert payload["status"] == STATUS_ERROR
    assert payload["message"]
    assert payload["charts"] == {}


@pytest.mark.parametrize("compute", ALL_CHARTS)
def test_payloads_are_json_serializable(assets, compute):
    payload = compute()
    assert payload["status"] == STATUS_OK
    json.dumps(payload)


def test_year_without_values_is_empty(assets, data_dir):
    write_workbook(data_dir / config.NON_USE_FILE, {"Sheet 1": [["GEO (Labels)", 2024], ["Denmark", ":"]]})
    payload = compute_diverging()
    assert payload["status"] == STATUS_EMPTY


def test_revenue_click_selection_is_named_focus(assets):
    spec = compute_revenue()["charts"]["bars"]
    params = {p["name"]: p for p in spec.get("params", [])}
    assert params["focus"]["select"]["on"] == "click"
