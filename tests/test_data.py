import os

from eudigital import config
from eudigital.data import (
    STATUS_ERROR,
    activity_countries,
    load_activity_table,
    load_geometry,
    load_indicator,
    load_population,
    load_workbook,
    short_age_label,
)

from conftest import EU27, write_workbook


def test_missing_file_is_an_error_result(data_dir):
    loaded = load_workbook("nope.xlsx")
    assert loaded.status == STATUS_ERROR
    assert loaded.message == "File not found: nope.xlsx"
    assert loaded.first_sheet() == []


def test_unreadable_workbook_is_an_error_result(data_dir):
    (data_dir / "broken.xlsx").write_text("not a workbook", encoding="utf-8")
    loaded = load_workbook("broken.xlsx")
    assert not loaded.ok
    assert loaded.message.startswith("Could not read broken.xlsx")


def test_geometry_must_be_a_feature_collection(data_dir):
    (data_dir / config.GEOJSON_FILE).write_text('{"type": "Point"}', encoding="utf-8")
    assert not load_geometry().ok


def test_load_indicator_applies_chart_config(assets):
    loaded, result = load_indicator(config.TURNOVER_FILE, "revenue")
    assert loaded.ok
    assert result.years == [2022, 2023, 2024]
    assert EU27 not in result.series
    assert result.series["Denmark"] == {2023: 30.0, 2024: 27.4}


def test_workbook_is_reloaded_when_file_changes(data_dir):
    write_workbook(data_dir / "x.xlsx", {"Sheet 1": [["GEO", 2020], ["A", 1.0]]})
    _, first = load_indicator("x.xlsx", "revenue")
    path = data_dir / "x.xlsx"
    write_workbook(path, {"Sheet 1": [["GEO", 2020], ["A", 2.0]]})
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))
    _, second = load_indicator("x.xlsx", "revenue")
    assert first.series == {"A": {2020: 1.0}}
    assert second.series == {"A": {2020: 2.0}}


def test_load_population(assets):
    loaded, data = load_population()
    assert loaded.ok
    assert data.years == [2022, 2023, 2024]
    assert data.countries == [EU27, "Belgium"]
    assert "Euro area - 20 countries" not in data.points
    assert 2022 not in data.points["Belgium"]
    points = data.points["Belgium"][2024]
    assert {(p.gender, p.age_group, p.value) for p in points} == {
        ("Male", "16-24", 95.0),
        ("Female", "16-24", 96.5),
        ("Male", "55-74", 61.0),
    }


def test_activity_table_for_country(assets):
    loaded, grid = load_activity_table(config.ACTIVITIES_FILE, country="Belgium")
    assert loaded.ok
    assert grid.categories == ["Internet Banking", "E-mail"]
    assert [r.values for r in grid.rows] == [[40.0, 88.0], [55.0, None]]


def test_activity_table_age_groups(assets):
    _, grid = load_activity_table(config.SANKEY_FILE)
    assert [r.group for r in grid.rows] == ["Individuals, 16 to 24 years old", "Individuals, 25 to 54 years old"]


def test_activity_countries_skip_aggregates(assets):
    assert activity_countries() == ["Belgium", "Germany"]


def test_short_age_label():
    assert short_age_label("Individuals, 16 to 24 years old") == "16-24"
    assert short_age_label("All individuals") == "All individuals"
