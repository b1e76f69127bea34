from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from eudigital.selection import DrillDown

APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


def button(at: AppTest, label: str):
    return next(b for b in at.button if b.label == label)


@pytest.fixture
def page(assets, monkeypatch):
    monkeypatch.setenv("EUDIGITAL_ANIMATION_INTERVAL", "0")
    at = AppTest.from_file(APP_PATH, default_timeout=60)
    at.run()
    return at


def test_page_renders_every_section(page):
    assert not page.exception
    assert len(page.error) == 0
    assert page.session_state["pyramid_year"] == 2022
    assert page.session_state["pyramid_animator"].years == [2022, 2023, 2024]


def test_play_advances_the_pyramid_year(page):
    button(page, "Play").click().run()
    assert not page.exception
    assert page.session_state["pyramid_animator"].current in (2023, 2024)


def test_revenue_focus_and_back_to_overview(page):
    drill = DrillDown()
    drill.focus_on("Belgium")
    page.session_state["revenue_drill"] = drill
    page.run()
    assert not page.exception
    assert any(b.label == "Back to all countries" for b in page.button)

    button(page, "Back to all countries").click().run()
    assert not page.exception
    assert page.session_state["revenue_drill"].focus == []
    assert page.session_state["revenue_chart_rev"] == 1
