from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional


DATA_DIR = Path(__file__).resolve().parents[1] / "assets"

CHOROPLETH_FILE = "tin00134_page_spreadsheet.xlsx"
BUYERS_FILE = "tin00096.xlsx"
ENTERPRISES_FILE = "tin00111.xlsx"
TURNOVER_FILE = "tin00110.xlsx"
NON_USE_FILE = "tin00093_page_spreadsheet.xlsx"
POPULATION_FILE = "internet_population.xlsx"
ACTIVITIES_FILE = "internet_activities_2024.xlsx"
SANKEY_FILE = "sankey_activities.xlsx"
GEOJSON_FILE = "europe.geojson"

GEO_NAME_PROPERTY = "NAME"

EU27_LABEL = "European Union - 27 countries (from 2020)"
EU_AGGREGATE_LABELS = frozenset({EU27_LABEL, "European Union", "GEO", "GEO (Labels)"})
EU_AGGREGATE_PREFIXES = ("european union", "euro area")

# Footer/legend rows found below the country block in multi-sheet exports.
NON_ENTITY_LABELS = frozenset({":", "GEO (Labels)", "Special value", "Observation flags:", "b", "bu", "e", "u"})

# Source label -> canonical label. Canonical labels never appear as keys, so
# applying the table twice gives the same result as applying it once.
NAME_CORRECTIONS: Dict[str, str] = {
    "Czech Republic": "Czechia",
    "Turkey": "Türkiye",
    "The former Yugoslav Republic of Macedonia": "North Macedonia",
    "Germany (until 1990 former territory of the FRG)": "Germany",
    "Kosovo (under United Nations Security Council Resolution 1244/99)": "Kosovo",
    "Republic of Moldova": "Moldova",
}

DEFAULT_YEAR = 2024
DEFAULT_PYRAMID_COUNTRY = EU27_LABEL
DEFAULT_RADAR_COUNTRY = "Belgium"
ANIMATION_INTERVAL_SECONDS = 1.0

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@dataclass(frozen=True)
class YearRange:
    start: int = 2013
    end: int = 2024

    def __contains__(self, year: object) -> bool:
        return isinstance(year, int) and self.start <= year <= self.end


@dataclass(frozen=True)
class ExtractionConfig:
    year_range: YearRange = field(default_factory=YearRange)
    exclude: FrozenSet[str] = frozenset()
    corrections: Mapping[str, str] = field(default_factory=dict)


BROAD_YEARS = YearRange(2013, 2024)
RECENT_YEARS = YearRange(2020, 2024)

CHART_CONFIGS: Dict[str, ExtractionConfig] = {
    "choropleth": ExtractionConfig(year_range=BROAD_YEARS, corrections=NAME_CORRECTIONS),
    "bubble": ExtractionConfig(year_range=RECENT_YEARS, exclude=EU_AGGREGATE_LABELS, corrections=NAME_CORRECTIONS),
    "pyramid": ExtractionConfig(year_range=BROAD_YEARS, exclude=NON_ENTITY_LABELS, corrections=NAME_CORRECTIONS),
    "diverging": ExtractionConfig(year_range=RECENT_YEARS, exclude=EU_AGGREGATE_LABELS, corrections=NAME_CORRECTIONS),
    "revenue": ExtractionConfig(year_range=BROAD_YEARS, exclude=EU_AGGREGATE_LABELS, corrections=NAME_CORRECTIONS),
}


ACTIVITY_DISPLAY_NAMES: Dict[str, str] = {
    "Internet use: Internet banking": "Internet Banking",
    "Internet use: doing an online course (of any subject)": "Online Learning",
    "Internet use: sending/receiving e-mails": "E-mail",
    "Internet use: participating in social networks (creating user profile, posting messages or other contributions to facebook, twitter, etc.)": "Social Media",
    "Internet banking": "Internet Banking",
    "Doing an online course": "Online Learning",
    "Sending/receiving emails": "E-mail",
    "Participating in social networks (creating user profile, posting messages or other contributions to Facebook, Twitter, etc.)": "Social Media",
}


def resolve_data_dir() -> Path:
    env = os.environ.get("EUDIGITAL_DATA_DIR")
    return Path(env) if env else DATA_DIR


def chart_config(chart: str) -> ExtractionConfig:
    return CHART_CONFIGS.get(chart, ExtractionConfig(corrections=NAME_CORRECTIONS))


def animation_interval() -> float:
    raw = os.environ.get("EUDIGITAL_ANIMATION_INTERVAL")
    try:
        return max(0.0, float(raw)) if raw else ANIMATION_INTERVAL_SECONDS
    except ValueError:
        return ANIMATION_INTERVAL_SECONDS


def cors_origins() -> List[str]:
    raw = os.environ.get("EUDIGITAL_CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or os.environ.get("EUDIGITAL_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
