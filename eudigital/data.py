from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from eudigital import config
from eudigital.extract import (
    CategoryGrid,
    ExtractionResult,
    RawSheet,
    SheetMetadata,
    extract_category_grid,
    extract_series,
    find_header_row,
    parse_individual_type,
)


logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"


@dataclass
class LoadResult:
    source: str
    status: str = STATUS_OK
    message: Optional[str] = None
    sheets: Dict[str, RawSheet] = field(default_factory=dict)
    geojson: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def first_sheet(self) -> RawSheet:
        for rows in self.sheets.values():
            return rows
        return []


@dataclass
class PyramidPoint:
    gender: str
    age_group: str
    age_start: int
    age_end: int
    value: float


@dataclass
class PopulationData:
    years: List[int] = field(default_factory=list)
    countries: List[str] = field(default_factory=list)
    points: Dict[str, Dict[int, List[PyramidPoint]]] = field(default_factory=dict)


def source_path(name: str) -> Path:
    return config.resolve_data_dir() / name


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path), path.stat().st_mtime


def frame_to_rows(df: pd.DataFrame) -> RawSheet:
    cleaned = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in cleaned.itertuples(index=False, name=None)]


# ---------------- Readers ----------------
@lru_cache(maxsize=16)
def _read_workbook_cached(path: str, mtime: float) -> Dict[str, RawSheet]:
    frames = pd.read_excel(path, sheet_name=None, header=None)
    logger.debug("read %s (%d sheets)", path, len(frames))
    return {str(name): frame_to_rows(df) for name, df in frames.items()}


@lru_cache(maxsize=4)
def _read_geojson_cached(path: str, mtime: float) -> dict:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def load_workbook(name: str) -> LoadResult:
    """Read every sheet of an xlsx asset; failures come back as an error result."""
    path = source_path(name)
    if not path.exists():
        logger.warning("asset not found: %s", path)
        return LoadResult(source=name, status=STATUS_ERROR, message=f"File not found: {name}")
    try:
        sheets = _read_workbook_cached(*file_signature(path))
    except Exception as exc:
        logger.exception("failed to read workbook %s", path)
        return LoadResult(source=name, status=STATUS_ERROR, message=f"Could not read {name}: {exc}")
    return LoadResult(source=name, sheets=sheets)


def load_geometry(name: str = config.GEOJSON_FILE) -> LoadResult:
    path = source_path(name)
    if not path.exists():
        logger.warning("geometry not found: %s", path)
        return LoadResult(source=name, status=STATUS_ERROR, message=f"File not found: {name}")
    try:
        geo = _read_geojson_cached(*file_signature(path))
    except Exception as exc:
        logger.exception("failed to read geometry %s", path)
        return LoadResult(source=name, status=STATUS_ERROR, message=f"Could not read {name}: {exc}")
    if not isinstance(geo, dict) or not isinstance(geo.get("features"), list):
        return LoadResult(source=name, status=STATUS_ERROR, message=f"{name} is not a feature collection")
    return LoadResult(source=name, geojson=geo)


def clear_caches() -> None:
    _read_workbook_cached.cache_clear()
    _read_geojson_cached.cache_clear()


# ---------------- Dataset loaders ----------------
def load_indicator(name: str, chart: str) -> Tuple[LoadResult, ExtractionResult]:
    """Load a single-sheet indicator export (label column + one column per year)."""
    loaded = load_workbook(name)
    if not loaded.ok:
        return loaded, ExtractionResult()
    result = extract_series(loaded.first_sheet(), config.chart_config(chart))
    logger.debug("%s: %d entities, years %s", name, len(result.series), result.years)
    return loaded, result


def _is_aggregate(label: str) -> bool:
    return label.lower().startswith(config.EU_AGGREGATE_PREFIXES)


def load_population(name: str = config.POPULATION_FILE) -> Tuple[LoadResult, PopulationData]:
    """Load the gender x age-band workbook behind the population pyramid.

    The first sheet is a summary; every following sheet is one gender/age
    band described in its metadata block, with a ``TIME`` header row.
    """
    loaded = load_workbook(name)
    data = PopulationData()
    if not loaded.ok:
        return loaded, data

    cfg = config.chart_config("pyramid")
    years = set()
    countries = set()
    for sheet_name, rows in list(loaded.sheets.items())[1:]:
        metadata: Optional[SheetMetadata] = parse_individual_type(rows[:9])
        header_row = find_header_row(rows, ["TIME"], search_rows=len(rows))
        if metadata is None or header_row is None:
            logger.debug("skipping sheet %s: no metadata or header", sheet_name)
            continue
        result = extract_series(rows, cfg, header_row=header_row)
        years.update(result.years)
        for country, values in result.series.items():
            if _is_aggregate(country) and country != config.EU27_LABEL:
                continue
            if country != config.EU27_LABEL:
                countries.add(country)
            by_year = data.points.setdefault(country, {})
            for year, value in values.items():
                by_year.setdefault(year, []).append(
                    PyramidPoint(
                        gender=metadata.gender,
                        age_group=metadata.age_group,
                        age_start=metadata.age_start,
                        age_end=metadata.age_end,
                        value=value,
                    )
                )

    data.years = sorted(years)
    data.countries = ([config.EU27_LABEL] if config.EU27_LABEL in data.points else []) + sorted(countries)
    return loaded, data


def short_age_label(label: str) -> str:
    match = re.search(r"(\d+)\s+to\s+(\d+)", label)
    if not match:
        return label
    return f"{match.group(1)}-{match.group(2)}"


def load_activity_table(name: str, *, country: Optional[str] = None) -> Tuple[LoadResult, CategoryGrid]:
    """Load an activities-by-age-group export (activities on row 1, every second column)."""
    loaded = load_workbook(name)
    if not loaded.ok:
        return loaded, CategoryGrid()

    if country:
        needle = country.lower()

        def row_filter(entity: str, group: str) -> bool:
            return needle in entity.lower()

    else:

        def row_filter(entity: str, group: str) -> bool:
            return "Individuals" in group

    grid = extract_category_grid(
        loaded.first_sheet(),
        header_row=1,
        first_col=2,
        stride=2,
        first_data_row=2 if country else 3,
        row_filter=row_filter,
        label_map=config.ACTIVITY_DISPLAY_NAMES,
    )
    return loaded, grid


def activity_countries(name: str = config.ACTIVITIES_FILE) -> List[str]:
    loaded = load_workbook(name)
    if not loaded.ok:
        return []
    seen: List[str] = []
    for row in loaded.first_sheet()[2:]:
        if not row or row[0] is None:
            continue
        label = str(row[0]).strip()
        if label and label not in seen and not _is_aggregate(label) and label not in config.NON_ENTITY_LABELS:
            seen.append(label)
    return seen
