from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from eudigital.cells import Number, as_float, parse_cell
from eudigital.config import ExtractionConfig, YearRange


logger = logging.getLogger(__name__)

RawSheet = List[List[object]]
EntitySeries = Dict[str, Dict[int, float]]


@dataclass
class ExtractionResult:
    series: EntitySeries = field(default_factory=dict)
    years: List[int] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.series


@dataclass(frozen=True)
class SheetMetadata:
    gender: str
    age_start: int
    age_end: int

    @property
    def age_group(self) -> str:
        return f"{self.age_start}-{self.age_end}"


@dataclass
class GridRow:
    entity: str
    group: str
    values: List[Optional[float]]


@dataclass
class CategoryGrid:
    categories: List[str] = field(default_factory=list)
    rows: List[GridRow] = field(default_factory=list)


def _is_row(row: object) -> bool:
    return isinstance(row, (list, tuple))


def cell_text(value: object) -> Optional[str]:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    s = str(value).strip()
    return s or None


def parse_year(value: object, year_range: Optional[YearRange] = None) -> Optional[int]:
    """Parse a header cell as a year; None unless it is an integer inside `year_range`."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    year: Optional[int] = None
    if isinstance(value, (int, np.integer)):
        year = int(value)
    elif isinstance(value, (float, np.floating)):
        if np.isfinite(value) and float(value).is_integer():
            year = int(value)
    else:
        match = re.fullmatch(r"(\d+)(?:\.0+)?", str(value).strip())
        if match:
            year = int(match.group(1))
    if year is None:
        return None
    if year_range is not None and year not in year_range:
        return None
    return year


def scan_year_columns(header: object, year_range: YearRange, start: int = 1) -> List[Tuple[int, int]]:
    if not _is_row(header):
        return []
    out: List[Tuple[int, int]] = []
    seen = set()
    for idx in range(start, len(header)):
        year = parse_year(header[idx], year_range)
        if year is None or year in seen:
            continue
        seen.add(year)
        out.append((idx, year))
    return out


def correct_name(name: str, corrections: Mapping[str, str]) -> str:
    stripped = name.strip()
    return corrections.get(stripped, stripped)


def find_header_row(sheet: Sequence[object], keywords: Iterable[str], search_rows: int = 25) -> Optional[int]:
    """First row with a cell containing one of `keywords` (case-sensitive).

    Eurostat metadata blocks carry rows like "Time frequency" above the
    ``TIME`` header, so matching is per cell and respects case.
    """
    keywords = list(keywords)
    for idx in range(min(search_rows, len(sheet))):
        row = sheet[idx]
        if not _is_row(row):
            continue
        cells = [text for text in (cell_text(c) for c in row) if text is not None]
        if any(k in text for text in cells for k in keywords):
            return idx
    return None


def extract_series(
    sheet: Sequence[object],
    config: ExtractionConfig,
    *,
    header_row: int = 0,
    label_col: int = 0,
    first_data_row: Optional[int] = None,
    year: Optional[int] = None,
    keep_empty: bool = False,
) -> ExtractionResult:
    """Convert a raw sheet into an entity -> {year: value} mapping.

    Year columns are header cells right of the label column that parse as
    integers within ``config.year_range``. Each data row contributes only the
    cells that parse as finite numbers. Rows labelled with a name in
    ``config.exclude`` are skipped. When a name repeats, later rows overwrite
    earlier values year by year and the name is reported in ``duplicates``.
    A missing header or one without year columns gives an empty result.
    """
    result = ExtractionResult()
    if not sheet or header_row < 0 or header_row >= len(sheet):
        return result

    year_cols = scan_year_columns(sheet[header_row], config.year_range, start=label_col + 1)
    if not year_cols:
        logger.debug("no year columns found in header row %s", header_row)
        return result
    result.years = [y for _, y in year_cols]
    if year is not None:
        year_cols = [(c, y) for c, y in year_cols if y == year]

    seen = set()
    start = header_row + 1 if first_data_row is None else first_data_row
    for row in sheet[start:]:
        if not _is_row(row) or len(row) <= label_col:
            continue
        label = cell_text(row[label_col])
        if label is None:
            continue
        if label in config.exclude:
            result.excluded.append(label)
            continue
        name = correct_name(label, config.corrections)
        if name in config.exclude:
            result.excluded.append(label)
            continue

        values: Dict[int, float] = {}
        for col, y in year_cols:
            cell = parse_cell(row[col] if col < len(row) else None)
            if isinstance(cell, Number):
                values[y] = cell.value

        if name in seen:
            result.duplicates.append(name)
        seen.add(name)
        if values:
            result.series.setdefault(name, {}).update(values)
        elif keep_empty:
            result.series.setdefault(name, {})

    if result.duplicates:
        logger.warning("duplicate entity labels, later rows win: %s", sorted(set(result.duplicates)))
    return result


def series_for_year(series: EntitySeries, year: int) -> Dict[str, float]:
    return {name: values[year] for name, values in series.items() if year in values}


def series_to_frame(series: EntitySeries) -> pd.DataFrame:
    records = [
        {"entity": name, "year": int(y), "value": float(v)}
        for name, values in series.items()
        for y, v in values.items()
    ]
    if not records:
        return pd.DataFrame(columns=["entity", "year", "value"])
    return pd.DataFrame(records).sort_values(["entity", "year"]).reset_index(drop=True)


def years_with_data(series: EntitySeries, entity: str, years: Iterable[int]) -> List[int]:
    values = series.get(entity) or {}
    return [y for y in years if y in values]


def parse_individual_type(rows: Sequence[object]) -> Optional[SheetMetadata]:
    """Read gender and age band from an export's metadata block.

    Eurostat multi-sheet exports carry a row like
    ``["Individual type", "Males 16 to 24 years"]`` above the data table.
    """
    type_row = None
    for row in rows:
        if _is_row(row) and any("Individual type" in str(c) for c in row if cell_text(c) is not None):
            type_row = row
            break
    if type_row is None:
        return None

    description = None
    for c in type_row:
        text = cell_text(c)
        if text and ("Males" in text or "Females" in text):
            description = text
            break
    if description is None:
        return None

    gender = "Male" if "Males" in description else "Female"
    match = re.search(r"(\d+)\s+to\s+(\d+)", description)
    if not match:
        logger.debug("could not parse age group from %r", description)
        return None
    return SheetMetadata(gender=gender, age_start=int(match.group(1)), age_end=int(match.group(2)))


def extract_category_grid(
    sheet: Sequence[object],
    *,
    header_row: int,
    first_col: int = 2,
    stride: int = 2,
    entity_col: int = 0,
    group_col: int = 1,
    first_data_row: Optional[int] = None,
    row_filter: Optional[Callable[[str, str], bool]] = None,
    label_map: Optional[Mapping[str, str]] = None,
) -> CategoryGrid:
    """Read a category x group table whose value columns are spaced by `stride`.

    Category labels come from ``header_row`` at ``first_col``,
    ``first_col + stride``, ... (the gaps hold Eurostat flag columns).
    Each data row yields its entity, group label and one value per category;
    cells that do not parse as numbers become None.
    """
    grid = CategoryGrid()
    if not sheet or header_row < 0 or header_row >= len(sheet) or not _is_row(sheet[header_row]):
        return grid

    header = sheet[header_row]
    columns: List[int] = []
    for idx in range(first_col, len(header), max(1, stride)):
        label = cell_text(header[idx])
        if label is None:
            continue
        columns.append(idx)
        grid.categories.append((label_map or {}).get(label, label))

    start = header_row + 1 if first_data_row is None else first_data_row
    for row in sheet[start:]:
        if not _is_row(row):
            continue
        entity = cell_text(row[entity_col]) if len(row) > entity_col else None
        group = cell_text(row[group_col]) if len(row) > group_col else None
        if row_filter is not None and not row_filter(entity or "", group or ""):
            continue
        if group is None:
            continue
        values = [as_float(row[c]) if c < len(row) else None for c in columns]
        grid.rows.append(GridRow(entity=entity or "", group=group, values=values))
    return grid
