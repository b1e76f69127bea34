from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd


# Eurostat writes ":" for "not available"; flag letters (u, b, e, bu...) may
# also land in value columns and are reported as invalid rather than missing.
MISSING_TOKENS = {"", ":", "nan", "none", "null", "<na>", "n/a"}


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Missing:
    pass


@dataclass(frozen=True)
class Invalid:
    raw: str


CellValue = Union[Number, Missing, Invalid]

MISSING = Missing()


def parse_cell(value: object) -> CellValue:
    """Classify one spreadsheet cell as a finite number, missing, or invalid."""
    if value is None or value is pd.NA:
        return MISSING
    if isinstance(value, (bool, np.bool_)):
        return Invalid(str(value))
    if isinstance(value, (int, float, np.integer, np.floating)):
        out = float(value)
        if math.isnan(out):
            return MISSING
        if math.isinf(out):
            return Invalid(str(value))
        return Number(out)

    s = str(value).strip()
    if s.lower() in MISSING_TOKENS:
        return MISSING
    try:
        out = float(s)
    except ValueError:
        return Invalid(s)
    if math.isnan(out) or math.isinf(out):
        return Invalid(s)
    return Number(out)


def as_float(value: object) -> Optional[float]:
    cell = parse_cell(value)
    if isinstance(cell, Number):
        return cell.value
    return None
