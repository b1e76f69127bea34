from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from eudigital.config import ANIMATION_INTERVAL_SECONDS


OVERVIEW = "overview"
FOCUSED = "focused"


@dataclass(frozen=True)
class ChartSelection:
    year: Optional[int] = None
    country: Optional[str] = None
    focus: List[str] = field(default_factory=list)


def as_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def resolve_year(requested: Optional[int], available: List[int], default: Optional[int] = None) -> Optional[int]:
    """Pick the requested year if available, else the default, else the latest."""
    if not available:
        return None
    if requested in available:
        return requested
    if default in available:
        return default
    return available[-1]


def normalize_selection(
    raw: Optional[dict],
    *,
    available_years: Optional[Iterable[int]] = None,
    available_entities: Optional[Iterable[str]] = None,
    default_year: Optional[int] = None,
    default_country: Optional[str] = None,
) -> ChartSelection:
    raw = raw or {}
    years = sorted(set(available_years or []))
    entities = list(available_entities or [])

    year = resolve_year(as_int(raw.get("year")), years, default_year)

    country = (raw.get("country") or "").strip() or None
    if entities and country not in entities:
        country = default_country if default_country in entities else entities[0]
    elif country is None:
        country = default_country

    focus: List[str] = []
    for item in raw.get("focus") or []:
        if item is None:
            continue
        name = str(item).strip()
        if not name or name in focus:
            continue
        if entities and name not in entities:
            continue
        focus.append(name)

    return ChartSelection(year=year, country=country, focus=focus)


class YearAnimator:
    """Play/pause stepping over an ordered list of years.

    The page owns one instance per chart and calls ``tick`` once per
    ``interval`` while ``playing`` is set.
    """

    def __init__(self, years: Iterable[int], current: Optional[int] = None, interval: float = ANIMATION_INTERVAL_SECONDS):
        self.years: List[int] = list(years)
        self.interval = interval
        self.playing = False
        self.current: Optional[int] = current if current in self.years else (self.years[0] if self.years else None)

    def set_years(self, years: Iterable[int]) -> None:
        self.years = list(years)
        if self.current not in self.years:
            self.current = self.years[0] if self.years else None
            self.playing = False

    def select(self, year: int) -> None:
        if year in self.years:
            self.current = year

    def play(self) -> None:
        if not self.years:
            return
        self.current = self.years[0]
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def toggle(self) -> None:
        if self.playing:
            self.pause()
        else:
            self.play()

    def tick(self) -> Optional[int]:
        if not self.playing or self.current is None:
            return self.current
        idx = self.years.index(self.current)
        if idx < len(self.years) - 1:
            self.current = self.years[idx + 1]
        else:
            self.playing = False
        return self.current


class DrillDown:
    """Overview/focused state for charts that narrow to chosen entities on click."""

    def __init__(self) -> None:
        self.focus: List[str] = []

    @property
    def state(self) -> str:
        return FOCUSED if self.focus else OVERVIEW

    def focus_on(self, entity: str) -> None:
        self.focus = [entity]

    def toggle(self, entity: str) -> None:
        if entity in self.focus:
            self.focus = [e for e in self.focus if e != entity]
        else:
            self.focus = self.focus + [entity]

    def reset(self) -> None:
        self.focus = []
