"""Temporal proximity: which catalog festival comes next.

Distances are whole calendar months, computed circularly so December looks
forward into January. Festival dates inside a month are not modelled; a
festival in the current month counts as passed once the reference day is
past `festival_past_day_threshold`.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass

from app.core.config import get_settings
from app.features.festivals.catalog import FestivalRecord

MONTHS = {
    "jan": 0,
    "feb": 1,
    "mar": 2,
    "apr": 3,
    "may": 4,
    "jun": 5,
    "jul": 6,
    "aug": 7,
    "sep": 8,
    "oct": 9,
    "nov": 10,
    "dec": 11,
}


def utc_today() -> datetime.date:
    """Current UTC date, the same day boundary the forecast and tools use."""
    return datetime.datetime.now(datetime.UTC).date()


@dataclass(frozen=True)
class NearestFestival:
    """The closest upcoming festival and how far away it is."""

    festival: FestivalRecord
    months_away: int
    is_imminent: bool


def month_number(month: str) -> int | None:
    """Map a month field to a 0-based month number.

    Ranges such as "Oct-Nov" use their start month. Full month names are
    accepted through their three-letter prefix. Unknown values return None.
    """
    start = month.split("-", 1)[0].strip().lower()
    return MONTHS.get(start[:3]) if len(start) >= 3 else None


def months_until(festival_month: int, reference: datetime.date, past_day_threshold: int) -> int:
    """Forward distance in months from `reference` to `festival_month`."""
    current = reference.month - 1
    if festival_month >= current:
        distance = festival_month - current
    else:
        distance = (12 - current) + festival_month

    if distance == 0 and reference.day > past_day_threshold:
        distance = 12
    return distance


def find_nearest(
    catalog: Sequence[FestivalRecord],
    reference: datetime.date | None = None,
) -> NearestFestival | None:
    """Find the nearest upcoming festival.

    Ties keep the earliest record in catalog order.

    Args:
        catalog: Loaded festival records.
        reference: Date to measure from (defaults to the UTC date).

    Returns:
        The nearest festival, or None for an empty catalog or one with no
        parseable months.
    """
    settings = get_settings()
    reference = reference or utc_today()

    nearest: FestivalRecord | None = None
    min_distance: int | None = None

    for festival in catalog:
        festival_month = month_number(festival.month)
        if festival_month is None:
            continue
        distance = months_until(festival_month, reference, settings.festival_past_day_threshold)
        if min_distance is None or distance < min_distance:
            min_distance = distance
            nearest = festival

    if nearest is None or min_distance is None:
        return None

    return NearestFestival(
        festival=nearest,
        months_away=min_distance,
        is_imminent=min_distance <= settings.festival_imminent_months,
    )


def upcoming_festivals(
    catalog: Sequence[FestivalRecord],
    count: int = 5,
    reference: datetime.date | None = None,
) -> list[NearestFestival]:
    """Build a festival calendar for the coming months.

    Resolves the nearest festival from the first day of each of the next
    `count` months and keeps each festival name once.
    """
    reference = reference or utc_today()
    calendar: list[NearestFestival] = []
    seen: set[str] = set()

    for offset in range(count):
        month_index = reference.month - 1 + offset
        month_start = datetime.date(reference.year + month_index // 12, month_index % 12 + 1, 1)
        nearest = find_nearest(catalog, month_start)
        if nearest is None or nearest.festival.name in seen:
            continue
        seen.add(nearest.festival.name)
        calendar.append(nearest)

    return calendar
