"""Festival catalog loader.

Parses the festival dataset into immutable `FestivalRecord`s once per process.
The dataset is a comma-delimited file whose header is::

    festival_name,region,month,date_2026,type,public_holiday,
    top_selling_items,demand_level,estimated_demand_score

`top_selling_items` is itself a comma-separated list inside a quoted field.
A read or parse failure yields an empty catalog; callers treat that as
"no forecast available".
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

CATALOG_COLUMNS = (
    "festival_name",
    "region",
    "month",
    "date_2026",
    "type",
    "public_holiday",
    "top_selling_items",
    "demand_level",
    "estimated_demand_score",
)

_TRUTHY = {"yes", "y", "true", "1"}


class DemandLevel(str, Enum):
    """Seasonal demand level of a festival."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, raw: str | None) -> DemandLevel:
        """Parse a dataset value case-insensitively, defaulting to Low."""
        value = (raw or "").strip().lower()
        for level in cls:
            if level.value.lower() == value:
                return level
        return cls.LOW


@dataclass(frozen=True)
class FestivalRecord:
    """One festival from the catalog. Unique by (name, month)."""

    name: str
    region: str
    month: str
    date: str
    type: str
    is_public_holiday: bool
    top_selling_items: tuple[str, ...]
    demand_level: DemandLevel
    demand_score: int


def parse_csv_line(line: str) -> list[str]:
    """Split one dataset line on commas that are not inside double quotes.

    Fields are whitespace-trimmed and unquoted.
    """
    row = next(csv.reader([line], skipinitialspace=True), [])
    return [field.strip() for field in row]


def split_items(raw: str) -> tuple[str, ...]:
    """Split a top-selling-items field into trimmed item names.

    Empty entries and case-insensitive repeats are dropped, keeping order.
    """
    items: list[str] = []
    seen: set[str] = set()
    for item in raw.split(","):
        name = item.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            items.append(name)
    return tuple(items)


def _parse_int(raw: str) -> int:
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return 0


def record_from_fields(fields: list[str]) -> FestivalRecord | None:
    """Build a record from parsed fields.

    Short rows are padded with empty strings so optional columns are simply
    blank. Rows without a festival name are skipped.
    """
    padded = fields + [""] * (len(CATALOG_COLUMNS) - len(fields))
    values = dict(zip(CATALOG_COLUMNS, padded, strict=False))
    if not values["festival_name"]:
        return None

    return FestivalRecord(
        name=values["festival_name"],
        region=values["region"],
        month=values["month"],
        date=values["date_2026"],
        type=values["type"],
        is_public_holiday=values["public_holiday"].lower() in _TRUTHY,
        top_selling_items=split_items(values["top_selling_items"]),
        demand_level=DemandLevel.parse(values["demand_level"]),
        demand_score=_parse_int(values["estimated_demand_score"]),
    )


def parse_catalog(lines: Iterable[str]) -> list[FestivalRecord]:
    """Parse dataset lines (header first) into de-duplicated records.

    The first occurrence of each (name, month) pair wins.
    """
    records: list[FestivalRecord] = []
    seen: set[tuple[str, str]] = set()

    iterator = iter(lines)
    next(iterator, None)  # header

    for line in iterator:
        if not line.strip():
            continue
        record = record_from_fields(parse_csv_line(line.rstrip("\r\n")))
        if record is None:
            continue
        key = (record.name, record.month)
        if key in seen:
            continue
        seen.add(key)
        records.append(record)

    return records


def load_festival_catalog(path: str | Path) -> tuple[FestivalRecord, ...]:
    """Read and parse the dataset at `path`.

    Returns:
        Records in file order, or an empty tuple if the file cannot be read
        or parsed.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            records = parse_catalog(fh)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.error(
            "festivals.catalog_load_failed",
            path=str(path),
            error=str(e),
            error_type=type(e).__name__,
        )
        return ()

    logger.info("festivals.catalog_loaded", path=str(path), festivals=len(records))
    return tuple(records)


@lru_cache
def get_festival_catalog() -> tuple[FestivalRecord, ...]:
    """Get the process-wide catalog, loading it on first use."""
    return load_festival_catalog(get_settings().festival_dataset_path)
