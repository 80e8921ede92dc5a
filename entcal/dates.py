"""Calendar date ranges and date bucketing for week, month and rolling views."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Optional, Union

from entcal.models import Event

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
ROLLING_DAYS = 60  # fixed look-ahead of the rolling view
MIN_GRID_CELLS = 35  # month grids are never shorter than five rows

DayLike = Union[date, datetime]


def _consecutive(anchor: DayLike, count: int) -> list[date]:
    start = _as_date(anchor)
    return [start + timedelta(days=i) for i in range(count)]


def _as_date(value: DayLike) -> date:
    return value.date() if isinstance(value, datetime) else value


# ------------------------------------------------------------------
# Date ranges
# ------------------------------------------------------------------

def week_dates(anchor: DayLike) -> list[date]:
    """Seven consecutive days starting at *anchor* (not aligned to a week start)."""
    return _consecutive(anchor, WEEK_DAYS)


def rolling_dates(anchor: DayLike) -> list[date]:
    """Sixty consecutive days starting at *anchor*."""
    return _consecutive(anchor, ROLLING_DAYS)


def month_dates(year: int, month_index: int) -> list[date]:
    """Cells of the displayed grid for a month.

    *month_index* is zero-based (0 = January); values outside 0-11 roll into
    the neighbouring years. The grid starts on the Sunday on or before the
    1st, always holds whole weeks, reaches at least the Saturday after the
    last day of the month, and has at least ``MIN_GRID_CELLS`` cells.
    """
    year += month_index // 12
    month = month_index % 12 + 1

    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    # date.weekday(): Monday=0 .. Sunday=6; shift so Sunday starts the row.
    current = first - timedelta(days=(first.weekday() + 1) % 7)

    cells: list[date] = []
    while current <= last or not _is_sunday(current) or len(cells) < MIN_GRID_CELLS:
        cells.append(current)
        current += timedelta(days=1)
    return cells


def _is_sunday(day: date) -> bool:
    return day.weekday() == 6


# ------------------------------------------------------------------
# Navigation
# ------------------------------------------------------------------

def shift_week(anchor: DayLike, weeks: int) -> date:
    """Move *anchor* by a number of weeks (negative moves back)."""
    return _as_date(anchor) + timedelta(weeks=weeks)


def shift_month(anchor: DayLike, months: int) -> date:
    """Move *anchor* by whole months, clamping the day to the target month."""
    anchor = _as_date(anchor)
    index = anchor.year * 12 + (anchor.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# ------------------------------------------------------------------
# Bucketing
# ------------------------------------------------------------------

def date_key(day: DayLike) -> str:
    """Bucket key for a generated calendar day: '2026-03-15'."""
    return _as_date(day).isoformat()


def group_by_date(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group events under their ``date`` string.

    Keys are used verbatim, with no normalization, so dates must already be
    canonical ``YYYY-MM-DD``. Order within each bucket follows input order.
    """
    grouped: dict[str, list[Event]] = {}
    for event in events:
        grouped.setdefault(event.date, []).append(event)
    logger.debug("Grouped events into %d day bucket(s)", len(grouped))
    return grouped


def is_same_day(a: DayLike, b: DayLike) -> bool:
    """Compare calendar days (year, month, day) and ignore time of day."""
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def is_today(day: DayLike, today: Optional[date] = None) -> bool:
    """Whether *day* falls on today's local calendar date."""
    return is_same_day(day, today or date.today())


# ------------------------------------------------------------------
# Display helpers
# ------------------------------------------------------------------

def format_date(iso_date: str) -> str:
    """Convert '2024-06-01' to 'Sat, Jun 1'."""
    dt = datetime.strptime(iso_date, "%Y-%m-%d")
    return f"{dt.strftime('%a, %b')} {dt.day}"


def format_time(time_24: Optional[str]) -> str:
    """Convert '19:30' to '7:30 PM'; empty string when there is no time."""
    if not time_24:
        return ""
    dt = datetime.strptime(time_24[:5], "%H:%M")
    return dt.strftime("%I:%M %p").lstrip("0")
