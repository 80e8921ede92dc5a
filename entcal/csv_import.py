"""Bulk event submission from CSV spreadsheets."""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Optional

from entcal.models import Event, EventStatus

logger = logging.getLogger(__name__)

# Accepted header spellings for each field, first match wins.
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "event", "name", "event name"),
    "description": ("description", "details", "info"),
    "date": ("date", "event date", "event_date"),
    "time": ("time", "event time", "event_time"),
    "venue": ("venue", "venue name", "location"),
    "address": ("address", "street"),
    "city": ("city",),
    "state": ("state",),
    "zip_code": ("zip", "zip code", "zipcode"),
    "price": ("price", "admission", "cost"),
    "dress_code": ("dress code", "dresscode", "dress_code"),
    "age_limit": ("age limit", "age_limit", "age"),
    "phone": ("phone", "phone number", "contact"),
    "image_url": ("image", "image url", "photo"),
}

REQUIRED_FIELDS = ("title", "date", "city", "state")

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def parse_csv(text: str) -> list[dict[str, str]]:
    """Read CSV text into rows keyed by lowercased, stripped header names."""
    reader = csv.reader(io.StringIO(text))
    lines = [line for line in reader if any(cell.strip() for cell in line)]
    if len(lines) < 2:
        return []

    headers = [h.strip().lower() for h in lines[0]]
    rows = []
    for values in lines[1:]:
        values = [v.strip() for v in values]
        rows.append({h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)})
    return rows


def _pick(row: dict[str, str], field_name: str) -> Optional[str]:
    for alias in COLUMN_ALIASES[field_name]:
        if row.get(alias):
            return row[alias]
    return None


def _parse_price(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        return float(raw.lstrip("$").replace(",", ""))
    except ValueError:
        logger.debug("Ignoring unparseable price %r", raw)
        return None


def _is_valid(raw: str, formats: tuple[str, ...]) -> bool:
    """True if *raw* is in one of *formats*, zero-padded, so string order is date order."""
    for fmt in formats:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        if parsed.strftime(fmt) == raw:
            return True
    return False


def row_to_event(row: dict[str, str], organizer_id: Optional[str] = None) -> Optional[Event]:
    """Map one CSV row onto a pending event.

    Returns None when a required field is missing, or when the date is not
    YYYY-MM-DD or the time is not HH:MM.
    """
    values = {name: _pick(row, name) for name in COLUMN_ALIASES}
    missing = [name for name in REQUIRED_FIELDS if not values[name]]
    if missing:
        logger.warning("Skipping CSV row missing %s: %r", ", ".join(missing), row)
        return None

    if not _is_valid(values["date"], (DATE_FORMAT,)):
        logger.warning("Skipping CSV row with bad date %r", values["date"])
        return None
    if values["time"] and not _is_valid(values["time"], TIME_FORMATS):
        logger.warning("Skipping CSV row with bad time %r", values["time"])
        return None

    return Event(
        title=values["title"],
        date=values["date"],
        time=values["time"],
        description=values["description"],
        venue=values["venue"],
        address=values["address"] or "",
        city=values["city"],
        state=values["state"],
        zip_code=values["zip_code"],
        price=_parse_price(values["price"]),
        dress_code=values["dress_code"],
        age_limit=values["age_limit"],
        phone=values["phone"],
        image_url=values["image_url"],
        organizer_id=organizer_id,
        status=EventStatus.PENDING,
        featured=False,
    )


def import_csv(text: str, organizer_id: Optional[str] = None) -> tuple[list[Event], int]:
    """Convert CSV text into pending events owned by *organizer_id*.

    Returns:
        (events, number_of_rows_skipped)

    Raises:
        ValueError: if the text holds no data rows at all.
    """
    rows = parse_csv(text)
    if not rows:
        raise ValueError("No valid data found in CSV file")

    events: list[Event] = []
    skipped = 0
    for row in rows:
        event = row_to_event(row, organizer_id)
        if event is None:
            skipped += 1
        else:
            events.append(event)

    logger.info("CSV import: %d event(s) parsed, %d row(s) skipped", len(events), skipped)
    return events, skipped
