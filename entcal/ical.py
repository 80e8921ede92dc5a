"""Single-event iCalendar export."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from entcal.models import Event

logger = logging.getLogger(__name__)

PRODID = "-//Entertainment Calendar//EN"
UID_DOMAIN = "entertainmentcal.com"
MIME_TYPE = "text/calendar"
CRLF = "\r\n"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


class DownloadSink(Protocol):
    """Anything that can save a payload under a filename for the user."""

    def save(self, filename: str, payload: str, mime_type: str): ...


class DirectorySink:
    """Download sink that writes files into a local directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def save(self, filename: str, payload: str, mime_type: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        # newline="" keeps the CRLF terminators intact on every platform.
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(payload)
        logger.info("Saved %s (%s, %d bytes)", path, mime_type, len(payload.encode()))
        return path


def _format_utc(moment: datetime) -> str:
    """Render as UTC basic format: 20240601T230000Z."""
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _local_datetime(iso_date: str, time_24: Optional[str]) -> datetime:
    """Combine a date and optional 'HH:MM' into a local-time datetime.

    The result is naive, so converting it to UTC interprets it in the
    machine's local timezone. Midnight is used when there is no time.
    """
    moment = datetime.strptime(iso_date, "%Y-%m-%d")
    if time_24:
        hours, minutes = time_24.split(":")[:2]
        moment = moment.replace(hour=int(hours), minute=int(minutes))
    return moment


def to_ical(event: Event, now: Optional[datetime] = None) -> str:
    """Serialize *event* as a single-event VCALENDAR document.

    Without an end date the event is a point in time: DTEND equals DTSTART.
    Only newlines are escaped in text values; commas and semicolons pass
    through unchanged.
    """
    start = _format_utc(_local_datetime(event.date, event.time))
    if event.end_date:
        end = _format_utc(_local_datetime(event.end_date, event.end_time))
    else:
        end = start
    stamp = _format_utc(now or datetime.now(timezone.utc))
    description = (event.description or "").replace("\n", "\\n")
    location = f"{event.venue or ''}, {event.address}, {event.city}, {event.state}"

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "BEGIN:VEVENT",
        f"UID:{event.id}@{UID_DOMAIN}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{start}",
        f"DTEND:{end}",
        f"SUMMARY:{event.title}",
        f"DESCRIPTION:{description}",
        f"LOCATION:{location}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return CRLF.join(lines)


def ical_filename(event: Event) -> str:
    """'Jazz Night' -> 'Jazz_Night.ics'."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', event.title)}.ics"


def download_ical(event: Event, sink: DownloadSink, now: Optional[datetime] = None):
    """Serialize *event* and hand it to *sink*; returns whatever the sink returns."""
    filename = ical_filename(event)
    logger.debug("Exporting %r as %s", event, filename)
    return sink.save(filename, to_ical(event, now=now), MIME_TYPE)
