"""JSON-backed event source."""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional

from entcal.models import Event, EventStatus, Genre
from entcal.preferences import Preferences

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path("data")
EVENTS_FILE = "events.json"
GENRES_FILE = "genres.json"
PREFERENCES_FILE = "preferences.json"


class EventStore:
    """Manages persistence of events, genres and preferences in JSON files.

    File layout:
        data/
            events.json       every event, any moderation status
            genres.json       the genre catalogue
            preferences.json  the local user's preferences
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = data_dir or DEFAULT_DATA_DIR
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._events_path = self.data_dir / EVENTS_FILE
        self._genres_path = self.data_dir / GENRES_FILE
        self._preferences_path = self.data_dir / PREFERENCES_FILE

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def load_events(self) -> list[Event]:
        """Load every stored event from disk."""
        return [Event.from_dict(item) for item in self._read(self._events_path, [])]

    def save_events(self, events: list[Event]) -> None:
        """Persist events to disk (sorted chronologically)."""
        events = sorted(events, key=lambda e: e.sort_key)
        self._write(self._events_path, [e.to_dict() for e in events])

    def get_event(self, event_id: str) -> Event:
        """Look up one event.

        Raises:
            KeyError: if no event has *event_id*.
        """
        for event in self.load_events():
            if event.id == event_id:
                return event
        raise KeyError(f"Unknown event: {event_id!r}")

    def query_events(
        self,
        include_unapproved: bool = False,
        include_past: bool = False,
        today: Optional[date] = None,
    ) -> list[Event]:
        """Return the events a calendar page should show, ordered by date.

        Only approved events are returned unless *include_unapproved* is set
        (moderators see everything). Events before *today* are hidden unless
        *include_past* is set.
        """
        cutoff = (today or date.today()).isoformat()
        events = self.load_events()
        if not include_unapproved:
            events = [e for e in events if e.status is EventStatus.APPROVED]
        if not include_past:
            events = [e for e in events if e.date >= cutoff]
        events.sort(key=lambda e: e.date)
        logger.debug("Query returned %d event(s)", len(events))
        return events

    def upsert_events(self, incoming: list[Event]) -> tuple[int, int]:
        """Merge incoming events into the store, keyed by event id.

        Returns:
            (added, updated) counts.
        """
        existing = {e.id: e for e in self.load_events()}
        added = 0
        updated = 0

        for event in incoming:
            if event.id in existing:
                updated += 1
            else:
                added += 1
            existing[event.id] = event

        self.save_events(list(existing.values()))
        logger.info("Upsert complete: %d added, %d updated", added, updated)
        return added, updated

    def set_status(self, event_id: str, status: EventStatus) -> Event:
        """Moderate an event (approve, reject, or send back to pending).

        Raises:
            KeyError: if no event has *event_id*.
        """
        events = self.load_events()
        for i, event in enumerate(events):
            if event.id == event_id:
                events[i] = replace(event, status=EventStatus(status))
                self.save_events(events)
                logger.info("Event %s marked %s", event_id, events[i].status.value)
                return events[i]
        raise KeyError(f"Unknown event: {event_id!r}")

    def delete_event(self, event_id: str) -> Event:
        """Remove an event and return what was removed.

        Raises:
            KeyError: if no event has *event_id*.
        """
        events = self.load_events()
        for i, event in enumerate(events):
            if event.id == event_id:
                del events[i]
                self.save_events(events)
                logger.info("Event %s deleted", event_id)
                return event
        raise KeyError(f"Unknown event: {event_id!r}")

    # ------------------------------------------------------------------
    # Genres & preferences
    # ------------------------------------------------------------------

    def load_genres(self) -> list[Genre]:
        genres = [Genre.from_dict(item) for item in self._read(self._genres_path, [])]
        return sorted(genres, key=lambda g: g.name.lower())

    def save_genres(self, genres: list[Genre]) -> None:
        self._write(self._genres_path, [g.to_dict() for g in genres])

    def load_preferences(self) -> Preferences:
        """Stored preferences, or the defaults when none were saved."""
        return Preferences.from_dict(self._read(self._preferences_path, {}))

    def save_preferences(self, preferences: Preferences) -> None:
        self._write(self._preferences_path, preferences.to_dict())

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        """Return event counts per moderation status, plus the total."""
        counts = Counter(e.status.value for e in self.load_events())
        result = {status.value: counts.get(status.value, 0) for status in EventStatus}
        result["total"] = sum(counts.values())
        result["genres"] = len(self.load_genres())
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read(path: Path, default):
        if not path.exists():
            return default
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _write(path: Path, data) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
