"""Event and genre data model."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional


class EventStatus(str, Enum):
    """Moderation state of a submitted event."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Genre:
    """A categorical tag attached to events."""

    id: str
    name: str
    slug: str = ""
    color: str = ""  # badge colour only
    description: Optional[str] = None
    icon_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> Genre:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


# Column names used by the hosted store, mapped onto our field names.
_FIELD_ALIASES = {
    "event_date": "date",
    "event_time": "time",
    "venue_name": "venue",
    "phone_number": "phone",
}


@dataclass(frozen=True)
class Event:
    """A single entertainment event, as read from storage.

    ``distance`` is transient: it is only populated by a geo-filter and is
    neither serialized nor part of equality.
    """

    title: str
    date: str  # ISO 8601 date: "2026-03-15"
    id: str = ""
    time: Optional[str] = None  # 24-hr time: "19:30"
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    description: Optional[str] = None
    venue: Optional[str] = None
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: Optional[float] = None  # None means "not recorded", not free
    dress_code: Optional[str] = None
    age_limit: Optional[str] = None  # e.g. "18+"
    phone: Optional[str] = None
    image_url: Optional[str] = None
    organizer_id: Optional[str] = None  # submitting user; None for imports
    status: EventStatus = EventStatus.PENDING
    featured: bool = False
    genres: tuple[Genre, ...] = ()
    distance: Optional[float] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", self._generate_id())
        if not isinstance(self.status, EventStatus):
            object.__setattr__(self, "status", EventStatus(self.status))
        if not isinstance(self.genres, tuple):
            object.__setattr__(self, "genres", tuple(self.genres))

    def _generate_id(self) -> str:
        """Create a deterministic hash from title + date + venue."""
        key = f"{self.title.strip().lower()}|{self.date}|{(self.venue or '').strip().lower()}"
        return hashlib.sha256(key.encode()).hexdigest()[:16]

    @property
    def genre_ids(self) -> set[str]:
        return {g.id for g in self.genres}

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def sort_key(self) -> tuple:
        """Key for chronological sorting."""
        return (self.date, self.time or "00:00", self.title.lower())

    def with_distance(self, miles: float) -> Event:
        """Return a copy carrying a computed distance."""
        return replace(self, distance=miles)

    def to_dict(self) -> dict:
        """Serialize to a plain dict (without the transient distance)."""
        data = {}
        for f in fields(self):
            if f.name == "distance":
                continue
            data[f.name] = getattr(self, f.name)
        data["status"] = self.status.value
        data["genres"] = [g.to_dict() for g in self.genres]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Event:
        """Deserialize from a plain dict or a hosted-store row."""
        data = {_FIELD_ALIASES.get(k, k): v for k, v in data.items()}
        known = {f.name for f in fields(cls)} - {"distance"}
        kwargs = {k: v for k, v in data.items() if k in known}
        genres = (_coerce_genre(g) for g in data.get("genres") or ())
        # A deleted genre leaves an empty join row behind.
        kwargs["genres"] = tuple(g for g in genres if g is not None)
        if kwargs.get("price") is not None:
            kwargs["price"] = float(kwargs["price"])
        return cls(**kwargs)

    def __repr__(self) -> str:
        time_str = f" {self.time}" if self.time else ""
        return f"<Event '{self.title}' on {self.date}{time_str} @ {self.venue or '?'}>"


def _coerce_genre(value) -> Optional[Genre]:
    if value is None or isinstance(value, Genre):
        return value
    # Join-table rows nest the genre one level down.
    if "genre" in value:
        value = value["genre"]
        if value is None:
            return None
    return Genre.from_dict(value)
