"""Multi-criteria event filtering."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, fields, replace
from typing import Optional

from entcal.geo import distance_miles
from entcal.models import Event

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_MILES = 25


@dataclass(frozen=True)
class EventFilters:
    """Caller-supplied criteria. Every field is optional; None means no constraint.

    Axes are AND-combined; within ``genres`` an event needs only one match.
    Values are immutable: every update returns a new ``EventFilters``.
    """

    search: Optional[str] = None
    genres: tuple[str, ...] = ()
    state: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: Optional[float] = None  # miles
    start_date: Optional[str] = None  # inclusive, "YYYY-MM-DD"
    end_date: Optional[str] = None  # inclusive, "YYYY-MM-DD"
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    age_limit: Optional[str] = None
    dress_code: Optional[str] = None
    featured: Optional[bool] = None

    def __post_init__(self) -> None:
        if not isinstance(self.genres, tuple):
            object.__setattr__(self, "genres", tuple(self.genres))

    @property
    def is_empty(self) -> bool:
        return self == EventFilters()

    @property
    def has_location(self) -> bool:
        return None not in (self.latitude, self.longitude, self.radius)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update(self, **changes) -> EventFilters:
        return replace(self, **changes)

    def toggle_genre(self, genre_id: str) -> EventFilters:
        """Add *genre_id* to the selection, or remove it if already selected."""
        if genre_id in self.genres:
            genres = tuple(g for g in self.genres if g != genre_id)
        else:
            genres = self.genres + (genre_id,)
        return replace(self, genres=genres)

    def without_genres(self) -> EventFilters:
        return replace(self, genres=())

    def with_location(
        self,
        latitude: float,
        longitude: float,
        radius: Optional[float] = None,
    ) -> EventFilters:
        """Centre the geo-filter on a point, keeping the current radius if set."""
        if radius is None:
            radius = self.radius or DEFAULT_RADIUS_MILES
        return replace(self, latitude=latitude, longitude=longitude, radius=radius)

    def cleared(self) -> EventFilters:
        return EventFilters()

    def describe(self) -> dict:
        """The constrained axes only, for logging."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) not in (None, "", ())
        }


# ------------------------------------------------------------------
# Stages
# ------------------------------------------------------------------

def _matches_search(event: Event, query: str) -> bool:
    query = query.lower()
    return (
        query in event.title.lower()
        or query in (event.description or "").lower()
        or query in event.city.lower()
    )


def _within_radius(events: list[Event], filters: EventFilters) -> list[Event]:
    """Attach distances and keep events inside the radius.

    Events without their own coordinates cannot satisfy the constraint and
    are dropped, as are events whose distance is not finite.
    """
    kept: list[Event] = []
    for event in events:
        if not event.has_coordinates:
            continue
        miles = distance_miles(filters.latitude, filters.longitude, event.latitude, event.longitude)
        if not math.isfinite(miles):
            logger.debug("Non-finite distance for %r, excluding", event)
            continue
        if miles <= filters.radius:
            kept.append(event.with_distance(miles))
    return kept


def apply_filters(events: Iterable[Event], filters: EventFilters) -> list[Event]:
    """Narrow *events* to those satisfying every constrained axis.

    Input order is preserved and the input is never mutated; a new list is
    returned on every call. Events surviving a geo-filter carry ``distance``.
    """
    filtered = list(events)

    if filters.search:
        filtered = [e for e in filtered if _matches_search(e, filters.search)]

    if filters.genres:
        wanted = set(filters.genres)
        filtered = [e for e in filtered if e.genre_ids & wanted]

    if filters.state:
        filtered = [e for e in filtered if e.state == filters.state]

    if filters.city:
        city = filters.city.lower()
        filtered = [e for e in filtered if city in e.city.lower()]

    if filters.zip_code:
        filtered = [e for e in filtered if e.zip_code == filters.zip_code]

    if filters.has_location:
        filtered = _within_radius(filtered, filters)

    if filters.start_date:
        filtered = [e for e in filtered if e.date >= filters.start_date]

    if filters.end_date:
        filtered = [e for e in filtered if e.date <= filters.end_date]

    # A missing price counts as free for range purposes.
    if filters.min_price is not None:
        filtered = [e for e in filtered if (e.price or 0) >= filters.min_price]

    if filters.max_price is not None:
        filtered = [e for e in filtered if (e.price or 0) <= filters.max_price]

    if filters.age_limit:
        filtered = [e for e in filtered if e.age_limit == filters.age_limit]

    if filters.dress_code:
        dress = filters.dress_code.lower()
        filtered = [e for e in filtered if (e.dress_code or "").lower() == dress]

    if filters.featured is not None:
        filtered = [e for e in filtered if e.featured == filters.featured]

    logger.debug("Filtered to %d event(s) with %s", len(filtered), filters.describe())
    return filtered
