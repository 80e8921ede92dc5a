"""Shared fixtures for entcal tests."""

import heapq
import itertools

import pytest

from entcal.models import Event, EventStatus, Genre
from entcal.store import EventStore

JAZZ = Genre(id="g-jazz", name="Jazz", slug="jazz", color="#1d4ed8")
ROCK = Genre(id="g-rock", name="Rock", slug="rock", color="#dc2626")
COMEDY = Genre(id="g-comedy", name="Comedy", slug="comedy", color="#f59e0b")


class ManualScheduler:
    """Deterministic stand-in for an event loop's ``call_later``."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay, callback):
        handle = _Handle(callback)
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle))
        return handle

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if not handle.cancelled:
                handle.callback()
        self.now = target

    @property
    def pending(self):
        return sum(1 for _, _, h in self._queue if not h.cancelled)


class _Handle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def jazz_night():
    return Event(
        id="evt-1",
        title="Jazz Night",
        date="2024-06-01",
        time="19:00",
        description="Live quartet\nTwo sets",
        venue="Blue Room",
        address="12 Main St",
        city="Ann Arbor",
        state="MI",
        zip_code="48104",
        latitude=42.2808,
        longitude=-83.7430,
        price=15.0,
        age_limit="21+",
        status=EventStatus.APPROVED,
        genres=(JAZZ,),
    )


@pytest.fixture
def sample_events(jazz_night):
    return [
        jazz_night,
        Event(
            id="evt-2",
            title="Garage Rock Showcase",
            date="2024-06-01",
            time="21:00",
            venue="The Pig",
            address="208 S 1st St",
            city="Ann Arbor",
            state="MI",
            zip_code="48104",
            latitude=42.2794,
            longitude=-83.7497,
            price=None,
            age_limit="18+",
            status=EventStatus.APPROVED,
            genres=(ROCK, JAZZ),
        ),
        Event(
            id="evt-3",
            title="Stand-up Saturday",
            date="2024-06-08",
            description="Open mic comedy",
            venue="Comedy Showcase",
            address="212 E Washington",
            city="Detroit",
            state="MI",
            zip_code="48226",
            latitude=42.3314,
            longitude=-83.0458,
            price=0.0,
            status=EventStatus.APPROVED,
            featured=True,
            genres=(COMEDY,),
        ),
        Event(
            id="evt-4",
            title="Park Concert",
            date="2024-06-15",
            city="Toledo",
            state="OH",
            price=25.0,
            status=EventStatus.APPROVED,
            genres=(ROCK,),
        ),
    ]


@pytest.fixture
def store(tmp_path):
    return EventStore(data_dir=tmp_path / "data")
