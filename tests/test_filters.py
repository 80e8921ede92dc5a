"""Tests for the event filter engine."""

import math

import pytest

from entcal.filters import DEFAULT_RADIUS_MILES, EventFilters, apply_filters
from entcal.models import Event, Genre

ANN_ARBOR = (42.2808, -83.7430)


def _ids(events):
    return [e.id for e in events]


class TestIdentityAndPurity:
    def test_empty_filter_is_identity(self, sample_events):
        result = apply_filters(sample_events, EventFilters())
        assert result == sample_events
        assert result is not sample_events

    def test_empty_input(self):
        assert apply_filters([], EventFilters(search="jazz", radius=5)) == []

    def test_input_is_not_mutated(self, sample_events):
        before = list(sample_events)
        apply_filters(sample_events, EventFilters(latitude=ANN_ARBOR[0], longitude=ANN_ARBOR[1], radius=50))
        assert sample_events == before
        assert all(e.distance is None for e in sample_events)

    @pytest.mark.parametrize(
        "filters",
        [
            EventFilters(search="rock"),
            EventFilters(genres=("g-jazz",), max_price=20),
            EventFilters(latitude=ANN_ARBOR[0], longitude=ANN_ARBOR[1], radius=10),
            EventFilters(state="MI", start_date="2024-06-02"),
        ],
    )
    def test_idempotent(self, sample_events, filters):
        once = apply_filters(sample_events, filters)
        assert apply_filters(once, filters) == once


class TestAxes:
    """Test each filter axis on its own."""

    def test_search_title_description_city(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(search="JAZZ"))) == ["evt-1"]
        assert _ids(apply_filters(sample_events, EventFilters(search="open mic"))) == ["evt-3"]
        assert _ids(apply_filters(sample_events, EventFilters(search="toledo"))) == ["evt-4"]

    def test_genre_or_within_selection(self):
        a, b, c, d = "A", "B", "C", "D"
        event = Event(title="Mixed", date="2024-06-01", genres=(Genre(id=a, name=a), Genre(id=b, name=b)))
        assert apply_filters([event], EventFilters(genres=(b, c))) == [event]
        assert apply_filters([event], EventFilters(genres=(c, d))) == []

    def test_genre_order_preserved(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(genres=("g-rock",)))) == ["evt-2", "evt-4"]

    def test_state_exact(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(state="OH"))) == ["evt-4"]
        assert apply_filters(sample_events, EventFilters(state="oh")) == []

    def test_city_substring_case_insensitive(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(city="arbor"))) == ["evt-1", "evt-2"]

    def test_zip_exact(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(zip_code="48226"))) == ["evt-3"]

    def test_date_range_inclusive(self, sample_events):
        filters = EventFilters(start_date="2024-06-01", end_date="2024-06-08")
        assert _ids(apply_filters(sample_events, filters)) == ["evt-1", "evt-2", "evt-3"]
        assert _ids(apply_filters(sample_events, EventFilters(start_date="2024-06-09"))) == ["evt-4"]

    def test_age_limit_exact(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(age_limit="18+"))) == ["evt-2"]

    def test_featured(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(featured=True))) == ["evt-3"]
        assert len(apply_filters(sample_events, EventFilters(featured=False))) == 3

    def test_dress_code(self):
        formal = Event(title="Gala", date="2024-06-01", dress_code="Black Tie")
        casual = Event(title="Picnic", date="2024-06-01")
        assert apply_filters([formal, casual], EventFilters(dress_code="black tie")) == [formal]


class TestPrice:
    """A missing price counts as zero for range comparisons."""

    def test_null_price_within_zero_range(self):
        unpriced = Event(title="Unpriced", date="2024-06-01", price=None)
        assert apply_filters([unpriced], EventFilters(min_price=0, max_price=0)) == [unpriced]
        assert apply_filters([unpriced], EventFilters(min_price=1)) == []

    def test_bounds_inclusive(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(min_price=15, max_price=25))) == ["evt-1", "evt-4"]

    def test_open_bounds(self, sample_events):
        assert _ids(apply_filters(sample_events, EventFilters(max_price=0))) == ["evt-2", "evt-3"]
        assert _ids(apply_filters(sample_events, EventFilters(min_price=20))) == ["evt-4"]


class TestGeo:
    """Test the radius filter."""

    def test_attaches_distance_and_filters(self, sample_events):
        filters = EventFilters(latitude=ANN_ARBOR[0], longitude=ANN_ARBOR[1], radius=10)
        result = apply_filters(sample_events, filters)
        assert _ids(result) == ["evt-1", "evt-2"]
        assert result[0].distance == 0
        assert 0 < result[1].distance < 1

    def test_wider_radius(self, sample_events):
        filters = EventFilters(latitude=ANN_ARBOR[0], longitude=ANN_ARBOR[1], radius=50)
        result = apply_filters(sample_events, filters)
        assert _ids(result) == ["evt-1", "evt-2", "evt-3"]
        assert 30 < result[2].distance < 45

    def test_events_without_coordinates_are_dropped(self, sample_events):
        # evt-4 matches every other axis but has no coordinates.
        filters = EventFilters(state="OH", latitude=41.65, longitude=-83.54, radius=10_000)
        assert apply_filters(sample_events, filters) == []

    def test_incomplete_location_is_ignored(self, sample_events):
        filters = EventFilters(latitude=ANN_ARBOR[0], longitude=ANN_ARBOR[1])
        assert apply_filters(sample_events, filters) == sample_events

    def test_zero_coordinates_count_as_present(self):
        null_island = Event(title="Buoy Party", date="2024-06-01", latitude=0.0, longitude=0.0)
        result = apply_filters([null_island], EventFilters(latitude=0.0, longitude=0.0, radius=1))
        assert result == [null_island]
        assert result[0].distance == 0

    def test_non_finite_distance_fails_closed(self):
        broken = Event(title="Broken", date="2024-06-01", latitude=math.nan, longitude=-83.0)
        fine = Event(title="Fine", date="2024-06-01", latitude=42.0, longitude=-83.0)
        result = apply_filters([broken, fine], EventFilters(latitude=42.0, longitude=-83.0, radius=math.inf))
        assert result == [fine]


class TestCombined:
    def test_axes_are_and_combined(self, sample_events):
        filters = EventFilters(genres=("g-jazz",), age_limit="18+", max_price=0)
        assert _ids(apply_filters(sample_events, filters)) == ["evt-2"]
        assert apply_filters(sample_events, filters.update(state="OH")) == []


class TestEventFilters:
    """Test the immutable filter value."""

    def test_updates_return_new_values(self):
        base = EventFilters(search="jazz")
        changed = base.update(city="Detroit")
        assert base.city is None
        assert changed.city == "Detroit" and changed.search == "jazz"

    def test_toggle_genre(self):
        filters = EventFilters().toggle_genre("a").toggle_genre("b")
        assert filters.genres == ("a", "b")
        assert filters.toggle_genre("a").genres == ("b",)

    def test_genres_coerced_to_tuple(self):
        assert EventFilters(genres=["a", "b"]).genres == ("a", "b")

    def test_with_location_default_radius(self):
        filters = EventFilters().with_location(42.0, -83.0)
        assert filters.radius == DEFAULT_RADIUS_MILES
        assert filters.update(radius=5).with_location(1.0, 2.0).radius == 5
        assert filters.has_location

    def test_cleared_and_is_empty(self):
        filters = EventFilters(search="x", genres=("a",))
        assert not filters.is_empty
        assert filters.cleared().is_empty
        assert filters.without_genres().genres == ()

    def test_describe_lists_constrained_axes(self):
        assert EventFilters(state="MI", min_price=0).describe() == {"state": "MI", "min_price": 0}
