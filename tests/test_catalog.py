"""Tests for unisport.catalog module."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from unisport.catalog import Catalog
from unisport.data.models import BookingStatus, Filters
from unisport.net.http_client import HttpClient
from unisport.pipeline.cache import CacheGateway

LOCATIONS = [
    {"name": "Sporthalle Dahlem", "lon": 13.29, "lat": 52.45, "url": "https://maps/dahlem"},
    {"name": "Schwimmhalle", "lon": 13.4, "lat": 52.5, "url": "https://maps/pool"},
]


def _slot(name: str | None, place: str, day: str | None, time: str | None, bookable: str) -> dict[str, Any]:
    return {
        "name": name,
        "place": place,
        "price": "10,00 / 20,00 €",
        "bookable": bookable,
        "day": day,
        "time": time,
        "timeframe": "Semester",
    }


COURSES = [
    {
        "name": "Yoga",
        "url": "https://www.buchsys.de/yoga",
        "description": "Hatha Yoga",
        "courses": [
            _slot("Yoga 1", "Sporthalle Dahlem", "Mo", "08:30-10:00", "buchen"),
            _slot("Yoga 2", "Sporthalle Dahlem", "Mi", "18:00-19:30", "Warteliste"),
            _slot(None, "Sporthalle Dahlem", "Fr", "10:00-11:00", "buchen"),
        ],
    },
    {
        "name": "Schwimmen",
        "url": "https://www.tu-sport.de/schwimmen",
        "description": "Kraulen",
        "courses": [
            _slot("Schwimmen 1", "Schwimmhalle", "Mo", "20:00-21:30", "buchen"),
            _slot("Schwimmen 2", "Unbekannt", "Di", "nach Absprache", "buchen"),
        ],
    },
    {
        "name": "Klettern",
        "url": "https://example.org/klettern",
        "description": "Bouldern",
        "courses": [
            _slot("Klettern 1", "Halle X", "Sa", "12:00-14:00", "ausgebucht"),
        ],
    },
]


def _gateway(courses=COURSES, locations=LOCATIONS) -> MagicMock:
    gateway = MagicMock(spec=CacheGateway)
    gateway.acquire_raw_data.return_value = (courses, locations)
    return gateway


def _no_filters(**overrides: Any) -> Filters:
    values = {"bookable": set(), "day": "all", "start": "", "end": "", "search_term": ""}
    values.update(overrides)
    return Filters(**values)


@pytest.fixture()
def catalog() -> Catalog:
    c = Catalog(_gateway(), filters=_no_filters())
    assert c.load() is True
    return c


class TestInitialState:
    """A fresh catalog is empty and not loaded."""

    def test_empty(self) -> None:
        c = Catalog(_gateway())
        assert c.loaded is False
        assert c.error is False
        assert c.courses == []
        assert c.filtered_course_events == []
        assert c.paginated_courses == []

    def test_default_filters(self) -> None:
        assert Catalog(_gateway()).filters.bookable == {BookingStatus.BOOKABLE}


class TestLoad:
    """Loading populates courses, venues and the index."""

    def test_loaded(self, catalog: Catalog) -> None:
        assert catalog.loaded is True
        assert catalog.error is False
        assert [c.name for c in catalog.courses] == ["Yoga", "Schwimmen", "Klettern"]
        assert len(catalog.locations) == 2
        assert len(catalog.index) == 3

    def test_events_by_location(self, catalog: Catalog) -> None:
        assert set(catalog.events_by_location) == {"https://maps/dahlem", "https://maps/pool"}
        assert len(catalog.events_by_location["https://maps/dahlem"]) == 2

    def test_courses_at_location(self, catalog: Catalog) -> None:
        dahlem = catalog.locations[0]
        assert [c.name for c in catalog.courses_at_location(dahlem)] == ["Yoga", "Yoga"]

    def test_unknown_provider(self, catalog: Catalog) -> None:
        assert catalog.courses[2].provider is None
        assert catalog.courses[0].provider == "FU Berlin"

    def test_reload_replaces_courses(self) -> None:
        gateway = _gateway()
        c = Catalog(gateway, filters=_no_filters())
        c.load()
        gateway.acquire_raw_data.return_value = (COURSES[:1], LOCATIONS)
        c.load()
        assert [course.name for course in c.courses] == ["Yoga"]
        assert len(c.filtered_courses) == 1


class TestLoadFailure:
    """Whole-load failures set the error flag and clear the cache."""

    def test_network_error(self) -> None:
        gateway = _gateway()
        gateway.acquire_raw_data.side_effect = requests.ConnectionError("down")
        c = Catalog(gateway, filters=_no_filters())

        assert c.load() is False
        assert c.loaded is True
        assert c.error is True
        assert c.courses == []
        assert c.filtered_course_events == []
        assert c.filtered_courses == []
        assert c.filtered_course_events_by_location == {}
        gateway.clear.assert_called_once()

    def test_failure_after_success_empties_catalog(self) -> None:
        gateway = _gateway()
        c = Catalog(gateway, filters=_no_filters())
        c.load()
        gateway.acquire_raw_data.side_effect = requests.Timeout("slow")
        c.load()
        assert c.courses == []
        assert c.events_by_location == {}

    def test_clear_failure_is_logged_not_raised(self) -> None:
        gateway = _gateway()
        gateway.acquire_raw_data.side_effect = ValueError("bad")
        gateway.clear.side_effect = PermissionError("read-only")
        c = Catalog(gateway)
        assert c.load() is False

    def test_cache_file_removed_end_to_end(self, tmp_path: Path) -> None:
        cache_path = tmp_path / "cache.json"
        cache_path.write_text(json.dumps({"courses": [], "locations": [], "timestamp": 0}))
        http_client = MagicMock(spec=HttpClient)
        http_client.get_data.side_effect = requests.HTTPError("500")
        gateway = CacheGateway(http_client=http_client, cache_path=cache_path)

        c = Catalog(gateway)
        assert c.load() is False
        assert not cache_path.exists()


class TestViews:
    """Derived views follow the filter state."""

    def test_all_sentinels(self, catalog: Catalog) -> None:
        # the null-named slot was dropped during normalization
        assert len(catalog.filtered_course_events) == 5
        assert [c.name for c in catalog.filtered_courses] == ["Yoga", "Schwimmen", "Klettern"]

    def test_default_filter_hides_waitlist_and_unknown(self) -> None:
        c = Catalog(_gateway())
        c.load()
        names = [e.slot.name for e in c.filtered_course_events]
        assert names == ["Yoga 1", "Schwimmen 1", "Schwimmen 2"]

    def test_update_filters_day(self, catalog: Catalog) -> None:
        catalog.update_filters(day="Mo")
        assert [e.slot.name for e in catalog.filtered_course_events] == ["Yoga 1", "Schwimmen 1"]

    def test_update_filters_time_window(self, catalog: Catalog) -> None:
        catalog.update_filters(start="18:00", end="22:00")
        assert [e.slot.name for e in catalog.filtered_course_events] == ["Yoga 2", "Schwimmen 1"]

    def test_update_filters_validates(self, catalog: Catalog) -> None:
        with pytest.raises(ValidationError):
            catalog.update_filters(start="spät")
        assert catalog.filters.start == ""

    def test_search(self, catalog: Catalog) -> None:
        catalog.update_filters(search_term="Schwimmen")
        assert [c.name for c in catalog.filtered_courses] == ["Schwimmen"]

    def test_search_matches_venue_name(self, catalog: Catalog) -> None:
        catalog.update_filters(search_term="Dahlem")
        assert [c.name for c in catalog.filtered_courses] == ["Yoga"]

    def test_grouping_follows_filters(self, catalog: Catalog) -> None:
        catalog.update_filters(day="Mi")
        groups = catalog.filtered_course_events_by_location
        assert list(groups) == ["https://maps/dahlem"]
        assert [e.slot.name for e in groups["https://maps/dahlem"]] == ["Yoga 2"]

    def test_grouping_excludes_unlocated(self, catalog: Catalog) -> None:
        grouped = sum(len(v) for v in catalog.filtered_course_events_by_location.values())
        located = [e for e in catalog.filtered_course_events if e.location is not None]
        assert grouped == len(located) == 3

    def test_views_are_memoized(self, catalog: Catalog) -> None:
        assert catalog.filtered_course_events is catalog.filtered_course_events

    def test_filter_change_invalidates(self, catalog: Catalog) -> None:
        before = catalog.filtered_course_events
        catalog.update_filters(day="Sa")
        assert catalog.filtered_course_events is not before
        assert [e.slot.name for e in catalog.filtered_course_events] == ["Klettern 1"]

    def test_set_filters_resets_page(self, catalog: Catalog) -> None:
        catalog.set_page(3)
        catalog.set_filters(_no_filters(day="Mo"))
        assert catalog.page == 0


class TestPagination:
    """Pagination over the deduplicated course list."""

    def test_page_size(self) -> None:
        c = Catalog(_gateway(), page_size=2, filters=_no_filters())
        c.load()
        assert [x.name for x in c.paginated_courses] == ["Yoga", "Schwimmen"]
        c.set_page(1)
        assert [x.name for x in c.paginated_courses] == ["Klettern"]
        c.set_page(2)
        assert c.paginated_courses == []

    def test_negative_page(self, catalog: Catalog) -> None:
        with pytest.raises(ValueError):
            catalog.set_page(-1)


class TestSelection:
    """Highlight and selection are plain state."""

    def test_highlight_and_select(self, catalog: Catalog) -> None:
        yoga = catalog.courses[0]
        catalog.highlight(yoga)
        catalog.select(yoga)
        assert catalog.highlighted_course is yoga
        assert catalog.selected_course is yoga
        catalog.highlight(None)
        assert catalog.highlighted_course is None

    def test_load_resets_selection(self, catalog: Catalog) -> None:
        catalog.select(catalog.courses[0])
        catalog.load()
        assert catalog.selected_course is None
