"""Catalog service: owns the loaded courses, the filter state and derived views."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from unisport.data.models import Course, CourseEvent, CourseLocation, Filters
from unisport.pipeline.cache import CacheGateway
from unisport.pipeline.normalize import build_catalog
from unisport.search.filters import course_events, filter_events
from unisport.search.index import DEFAULT_THRESHOLD, SearchIndex, build_index, is_search_term
from unisport.views import DEFAULT_PAGE_SIZE, group_by_location, paginate, unique_courses

logger = logging.getLogger("unisport")


class Catalog:
    """The in-memory course catalog and everything derived from it.

    A catalog starts empty; :meth:`load` fills it exactly once per call.
    Derived views (filtered events, filtered courses, the current page,
    venue buckets) are computed on first read and memoized until the
    courses change (``load``) or the filter or page state changes.

    After a failed load ``loaded`` and ``error`` are both True and every
    view is empty.

    Usage::

        catalog = Catalog(gateway)
        catalog.load()
        catalog.update_filters(day="Mo", start="17:00")
        for course in catalog.paginated_courses:
            ...
    """

    def __init__(
        self,
        gateway: CacheGateway,
        page_size: int = DEFAULT_PAGE_SIZE,
        search_weights: Mapping[str, float] | None = None,
        search_threshold: float = DEFAULT_THRESHOLD,
        filters: Filters | None = None,
    ) -> None:
        self.gateway = gateway
        self.page_size = page_size
        self.search_weights = search_weights
        self.search_threshold = search_threshold

        self.loaded = False
        self.error = False
        self.courses: list[Course] = []
        self.locations: list[CourseLocation] = []
        self.events_by_location: dict[str, list[CourseEvent]] = {}
        self.index: SearchIndex = build_index([])

        self.highlighted_course: Course | None = None
        self.selected_course: Course | None = None

        self._filters = filters if filters is not None else Filters()
        self._page = 0
        self._memo: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Acquire raw data, normalize it and build the search index.

        Returns:
            True on success.  On failure the error is logged, the cache
            snapshot is removed and False is returned.
        """
        self.loaded = False
        self.error = False
        self.highlighted_course = None
        self.selected_course = None

        try:
            raw_courses, raw_locations = self.gateway.acquire_raw_data()
            courses, locations = build_catalog(raw_courses, raw_locations)
        except Exception as e:
            logger.error(
                "Failed to load courses",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            self.error = True
            self._clear_cache()
            courses, locations = [], []

        self.courses = courses
        self.locations = locations
        self.events_by_location = group_by_location(course_events(courses))
        self.index = build_index(
            courses, weights=self.search_weights, threshold=self.search_threshold
        )
        self.loaded = True
        self._page = 0
        self._memo.clear()

        if not self.error:
            logger.info(
                "Catalog loaded",
                extra={
                    "courses": len(self.courses),
                    "locations": len(self.locations),
                },
            )
        return not self.error

    def _clear_cache(self) -> None:
        try:
            self.gateway.clear()
        except OSError as exc:
            logger.warning("Failed to clear cache snapshot", extra={"error": str(exc)})

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    @property
    def filters(self) -> Filters:
        return self._filters

    def set_filters(self, filters: Filters) -> None:
        """Replace the filter state and go back to the first page."""
        self._filters = filters
        self._page = 0
        self._memo.clear()

    def update_filters(self, **changes: Any) -> Filters:
        """Change individual filter fields, validating the result.

        Raises:
            pydantic.ValidationError: If a value is not acceptable.
        """
        filters = Filters.model_validate({**self._filters.model_dump(), **changes})
        self.set_filters(filters)
        return filters

    @property
    def page(self) -> int:
        return self._page

    def set_page(self, page: int) -> None:
        if page < 0:
            raise ValueError("page must be >= 0")
        self._page = page
        self._memo.pop("paginated_courses", None)

    def highlight(self, course: Course | None) -> None:
        self.highlighted_course = course

    def select(self, course: Course | None) -> None:
        self.selected_course = course

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _memoized(self, key: str, compute: Callable[[], Any]) -> Any:
        if key not in self._memo:
            self._memo[key] = compute()
        return self._memo[key]

    @property
    def filtered_course_events(self) -> list[CourseEvent]:
        """Events passing the current filters; search results come best first."""
        return self._memoized("filtered_course_events", self._compute_events)

    def _compute_events(self) -> list[CourseEvent]:
        if not self.loaded or self.error:
            return []

        courses = self.courses
        search_ids = None
        if is_search_term(self._filters.search_term):
            courses = self.index.search(self._filters.search_term)
            search_ids = {course.id for course in courses}

        return filter_events(course_events(courses), self._filters, search_ids=search_ids)

    @property
    def filtered_courses(self) -> list[Course]:
        return self._memoized(
            "filtered_courses", lambda: unique_courses(self.filtered_course_events)
        )

    @property
    def paginated_courses(self) -> list[Course]:
        return self._memoized(
            "paginated_courses",
            lambda: paginate(self.filtered_courses, self._page, self.page_size),
        )

    @property
    def filtered_course_events_by_location(self) -> dict[str, list[CourseEvent]]:
        return self._memoized(
            "filtered_course_events_by_location",
            lambda: group_by_location(self.filtered_course_events),
        )

    def courses_at_location(self, location: CourseLocation) -> list[Course]:
        """Courses with at least one slot at *location*, ignoring filters.

        A course with several slots at the venue appears once per slot.
        """
        return [event.course for event in self.events_by_location.get(location.url, [])]
