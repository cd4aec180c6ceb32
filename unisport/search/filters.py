"""Filter predicates over course events."""

from __future__ import annotations

from typing import AbstractSet, Iterable

from unisport.data.models import ALL_DAYS, Course, CourseEvent, CourseSlot, Filters
from unisport.parsing.parsers import parse_clock
from unisport.search.index import SearchIndex, is_search_term


def course_events(courses: Iterable[Course]) -> list[CourseEvent]:
    """One event per slot, in course then slot order."""
    return [CourseEvent(course=course, slot=slot) for course in courses for slot in course.slots]


def matches_bookable(slot: CourseSlot, filters: Filters) -> bool:
    if not filters.bookable:
        return True
    return slot.bookable is not None and slot.bookable in filters.bookable


def matches_day(slot: CourseSlot, filters: Filters) -> bool:
    if filters.day == ALL_DAYS:
        return True
    return slot.time is not None and slot.time.day == filters.day


def matches_start(slot: CourseSlot, filters: Filters) -> bool:
    if filters.start == "":
        return True
    bound = parse_clock(filters.start)
    return slot.time is not None and bound is not None and slot.time.start >= bound


def matches_end(slot: CourseSlot, filters: Filters) -> bool:
    if filters.end == "":
        return True
    bound = parse_clock(filters.end)
    if slot.time is None or bound is None:
        return False
    # start is re-checked so inverted ranges cannot slip through on end alone
    return slot.time.end <= bound and slot.time.start <= bound


def slot_fits_filter(slot: CourseSlot, filters: Filters) -> bool:
    """Booking status, day and time window criteria for one slot."""
    return (
        matches_bookable(slot, filters)
        and matches_day(slot, filters)
        and matches_start(slot, filters)
        and matches_end(slot, filters)
    )


def filter_events(
    events: Iterable[CourseEvent],
    filters: Filters,
    index: SearchIndex | None = None,
    search_ids: AbstractSet[str] | None = None,
) -> list[CourseEvent]:
    """Return the events that satisfy every active criterion, in input order.

    The search criterion applies when the term is long enough and either
    *index* or precomputed *search_ids* is given.
    """
    if not is_search_term(filters.search_term):
        search_ids = None
    elif search_ids is None and index is not None:
        search_ids = index.matching_ids(filters.search_term)

    return [
        event
        for event in events
        if (search_ids is None or event.course.id in search_ids)
        and slot_fits_filter(event.slot, filters)
    ]
