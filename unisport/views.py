"""Derived views over filtered events: unique courses, pages, venues."""

from __future__ import annotations

import math
from typing import Iterable, Sequence, TypeVar

from unisport.data.models import Course, CourseEvent

DEFAULT_PAGE_SIZE = 50

T = TypeVar("T")


def unique_courses(events: Iterable[CourseEvent]) -> list[Course]:
    """Courses of *events*, each once, in first-seen order."""
    seen: set[str] = set()
    courses: list[Course] = []
    for event in events:
        if event.course.id not in seen:
            seen.add(event.course.id)
            courses.append(event.course)
    return courses


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> list[T]:
    """Return page *page* (0-based) of *items*.

    Pages past the end are empty.  Raises ValueError for a negative page or
    a non-positive page size.
    """
    if page < 0:
        raise ValueError("page must be >= 0")
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    offset = page * page_size
    return list(items[offset:offset + page_size])


def page_count(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages needed for *total* items (at least 1)."""
    return max(1, math.ceil(total / page_size))


def group_by_location(events: Iterable[CourseEvent]) -> dict[str, list[CourseEvent]]:
    """Bucket events by venue url; events without a venue are left out."""
    groups: dict[str, list[CourseEvent]] = {}
    for event in events:
        if event.location is None:
            continue
        groups.setdefault(event.location.url, []).append(event)
    return groups
