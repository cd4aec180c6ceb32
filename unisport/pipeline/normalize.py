"""Turn raw provider records into :class:`Course` objects.

Raw course record::

    {"name": ..., "url": ..., "description": ...,
     "courses": [{"name": ..., "place": ..., "price": ..., "bookable": ...,
                  "day": ..., "time": ..., "timeframe": ...}, ...]}

Raw location record::

    {"name": ..., "lon": ..., "lat": ..., "url": ...}

Bad values never abort a run: a field that cannot be read becomes ``None``
(or an empty list). Only records that are not mappings, and courses
without a url, are dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping

from pydantic import ValidationError

from unisport.data.models import Course, CourseLocation, CourseSlot, TimeSlot
from unisport.data.tables import resolve_booking_status, resolve_day, resolve_provider
from unisport.parsing.parsers import parse_prices, parse_time_range
from unisport.utils.identity import short_hash

logger = logging.getLogger("unisport")


def normalize_locations(raw_locations: list[Any]) -> list[CourseLocation]:
    """Parse the raw venue list, skipping records that are not usable."""
    locations: list[CourseLocation] = []
    for raw in raw_locations:
        if not isinstance(raw, Mapping):
            logger.warning("Skipping location record that is not an object")
            continue
        try:
            locations.append(
                CourseLocation(
                    name=raw.get("name"),
                    lon=raw.get("lon"),
                    lat=raw.get("lat"),
                    url=raw.get("url"),
                )
            )
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed location",
                extra={"location": raw.get("name"), "errors": exc.error_count()},
            )
    return locations


def _index_by_name(locations: list[CourseLocation]) -> dict[str, CourseLocation]:
    # First record wins for duplicate names
    index: dict[str, CourseLocation] = {}
    for location in locations:
        index.setdefault(location.name, location)
    return index


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def normalize_slot(
    position: int,
    raw: Mapping[str, Any],
    locations_by_name: Mapping[str, CourseLocation],
) -> CourseSlot:
    """Build one :class:`CourseSlot`; *position* becomes its id."""
    day_raw = _text(raw.get("day"))
    time_raw = _text(raw.get("time"))
    place = raw.get("place")

    time = None
    if day_raw is not None and time_raw is not None:
        bounds = parse_time_range(time_raw)
        if bounds is not None:
            time = TimeSlot(day=resolve_day(day_raw), start=bounds[0], end=bounds[1])

    return CourseSlot(
        id=position,
        name=_text(raw.get("name")) or "",
        prices=parse_prices(_text(raw.get("price"))),
        location=locations_by_name.get(place) if isinstance(place, str) else None,
        bookable=resolve_booking_status(raw.get("bookable")),
        time=time,
        day_raw=day_raw,
        time_raw=time_raw,
        date_raw=_text(raw.get("timeframe")),
    )


def normalize_slots(
    raw_slots: Any, locations_by_name: Mapping[str, CourseLocation]
) -> list[CourseSlot]:
    """Normalize a course's slot list, dropping placeholder rows."""
    if not isinstance(raw_slots, list):
        return []
    kept = [
        s for s in raw_slots
        if isinstance(s, Mapping) and s.get("name") is not None
    ]
    return [
        normalize_slot(position, raw, locations_by_name)
        for position, raw in enumerate(kept)
    ]


def build_catalog(
    raw_courses: list[Any],
    raw_locations: list[Any],
    max_workers: int | None = None,
) -> tuple[list[Course], list[CourseLocation]]:
    """Normalize both raw collections.

    Course ids are hashed on a thread pool; results are matched back by
    position so the output keeps the input order.

    Returns:
        ``(courses, locations)``
    """
    locations = normalize_locations(raw_locations)
    locations_by_name = _index_by_name(locations)

    records: list[Mapping[str, Any]] = []
    for raw in raw_courses:
        if not isinstance(raw, Mapping) or not isinstance(raw.get("url"), str):
            logger.warning("Skipping course record without a url")
            continue
        records.append(raw)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        ids = list(executor.map(short_hash, (r["url"] for r in records)))

    courses: list[Course] = []
    for course_id, raw in zip(ids, records):
        url = raw["url"]
        courses.append(
            Course(
                id=course_id,
                name=_text(raw.get("name")) or "",
                url=url,
                description=_text(raw.get("description")) or "",
                provider=resolve_provider(url),
                slots=normalize_slots(raw.get("courses"), locations_by_name),
            )
        )

    logger.info(
        "Normalized catalog",
        extra={"courses": len(courses), "locations": len(locations)},
    )
    return courses, locations


def normalize(raw_courses: list[Any], raw_locations: list[Any]) -> list[Course]:
    """Normalize raw provider data into courses, in input order."""
    courses, _ = build_catalog(raw_courses, raw_locations)
    return courses
