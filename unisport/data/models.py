"""Domain models for normalized course data."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from unisport.parsing.parsers import parse_clock


class Day(str, Enum):
    """Weekday abbreviations as used by the providers."""

    MO = "Mo"
    DI = "Di"
    MI = "Mi"
    DO = "Do"
    FR = "Fr"
    SA = "Sa"
    SO = "So"


class BookingStatus(str, Enum):
    """Whether a slot can be booked directly or only via a waitlist."""

    BOOKABLE = "bookable"
    WAITLIST = "waitlist"


ALL_DAYS = "all"


class CourseLocation(BaseModel):
    """A venue.  Shared between all slots held there; identity is ``url``."""

    model_config = ConfigDict(frozen=True)

    name: str
    lon: float
    lat: float
    url: str


class TimeSlot(BaseModel):
    """Weekly time window in minutes since midnight.

    ``start <= end`` is not enforced; providers publish overnight and
    inverted ranges.  ``day`` is None when the provider's day text is not a
    single weekday (``"Mo-Fr"``); such a slot still has its hours.
    """

    day: Optional[Day] = None
    start: int
    end: int


class CourseSlot(BaseModel):
    """One scheduled offering of a course."""

    id: int
    name: str
    prices: list[float] = Field(default_factory=list, max_length=4)
    location: Optional[CourseLocation] = None
    bookable: Optional[BookingStatus] = None
    time: Optional[TimeSlot] = None
    day_raw: Optional[str] = None
    time_raw: Optional[str] = None
    date_raw: Optional[str] = None


class Course(BaseModel):
    """A course as listed by one provider, with all of its slots."""

    id: str
    name: str
    url: str
    description: str = ""
    provider: Optional[str] = None
    slots: list[CourseSlot] = Field(default_factory=list)


@dataclass
class CourseEvent:
    """A (course, slot) pairing; the unit that filters operate on."""

    course: Course
    slot: CourseSlot

    @property
    def location(self) -> CourseLocation | None:
        return self.slot.location


class Filters(BaseModel):
    """Filter state applied to the catalog.

    Empty strings, an empty status set and ``"all"`` are the "not active"
    sentinels.
    """

    bookable: set[BookingStatus] = Field(
        default_factory=lambda: {BookingStatus.BOOKABLE}
    )
    day: Union[Day, Literal["all"]] = ALL_DAYS
    start: str = ""
    end: str = ""
    search_term: str = ""

    @field_validator("start", "end")
    @classmethod
    def _check_clock(cls, value: str) -> str:
        value = value.strip()
        if value and parse_clock(value) is None:
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value
