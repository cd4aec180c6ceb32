"""Closed lookup tables: provider hostnames, booking vocabulary, day names."""

from __future__ import annotations

from unisport.data.models import BookingStatus, Day
from unisport.utils.url_utils import extract_hostname

PROVIDERS: dict[str, str] = {
    "buchung.hochschulsport-potsdam.de": "Uni Potsdam",
    "sport.htw-berlin.de": "HTW Berlin",
    "www.buchsys.de": "FU Berlin",
    "www.tu-sport.de": "TU Berlin",
    "zeh02.beuth-hochschule.de": "BHT Berlin",
    "zeh2.zeh.hu-berlin.de": "HU Berlin",
}

BOOKING_VALUES: dict[BookingStatus, tuple[str, ...]] = {
    BookingStatus.BOOKABLE: (
        "buchen",
        "nur über Büro",
        "Karte kaufen",
        "anmeldefrei",
        "buchen 🔒",
        "Basisangebot",
        "siehe Text",
        "Kursdaten",
        "ohne Anmeldung",
    ),
    BookingStatus.WAITLIST: ("Warteliste", "Warteliste 🔒"),
}

# Reverse index: raw provider text -> status
BOOKING_STATUS: dict[str, BookingStatus] = {
    raw: status for status, values in BOOKING_VALUES.items() for raw in values
}

DAY_NAMES: dict[Day, str] = {
    Day.MO: "Montag",
    Day.DI: "Dienstag",
    Day.MI: "Mittwoch",
    Day.DO: "Donnerstag",
    Day.FR: "Freitag",
    Day.SA: "Samstag",
    Day.SO: "Sonntag",
}

_DAYS_BY_VALUE: dict[str, Day] = {day.value: day for day in Day}


def resolve_provider(url: str) -> str | None:
    """Return the provider label for *url*'s hostname, or None if unknown."""
    return PROVIDERS.get(extract_hostname(url))


def resolve_booking_status(raw: object) -> BookingStatus | None:
    """Map the provider's booking text to a status, or None if unmapped."""
    if not isinstance(raw, str):
        return None
    return BOOKING_STATUS.get(raw)


def resolve_day(raw: object) -> Day | None:
    """Map a raw weekday abbreviation (``"Mo"``) to :class:`Day`."""
    if not isinstance(raw, str):
        return None
    return _DAYS_BY_VALUE.get(raw.strip())
