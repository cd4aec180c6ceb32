"""CLI entry point for unisport."""

from __future__ import annotations

import argparse
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from unisport.catalog import Catalog
from unisport.config import Settings, load_settings
from unisport.data.models import ALL_DAYS, BookingStatus, CourseSlot, Day, Filters
from unisport.data.tables import DAY_NAMES
from unisport.net.http_client import HttpClient
from unisport.parsing.parsers import format_clock
from unisport.pipeline.cache import CacheGateway
from unisport.utils.logging_setup import setup_logging
from unisport.views import page_count

console = Console()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="unisport",
        description="Browse university sports courses from Berlin and Potsdam providers",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- search command ---
    search_parser = subparsers.add_parser("search", help="List courses matching filters")
    _add_filter_arguments(search_parser)
    search_parser.add_argument("--page", type=int, default=0, help="Page number (0-based)")
    search_parser.add_argument("--page-size", type=_positive_int, help="Courses per page")

    # --- locations command ---
    locations_parser = subparsers.add_parser("locations", help="Group matching events by venue")
    _add_filter_arguments(locations_parser)

    # --- status command ---
    status_parser = subparsers.add_parser("status", help="Show cache status")
    status_parser.add_argument("--config", type=Path, help="Path to config YAML file")

    # --- clear-cache command ---
    clear_parser = subparsers.add_parser("clear-cache", help="Delete the cached snapshot")
    clear_parser.add_argument("--config", type=Path, help="Path to config YAML file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "search":
        return cmd_search(args)
    elif args.command == "locations":
        return cmd_locations(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "clear-cache":
        return cmd_clear_cache(args)

    return 0


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="Path to config YAML file")
    parser.add_argument("--term", default="", help="Fuzzy search term (3+ characters)")
    parser.add_argument(
        "--day",
        default=ALL_DAYS,
        choices=[ALL_DAYS] + [d.value for d in Day],
        help="Weekday abbreviation",
    )
    parser.add_argument("--start", default="", help="Earliest start time, HH:MM")
    parser.add_argument("--end", default="", help="Latest end time, HH:MM")
    parser.add_argument(
        "--status",
        action="append",
        choices=[s.value for s in BookingStatus],
        help="Booking status to include (repeatable, default: bookable)",
    )
    parser.add_argument(
        "--any-status",
        action="store_true",
        help="Do not filter by booking status",
    )


# ----------------------------------------------------------------------
# Wiring
# ----------------------------------------------------------------------


def load_cli_settings(args, cli_overrides: dict[str, Any] | None = None) -> Settings | None:
    """Load and validate settings, then configure logging.  None if invalid."""
    try:
        settings = load_settings(
            config_path=getattr(args, "config", None),
            cli_overrides=cli_overrides,
        )
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        console.print(f"[red]Invalid configuration:[/red] {location}: {error['msg']}")
        return None

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        fmt=settings.logging.format,
    )
    return settings


def build_http_client(settings: Settings) -> HttpClient:
    return HttpClient(
        user_agent=settings.user_agent,
        timeout=(settings.timeouts.connect, settings.timeouts.read),
        max_retries=settings.retries,
    )


def build_gateway(settings: Settings, http_client: HttpClient) -> CacheGateway:
    return CacheGateway(
        http_client=http_client,
        cache_path=settings.cache.path,
        courses_url=settings.api.courses_url,
        locations_url=settings.api.locations_url,
        ttl=settings.cache.ttl,
    )


def build_filters(args) -> Filters:
    """Translate filter arguments into :class:`Filters`.

    Raises:
        pydantic.ValidationError: On malformed time bounds.
    """
    if args.any_status:
        bookable: set[str] = set()
    elif args.status:
        bookable = set(args.status)
    else:
        bookable = {BookingStatus.BOOKABLE.value}
    return Filters(
        bookable=bookable,
        day=args.day,
        start=args.start,
        end=args.end,
        search_term=args.term,
    )


def _load_catalog(args, cli_overrides: dict[str, Any] | None = None) -> Catalog | None:
    """Load settings, build the catalog and load it.  None on failure."""
    settings = load_cli_settings(args, cli_overrides)
    if settings is None:
        return None

    try:
        filters = build_filters(args)
    except ValidationError as e:
        console.print(f"[red]Invalid filter:[/red] {e.errors()[0]['msg']}")
        return None

    with build_http_client(settings) as http_client:
        catalog = Catalog(
            gateway=build_gateway(settings, http_client),
            page_size=settings.page_size,
            search_weights=settings.search.weights,
            search_threshold=settings.search.threshold,
            filters=filters,
        )
        if not catalog.load():
            console.print("[red]Could not load courses.[/red] See the log for details.")
            return None
    return catalog


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def cmd_search(args) -> int:
    """Print one page of matching courses."""
    overrides = {"page_size": args.page_size} if args.page_size is not None else None
    catalog = _load_catalog(args, overrides)
    if catalog is None:
        return 1

    try:
        catalog.set_page(args.page)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    total = len(catalog.filtered_courses)
    pages = page_count(total, catalog.page_size)
    console.print(
        f"{total} courses, {len(catalog.filtered_course_events)} matching slots "
        f"(page {catalog.page + 1} of {pages})"
    )

    matching_slots: dict[str, list[CourseSlot]] = {}
    for event in catalog.filtered_course_events:
        matching_slots.setdefault(event.course.id, []).append(event.slot)

    table = Table(show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column("Course", style="bold")
    table.add_column("Provider")
    table.add_column("Slots")
    for course in catalog.paginated_courses:
        table.add_row(
            course.id,
            escape(course.name),
            course.provider or "-",
            "\n".join(escape(_describe_slot(slot)) for slot in matching_slots.get(course.id, [])),
        )
    console.print(table)
    return 0


def cmd_locations(args) -> int:
    """Print venues with the number of matching events."""
    catalog = _load_catalog(args)
    if catalog is None:
        return 1

    by_url = {location.url: location for location in catalog.locations}
    groups = catalog.filtered_course_events_by_location

    table = Table()
    table.add_column("Venue", style="bold")
    table.add_column("Events", justify="right")
    table.add_column("Courses", justify="right")
    table.add_column("Coordinates")
    for url, events in sorted(groups.items(), key=lambda item: -len(item[1])):
        location = by_url.get(url) or events[0].location
        table.add_row(
            escape(location.name),
            str(len(events)),
            str(len({event.course.id for event in events})),
            f"{location.lat:.4f}, {location.lon:.4f}",
        )
    console.print(f"{len(groups)} venues")
    console.print(table)
    return 0


def cmd_status(args) -> int:
    """Show where the cache lives and how old the snapshot is."""
    settings = load_cli_settings(args)
    if settings is None:
        return 1

    with build_http_client(settings) as http_client:
        gateway = build_gateway(settings, http_client)
        age = gateway.snapshot_age()

    console.print(f"Cache file: {gateway.cache_path}")
    console.print(f"Courses endpoint:   {gateway.courses_url}")
    console.print(f"Locations endpoint: {gateway.locations_url}")
    if age is None:
        console.print("No cache snapshot found.")
    else:
        state = "fresh" if age < gateway.ttl else "expired"
        console.print(f"Snapshot age: {_format_age(age)} ({state})")
    return 0


def cmd_clear_cache(args) -> int:
    """Delete the cache snapshot."""
    settings = load_cli_settings(args)
    if settings is None:
        return 1

    with build_http_client(settings) as http_client:
        gateway = build_gateway(settings, http_client)
        removed = gateway.clear()

    if removed:
        console.print(f"Removed {gateway.cache_path}")
    else:
        console.print(f"No cache snapshot at {gateway.cache_path}")
    return 0


# ----------------------------------------------------------------------
# Formatting
# ----------------------------------------------------------------------


def _describe_slot(slot: CourseSlot) -> str:
    if slot.time is not None:
        day = DAY_NAMES[slot.time.day] if slot.time.day is not None else slot.day_raw
        when = f"{day} {format_clock(slot.time.start)}-{format_clock(slot.time.end)}"
    else:
        when = " ".join(part for part in (slot.day_raw, slot.time_raw) if part) or "?"
    parts = [when]
    if slot.location is not None:
        parts.append(slot.location.name)
    if slot.prices:
        parts.append(f"{slot.prices[0]:.2f} €")
    if slot.bookable is not None:
        parts.append(slot.bookable.value)
    return " · ".join(parts)


def _format_age(age: timedelta) -> str:
    hours, remainder = divmod(int(age.total_seconds()), 3600)
    return f"{hours}h {remainder // 60}m"
