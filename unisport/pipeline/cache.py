"""Time-boxed snapshot cache in front of the provider API."""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable

from unisport.config import DEFAULT_COURSES_URL, DEFAULT_LOCATIONS_URL
from unisport.net.http_client import HttpClient
from unisport.utils.file_utils import atomic_json_write, read_json, remove_file

logger = logging.getLogger("unisport")

DEFAULT_TTL = timedelta(hours=24)

RawData = tuple[list[Any], list[Any]]


class CacheGateway:
    """Serve raw course and location data from a snapshot file or the API.

    The snapshot is a single JSON document::

        {"courses": [...], "locations": [...], "timestamp": <epoch millis>}

    It is used while younger than *ttl*.  A missing, stale, unreadable or
    malformed snapshot is a plain cache miss: both endpoints are fetched
    concurrently and the snapshot is overwritten with the fresh pair.
    Fetch errors propagate to the caller.
    """

    def __init__(
        self,
        http_client: HttpClient,
        cache_path: Path,
        courses_url: str = DEFAULT_COURSES_URL,
        locations_url: str = DEFAULT_LOCATIONS_URL,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.http_client = http_client
        self.cache_path = Path(cache_path)
        self.courses_url = courses_url
        self.locations_url = locations_url
        self.ttl = ttl
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def acquire_raw_data(self) -> RawData:
        """Return ``(raw_courses, raw_locations)``, from cache if fresh."""
        cached = self.read_snapshot()
        if cached is not None:
            logger.info(
                "Serving courses from cache",
                extra={"cache_path": str(self.cache_path)},
            )
            return cached

        courses, locations = self.fetch()
        self.write_snapshot(courses, locations)
        return courses, locations

    def fetch(self) -> RawData:
        """Fetch both endpoints concurrently; either failure propagates."""
        logger.info(
            "Fetching courses from network",
            extra={
                "courses_url": self.courses_url,
                "locations_url": self.locations_url,
            },
        )
        with ThreadPoolExecutor(max_workers=2) as executor:
            courses_future = executor.submit(
                self.http_client.get_data, self.courses_url
            )
            locations_future = executor.submit(
                self.http_client.get_data, self.locations_url
            )
            return courses_future.result(), locations_future.result()

    def read_snapshot(self) -> RawData | None:
        """Return the cached pair, or None on any kind of cache miss."""
        try:
            snapshot = read_json(self.cache_path)
        except FileNotFoundError:
            logger.debug("No cache snapshot", extra={"cache_path": str(self.cache_path)})
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.info(
                "Ignoring unreadable cache snapshot",
                extra={"cache_path": str(self.cache_path), "error": str(exc)},
            )
            return None

        if not isinstance(snapshot, dict):
            logger.info("Ignoring malformed cache snapshot")
            return None

        courses = snapshot.get("courses")
        locations = snapshot.get("locations")
        timestamp = snapshot.get("timestamp")
        if (
            not isinstance(courses, list)
            or not isinstance(locations, list)
            or not isinstance(timestamp, (int, float))
            or isinstance(timestamp, bool)
        ):
            logger.info("Ignoring malformed cache snapshot")
            return None

        age = self._age(timestamp)
        if age >= self.ttl:
            logger.info(
                "Cache snapshot expired",
                extra={"age_seconds": int(age.total_seconds())},
            )
            return None

        return courses, locations

    def write_snapshot(self, courses: list[Any], locations: list[Any]) -> None:
        """Persist *courses* and *locations* with the current timestamp."""
        snapshot = {
            "courses": courses,
            "locations": locations,
            "timestamp": int(self._clock() * 1000),
        }
        try:
            atomic_json_write(self.cache_path, snapshot)
        except OSError as exc:
            logger.warning(
                "Failed to write cache snapshot",
                extra={"cache_path": str(self.cache_path), "error": str(exc)},
            )

    def clear(self) -> bool:
        """Remove the snapshot.  Returns True if one was present."""
        removed = remove_file(self.cache_path)
        if removed:
            logger.info("Cleared cache snapshot", extra={"cache_path": str(self.cache_path)})
        return removed

    def snapshot_age(self) -> timedelta | None:
        """Age of the stored snapshot, or None if there is no usable one."""
        try:
            snapshot = read_json(self.cache_path)
        except (OSError, json.JSONDecodeError):
            return None
        timestamp = snapshot.get("timestamp") if isinstance(snapshot, dict) else None
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            return None
        return self._age(timestamp)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _age(self, timestamp_ms: float) -> timedelta:
        return timedelta(milliseconds=self._clock() * 1000 - timestamp_ms)
