"""HTTP client wrapper with retry logic and JSON envelope unwrapping."""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger("unisport")


class PayloadError(ValueError):
    """The response body is not a ``{"data": [...]}`` envelope."""


class HttpClient:
    """Thin wrapper around :class:`requests.Session` with automatic retries
    on transient errors and a configurable ``User-Agent`` header.

    Usage::

        with HttpClient(user_agent="unisport/0.1.0") as client:
            courses = client.get_data("https://api.unisport.berlin/classes")
    """

    def __init__(
        self,
        user_agent: str = "unisport/0.1.0",
        timeout: tuple[float, float] = (10, 30),
        max_retries: int = 3,
    ) -> None:
        self.timeout = timeout

        self._session = requests.Session()
        self._session.headers["User-Agent"] = user_agent
        self._session.headers["Accept"] = "application/json"

        # Configure retry strategy for transient server errors.
        retry = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, url: str, **kwargs) -> requests.Response:
        """Perform a GET request.

        Raises :class:`requests.HTTPError` on 4xx/5xx responses (after
        retries are exhausted for 5xx).
        """
        kwargs.setdefault("timeout", self.timeout)
        response = self._session.get(url, **kwargs)
        response.raise_for_status()
        return response

    def get_data(self, url: str, **kwargs) -> list[Any]:
        """GET *url* and return the list stored under the ``data`` key.

        Raises:
            requests.RequestException: On network or HTTP errors.
            PayloadError: If the body is not JSON or has no ``data`` list.
        """
        response = self.get(url, **kwargs)
        try:
            body = response.json()
        except ValueError as exc:
            raise PayloadError(f"Response from {url} is not JSON") from exc

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise PayloadError(f"Response from {url} has no 'data' list")

        logger.debug(
            "Fetched payload", extra={"url": url, "records": len(body["data"])}
        )
        return body["data"]

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    # ------------------------------------------------------------------
    # Context-manager protocol
    # ------------------------------------------------------------------

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
