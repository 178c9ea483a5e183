"""Reverse geocoding of placemark coordinates into street addresses."""

from __future__ import annotations

import json
import logging
import time
from typing import Dict, Optional
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from ..core import Coordinates, GeocodingError

LOGGER = logging.getLogger(__name__)

# Statuses that will fail the same way for every request.
_FATAL_STATUSES = {"REQUEST_DENIED", "INVALID_REQUEST", "OVER_QUERY_LIMIT", "OVER_DAILY_LIMIT"}


class _HTTPClient:
    """Small wrapper around :func:`urllib.request.urlopen` with headers."""

    _DEFAULT_HEADERS = {"User-Agent": "SaigonGuide/0.1"}

    def get_json(self, url: str, params: Dict[str, object], timeout: int) -> Dict[str, object]:
        query = urllib_parse.urlencode(params)
        request = urllib_request.Request(f"{url}?{query}", headers=self._DEFAULT_HEADERS)
        with urllib_request.urlopen(request, timeout=timeout) as response:
            data = response.read()
        return json.loads(data.decode("utf-8"))


class ReverseGeocoder:
    """Resolve coordinates to a formatted address with the Google Geocoding API.

    Lookups are cached per coordinate pair. Network failures and empty results
    give ``None``; a rejected API key or exhausted quota raises
    :class:`GeocodingError` because every later request would fail too.
    """

    geocode_url = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: str,
        http_client: Optional[_HTTPClient] = None,
        *,
        timeout: int = 10,
        request_interval: float = 0.2,
    ):
        if not api_key:
            raise ValueError("A geocoding API key is required")
        self.api_key = api_key
        self.http_client = http_client or _HTTPClient()
        self.timeout = timeout
        self.request_interval = request_interval
        self._cache: Dict[Coordinates, Optional[str]] = {}

    def lookup(self, coordinates: Coordinates) -> Optional[str]:
        if coordinates in self._cache:
            return self._cache[coordinates]
        if self.request_interval > 0:
            time.sleep(self.request_interval)
        address = self._reverse(coordinates)
        self._cache[coordinates] = address
        return address

    def _reverse(self, coordinates: Coordinates) -> Optional[str]:
        params = {"latlng": f"{coordinates.lat},{coordinates.lng}", "key": self.api_key}
        try:
            payload = self.http_client.get_json(self.geocode_url, params, self.timeout)
        except (urllib_error.URLError, ValueError) as exc:  # pragma: no cover - network errors
            LOGGER.warning("Reverse geocoding failed for %s,%s: %s", coordinates.lat, coordinates.lng, exc)
            return None
        if not isinstance(payload, dict):
            return None

        status = payload.get("status")
        if status in _FATAL_STATUSES:
            raise GeocodingError(
                str(payload.get("error_message") or f"Geocoding request rejected: {status}"),
                details={"status": status},
            )

        results = payload.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            address = results[0].get("formatted_address")
            if address:
                return str(address)
        LOGGER.debug("No address found for %s,%s", coordinates.lat, coordinates.lng)
        return None
