"""Custom exception hierarchy for the Saigon Guide location store."""

from __future__ import annotations


class LocationStoreError(RuntimeError):
    """Base class for failures raised by the location store."""

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def as_dict(self) -> dict:
        """Return a serializable representation."""
        payload = {"error": str(self)}
        if self.details:
            payload["details"] = self.details
        return payload


class ParseError(LocationStoreError):
    """Raised when the stored KML is not well-formed XML."""


class NotFoundError(LocationStoreError):
    """Raised when no placemark matches the requested coordinates."""


class NoMatchesError(NotFoundError):
    """Raised when a bulk update matched no placemark at all."""


class StorageError(LocationStoreError):
    """Raised when the backing KML file cannot be read or written."""


class GeocodingError(LocationStoreError):
    """Raised when the geocoding service rejects our requests."""
