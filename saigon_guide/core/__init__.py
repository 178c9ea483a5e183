"""Core domain primitives for the Saigon Guide location store."""

from .categories import CATEGORIES, DEFAULT_CATEGORY, classify_category
from .exceptions import (
    GeocodingError,
    LocationStoreError,
    NoMatchesError,
    NotFoundError,
    ParseError,
    StorageError,
)
from .models import (
    STRUCTURED_FIELDS,
    Coordinates,
    LocationRecord,
    OperationResult,
    coordinates_from_payload,
)

__all__ = [
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "classify_category",
    "GeocodingError",
    "LocationStoreError",
    "NoMatchesError",
    "NotFoundError",
    "ParseError",
    "StorageError",
    "STRUCTURED_FIELDS",
    "Coordinates",
    "LocationRecord",
    "OperationResult",
    "coordinates_from_payload",
]
