"""Domain models used throughout the Saigon Guide location store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..utils.geo import COORDINATE_TOLERANCE, coordinates_match
from .categories import DEFAULT_CATEGORY, resolve_category

# ExtendedData keys, in the order they are written to a placemark.
STRUCTURED_FIELDS: tuple[str, ...] = (
    "address",
    "phoneNumber",
    "rating",
    "descriptionUrl",
    "category",
    "blogSlug",
)


def _parse_float(value: object, field_name: str) -> float:
    if isinstance(value, bool) or value in (None, ""):
        raise ValueError(f"Missing numeric value for '{field_name}'")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{field_name}' must contain a numeric value") from exc


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_float(value: object, field_name: str) -> float | None:
    if value in (None, ""):
        return None
    return _parse_float(value, field_name)


@dataclass(frozen=True, slots=True)
class Coordinates:
    """A latitude/longitude pair in degrees."""

    lat: float
    lng: float

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Coordinates":
        if not isinstance(payload, Mapping):
            raise ValueError("coordinates must be an object with 'lat' and 'lng'")
        return cls(
            lat=_parse_float(payload.get("lat"), "lat"),
            lng=_parse_float(payload.get("lng"), "lng"),
        )

    def matches(self, other: "Coordinates", tolerance: float = COORDINATE_TOLERANCE) -> bool:
        """Return ``True`` when both points identify the same place."""
        return coordinates_match(self.lat, self.lng, other.lat, other.lng, tolerance=tolerance)

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(slots=True)
class LocationRecord:
    """Representation of a single point of interest stored as a KML placemark."""

    name: str
    coordinates: Coordinates
    description: str = ""
    address: str | None = None
    phone_number: str | None = None
    rating: float | None = None
    description_url: str | None = None
    blog_slug: str | None = None
    category: str = DEFAULT_CATEGORY

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "LocationRecord":
        """Build a record from the camelCase JSON shape exchanged with callers.

        Unknown categories are replaced by a guess from the description.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("location must be a JSON object")
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Field 'name' is required")
        if "coordinates" not in payload:
            raise ValueError("Field 'coordinates' is required")

        description = str(payload.get("description") or "")
        return cls(
            name=name.strip(),
            coordinates=Coordinates.from_dict(payload["coordinates"]),  # type: ignore[arg-type]
            description=description,
            address=_optional_str(payload.get("address")),
            phone_number=_optional_str(payload.get("phoneNumber")),
            rating=_optional_float(payload.get("rating"), "rating"),
            description_url=_optional_str(payload.get("descriptionUrl")),
            blog_slug=_optional_str(payload.get("blogSlug")),
            category=resolve_category(payload.get("category"), description),
        )

    def structured_fields(self) -> dict[str, object]:
        """Return the ExtendedData values keyed by their stored name."""
        return {
            "address": self.address,
            "phoneNumber": self.phone_number,
            "rating": self.rating,
            "descriptionUrl": self.description_url,
            "category": self.category,
            "blogSlug": self.blog_slug,
        }

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "phoneNumber": self.phone_number,
            "rating": self.rating,
            "descriptionUrl": self.description_url,
            "blogSlug": self.blog_slug,
            "coordinates": self.coordinates.as_dict(),
            "category": self.category,
        }


def coordinates_from_payload(payload: Mapping[str, object]) -> Coordinates:
    """Accept either a record (``{"coordinates": {...}}``) or a bare ``{lat, lng}``."""

    if not isinstance(payload, Mapping):
        raise ValueError("target must be a JSON object")
    nested = payload.get("coordinates")
    if nested is not None:
        return Coordinates.from_dict(nested)  # type: ignore[arg-type]
    return Coordinates.from_dict(payload)


@dataclass(slots=True)
class OperationResult:
    """Result descriptor returned by mutating store operations."""

    success: bool = True
    updated_count: int | None = None
    deleted_count: int | None = None

    def as_dict(self) -> dict:
        payload: dict[str, object] = {"success": self.success}
        if self.updated_count is not None:
            payload["updatedCount"] = self.updated_count
        if self.deleted_count is not None:
            payload["deletedCount"] = self.deleted_count
        return payload
