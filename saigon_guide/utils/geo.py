"""Geospatial helpers."""

from __future__ import annotations

import math

# Two points closer than this on both axes are the same place.
COORDINATE_TOLERANCE = 1e-7


def coordinates_match(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    *,
    tolerance: float = COORDINATE_TOLERANCE,
) -> bool:
    """Return ``True`` when the two coordinates identify the same location."""

    return abs(lat1 - lat2) < tolerance and abs(lng1 - lng2) < tolerance


def parse_coordinate_text(text: str | None) -> tuple[float, float] | None:
    """Parse a KML ``"lng,lat[,alt]"`` triple into ``(lat, lng)``.

    Returns ``None`` for missing, short or non-numeric input.
    """

    if not text:
        return None
    parts = text.strip().split(",")
    if len(parts) < 2:
        return None
    try:
        lng = float(parts[0])
        lat = float(parts[1])
    except ValueError:
        return None
    if math.isnan(lat) or math.isnan(lng):
        return None
    return lat, lng
