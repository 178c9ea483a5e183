"""Formatting helpers."""

from __future__ import annotations


def format_number(value: float | int) -> str:
    """Return the shortest text form of ``value`` (``4.0`` -> ``"4"``)."""

    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_coordinates(lat: float, lng: float, altitude: float = 0) -> str:
    """Return a KML ``"lng,lat,alt"`` triple."""

    return f"{format_number(lng)},{format_number(lat)},{format_number(altitude)}"
