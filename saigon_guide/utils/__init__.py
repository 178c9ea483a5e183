"""Utility helpers for the Saigon Guide project."""

from .geo import COORDINATE_TOLERANCE, coordinates_match, parse_coordinate_text
from .formatting import format_coordinates, format_number
from .io import detect_encoding, ensure_directory

__all__ = [
    "COORDINATE_TOLERANCE",
    "coordinates_match",
    "parse_coordinate_text",
    "format_coordinates",
    "format_number",
    "detect_encoding",
    "ensure_directory",
]
