"""Service layer exports."""

from .geocoding import ReverseGeocoder
from .kml_codec import decode, encode, parse
from .location_store import LocationStore, find_placemark
from .locks import RedisWriterLock, build_writer_lock
from .storage import KmlFileStorage

__all__ = [
    "decode",
    "encode",
    "parse",
    "LocationStore",
    "find_placemark",
    "ReverseGeocoder",
    "RedisWriterLock",
    "build_writer_lock",
    "KmlFileStorage",
]
