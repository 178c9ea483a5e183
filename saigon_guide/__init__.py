"""Top-level package for the Saigon Guide location store."""

from .api.app_factory import create_app
from .services.location_store import LocationStore

__all__ = ["create_app", "LocationStore"]
