"""HTTP interface for the location store."""

from .app_factory import create_app

__all__ = ["create_app"]
