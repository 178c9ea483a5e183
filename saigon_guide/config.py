"""Runtime configuration for the Saigon Guide project."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

LOCK_BACKENDS: tuple[str, ...] = ("none", "thread", "redis")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class StoreConfig:
    """Where the KML file lives and how it is written."""

    kml_path: Path = Path("public/maps/saigon-food.kml")
    encoding: str = "utf-8-sig"
    atomic_writes: bool = False
    lock_backend: str = "none"
    redis_url: str = "redis://localhost:6379/0"
    lock_name: str = "saigon-guide:kml-writer"
    lock_timeout: int = 30  # seconds

    def __post_init__(self) -> None:
        if self.lock_backend not in LOCK_BACKENDS:
            raise ValueError(
                f"Unknown lock backend {self.lock_backend!r}; expected one of {', '.join(LOCK_BACKENDS)}"
            )


@dataclass(frozen=True)
class ApiConfig:
    """HTTP layer settings."""

    admin_password: str | None = None
    max_content_mb: int = 5

    @property
    def max_upload_bytes(self) -> int:
        """Maximum request payload in bytes."""
        return self.max_content_mb * 1024 * 1024


@dataclass(frozen=True)
class GeocodingConfig:
    """Reverse geocoding used to fill in missing addresses."""

    api_key: str | None = None
    timeout: int = 10  # seconds
    request_interval: float = 0.2  # seconds between requests


@dataclass(frozen=True)
class AppConfig:
    """High level runtime configuration values."""

    store: StoreConfig = StoreConfig()
    api: ApiConfig = ApiConfig()
    geocoding: GeocodingConfig = GeocodingConfig()

    @classmethod
    def from_env(cls) -> "AppConfig":
        store = StoreConfig(
            kml_path=Path(os.environ.get("SAIGON_GUIDE_KML_PATH", StoreConfig.kml_path)),
            encoding=os.environ.get("SAIGON_GUIDE_KML_ENCODING", StoreConfig.encoding),
            atomic_writes=_env_flag("SAIGON_GUIDE_ATOMIC_WRITES", StoreConfig.atomic_writes),
            lock_backend=os.environ.get("SAIGON_GUIDE_LOCK_BACKEND", StoreConfig.lock_backend),
            redis_url=os.environ.get("SAIGON_GUIDE_REDIS_URL", StoreConfig.redis_url),
            lock_name=os.environ.get("SAIGON_GUIDE_LOCK_NAME", StoreConfig.lock_name),
            lock_timeout=int(
                os.environ.get("SAIGON_GUIDE_LOCK_TIMEOUT", StoreConfig.lock_timeout)
            ),
        )
        api = ApiConfig(
            admin_password=os.environ.get("SAIGON_GUIDE_ADMIN_PASSWORD") or None,
            max_content_mb=int(
                os.environ.get("SAIGON_GUIDE_MAX_CONTENT_MB", ApiConfig.max_content_mb)
            ),
        )
        geocoding = GeocodingConfig(
            api_key=os.environ.get("SAIGON_GUIDE_GEOCODING_API_KEY") or None,
            timeout=int(os.environ.get("SAIGON_GUIDE_GEOCODING_TIMEOUT", GeocodingConfig.timeout)),
            request_interval=float(
                os.environ.get("SAIGON_GUIDE_GEOCODING_INTERVAL", GeocodingConfig.request_interval)
            ),
        )
        return cls(store=store, api=api, geocoding=geocoding)


APP_CONFIG = AppConfig.from_env()
