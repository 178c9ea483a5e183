"""Flask application factory."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from ..config import APP_CONFIG, AppConfig
from ..core.exceptions import LocationStoreError, NotFoundError
from ..services import LocationStore
from .routes import api_bp

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None, *, store: LocationStore | None = None) -> Flask:
    """Create and configure the Flask application."""

    config = config or APP_CONFIG

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.api.max_upload_bytes
    app.config["ADMIN_PASSWORD"] = config.api.admin_password

    CORS(app)
    app.register_blueprint(api_bp, url_prefix="/api")

    app.extensions["location_store"] = store or LocationStore.from_config(config.store)

    @app.errorhandler(LocationStoreError)
    def handle_store_error(exc: LocationStoreError):
        status = 404 if isinstance(exc, NotFoundError) else 500
        if status == 500:
            logger.error("Location store failure: %s", exc)
        return jsonify(exc.as_dict()), status

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    logger.info("Flask application initialised")
    return app
