"""WSGI entry point serving the Saigon Guide admin API."""

from __future__ import annotations

import logging
import os

from saigon_guide import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()


if __name__ == "__main__":
    # Local development server; deploy behind a WSGI server instead.
    debug = os.environ.get("FLASK_DEBUG", "").lower() in {"1", "true", "yes", "on"}
    app.run(
        host=os.environ.get("SAIGON_GUIDE_HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", 5000)),
        debug=debug,
        use_reloader=debug,
    )
