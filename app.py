#!/usr/bin/env python3
"""
SPLASH'N'GO! Store Ordering — Application Entry Point
Creates Flask app and registers the ordering API Blueprint.

For gunicorn: gunicorn "app:create_app()"
"""

import os
import logging
from flask import Flask

from logging_config import setup_logging


def create_app(testing: bool = False):
    """Application factory."""
    if not testing:
        setup_logging()

    app = Flask(__name__)

    from src.core.secrets import get_key, startup_check
    app.secret_key = get_key("secret_key")
    app.config["TESTING"] = testing
    app.json.ensure_ascii = False

    # ── Config report — missing SHEET_ID / credentials are logged, not fatal ──
    report = startup_check()
    if report["warnings"]:
        logging.getLogger("orders_app").warning(
            "STARTUP: %d config warnings — sheet proxy will serve fallback data",
            len(report["warnings"]))

    # Register the ordering blueprint (all routes)
    from src.api.dashboard import bp
    app.register_blueprint(bp)

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
