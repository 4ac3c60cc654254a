#!/usr/bin/env python3
"""
sheet2db - Spreadsheet / CSV → MySQL / Oracle table importer
=============================================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

from flask import Flask

import config
from api import api_bp


def create_app() -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_MB * 1024 * 1024

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    return app


def setup_logging() -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)


def main():
    setup_logging()

    print("=" * 56)
    print("  sheet2db - Table Import Service")
    print("=" * 56)

    app = create_app()

    print(f"  Batch size: {config.BATCH_SIZE} rows")
    print(f"  Uploads:    {config.UPLOAD_DIR}")
    print(f"\n  http://{config.HOST}:{config.PORT}/api/v1")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
