"""Clinic calendar package exposing the appointment store's Flask application factory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from flask import Flask, jsonify

from .blueprints import register_blueprints
from .calendar.catalog import Catalog, parse_practitioners, parse_types
from .cli import register_cli
from .extensions import init_extensions
from .models import ensure_base_tables
from .services.security import init_security

APP_HOST = "127.0.0.1"
APP_PORT = 8080


def _data_root(instance_path: Path, override: Path | None = None) -> Path:
    root = override if override else instance_path
    root.mkdir(parents=True, exist_ok=True)
    return root


def create_app(test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)

    db_override = os.getenv("CLINIC_DB_PATH")
    override_root = Path(db_override).parent if db_override else None
    data_root = _data_root(Path(app.instance_path), override_root)

    if db_override:
        db_path = Path(db_override)
    else:
        db_path = data_root / "appointments.db"

    catalog = Catalog(
        practitioners=parse_practitioners(os.getenv("CLINIC_PRACTITIONERS")),
        appointment_types=parse_types(os.getenv("CLINIC_APPOINTMENT_TYPES")),
    )

    app.config.update(
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}",
        SQLALCHEMY_ENGINE_OPTIONS={"connect_args": {"check_same_thread": False}},
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        RATELIMIT_HEADERS_ENABLED=True,
        DATA_ROOT=str(data_root),
        APPOINTMENT_CATALOG=catalog,
        LOG_LEVEL=os.getenv("CLINIC_LOG_LEVEL", "INFO").upper(),
    )
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]), logging.INFO))

    init_extensions(app)
    register_blueprints(app)
    init_security(app)
    register_cli(app)

    with app.app_context():
        ensure_base_tables()

    @app.errorhandler(400)
    def handle_bad_request(e):
        app.logger.info("Bad request: %s", e)
        return jsonify({"success": False, "errors": ["Bad request - check request format"]}), 400

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"success": False, "errors": ["Not found"]}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"success": False, "errors": ["Method not allowed"]}), 405

    return app


__all__ = ["create_app", "APP_HOST", "APP_PORT"]
