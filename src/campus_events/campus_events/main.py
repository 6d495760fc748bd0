from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import get_settings_module
from .container import build_container
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema, list_tables
from .common.web import error_response

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .events.controller import register as register_events
from .food_stalls.controller import register as register_food_stalls
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

_SETTING_NAMES = (
    "SECRET_KEY",
    "STORE_BACKEND",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "DB_CONFIG",
    "DEBUG",
    "LOG_LEVEL",
    "AUTO_INIT_DB",
    "AUTO_SEED_DB",
    "PAYMENT_FAILURE_RATE",
    "REQUIRE_REGISTRATION_FOR_ATTENDANCE",
)


def load_settings(overrides: Optional[dict] = None) -> dict:
    settings_module = get_settings_module()
    module = importlib.import_module(settings_module)
    settings = {name: getattr(module, name, None) for name in _SETTING_NAMES}
    settings["SETTINGS_MODULE"] = settings_module
    settings.update(overrides or {})
    return settings


def create_app(overrides: Optional[dict] = None) -> Flask:
    load_dotenv(override=False)
    settings = load_settings(overrides)

    logging.basicConfig(
        level=str(settings.get("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = settings["SECRET_KEY"]
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    logger.info("settings=%s backend=%s", settings["SETTINGS_MODULE"], settings["STORE_BACKEND"])

    backend = StoreBackend(str(settings.get("STORE_BACKEND") or StoreBackend.SUPABASE.value).lower())
    db_config = settings.get("DB_CONFIG") or {}
    if backend == StoreBackend.MYSQL and settings.get("AUTO_INIT_DB"):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("MySQL schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        backend=backend,
        supabase_url=settings.get("SUPABASE_URL"),
        supabase_key=settings.get("SUPABASE_KEY"),
        db_config=db_config,
        payment_failure_rate=float(settings.get("PAYMENT_FAILURE_RATE") or 0.0),
        require_registration_for_attendance=bool(settings.get("REQUIRE_REGISTRATION_FOR_ATTENDANCE")),
        seed_demo=bool(settings.get("AUTO_SEED_DB")),
    )
    app.extensions["campus_events"] = container

    register_users(app, container)
    register_events(app, container)
    register_attendance(app, container)
    register_food_stalls(app, container)
    register_analytics(app, container)

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "message": exc.description}), exc.code
        return error_response(exc)

    return app
