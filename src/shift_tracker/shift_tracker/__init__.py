"""Shift tracker package.

Employees clock in and out of shifts and breaks with a location; administrators
review and correct the records. Organized by feature modules (shifts,
statistics, notifications, admin) with a thin Flask controller layer over
service/repository layers.
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .admin.controller import register as register_admin
from .common.web import register_error_handlers
from .container import build_container
from .core.logging_config import configure_logging
from .database.bootstrap import apply_schema, list_tables
from .notifications.controller import register as register_notifications
from .shifts.controller import register as register_shifts
from .statistics.controller import register as register_statistics

logger = logging.getLogger(__name__)


def create_app(settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")
    storage_backend = getattr(settings, "STORAGE_BACKEND", "mysql")

    logger.info(
        "settings=%s storage=%s db=%s@%s:%s/%s",
        settings_module, storage_backend,
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    if storage_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, storage_backend=storage_backend)
    app.extensions["shift_tracker"] = container

    register_error_handlers(app)
    register_shifts(app, container)
    register_statistics(app, container)
    register_notifications(app, container)
    register_admin(app, container)

    return app
