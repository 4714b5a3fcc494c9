from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .auth.access import install_principal_loader
from .common.logging_setup import configure_logging
from .common.responses import fail
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .attendance.controller import register as register_attendance
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    """Flask application factory.

    ``container`` lets tests inject in-memory repositories; the database is
    left untouched in that case.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(app, settings)

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            qr_secret=getattr(settings, "QR_SECRET", ""),
            qr_ttl_seconds=int(getattr(settings, "QR_TOKEN_TTL_SECONDS", 300)),
        )

    app.extensions["attendance_ledger"] = container
    install_principal_loader(app)

    register_attendance(app, container)
    register_reports(app, container)

    @app.errorhandler(404)
    def _not_found(_e):
        return fail("Not found", 404)

    @app.errorhandler(405)
    def _method_not_allowed(_e):
        return fail("Method not allowed", 405)

    return app
