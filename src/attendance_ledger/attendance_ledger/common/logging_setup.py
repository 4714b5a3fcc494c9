from __future__ import annotations

import logging
import logging.handlers
import os

from flask import Flask

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
# Root of this package's module loggers (getLogger(__name__) everywhere).
APP_LOGGER = __name__.rsplit(".common.", 1)[0]
SECURITY_LOGGER = "attendance_ledger.security"


def configure_logging(app: Flask, settings) -> None:
    """Console logging always; rotating application/security files when LOG_DIR is set."""

    level = getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level)
    # Avoid duplicate handlers when create_app() runs more than once (tests).
    app_logger.handlers.clear()

    security_logger = logging.getLogger(SECURITY_LOGGER)
    security_logger.setLevel(min(level, logging.INFO))
    security_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    app_logger.addHandler(console)
    security_logger.addHandler(console)
    security_logger.propagate = False

    log_dir = getattr(settings, "LOG_DIR", "") or ""
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        app_file = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "application.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        app_file.setFormatter(formatter)
        app_logger.addHandler(app_file)

        security_file = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "security.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        security_file.setFormatter(formatter)
        security_logger.addHandler(security_file)

    app.logger.setLevel(level)
    app_logger.debug("logging configured (level=%s, dir=%s)", logging.getLevelName(level), log_dir or "-")
