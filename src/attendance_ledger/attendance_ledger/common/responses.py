from __future__ import annotations

import logging
from typing import Any, Optional

from flask import jsonify

from ..core.exceptions import DomainError, StoreUnavailableError, TokenError, ValidationError

logger = logging.getLogger(__name__)


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int = 400, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def error_response(exc: Exception):
    """Translate an exception raised by a service into a JSON error."""

    if isinstance(exc, StoreUnavailableError):
        logger.error("store unavailable: %s", exc)
        return fail("Server error", 500)

    if isinstance(exc, ValidationError):
        errors = [{"field": exc.field, "message": str(exc)}] if exc.field else []
        return fail(str(exc), exc.http_status, errors=errors)

    if isinstance(exc, TokenError):
        return fail(exc.public_message, exc.http_status)

    if isinstance(exc, DomainError):
        return fail(str(exc), exc.http_status)

    logger.exception("unhandled error", exc_info=exc)
    return fail("Server error", 500)
