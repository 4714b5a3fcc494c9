from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

import jwt
from flask import Flask, g, request, session

from ..common.responses import error_response
from ..core.constants import ACCESS_TOKEN_TTL_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import Principal

security_logger = logging.getLogger("attendance_ledger.security")

_ALGORITHM = "HS256"


def issue_access_token(principal: Principal, secret: str, *, minutes: int = ACCESS_TOKEN_TTL_MINUTES) -> str:
    """Mint an access token the way the upstream auth service does.

    Only dev tooling and tests call this; session issuance lives outside this service.
    """

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(principal.employee_id),
        "role": principal.role.value,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret: str) -> Optional[Principal]:
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM], options={"require": ["exp", "sub"]})
        return Principal(employee_id=int(payload["sub"]), role=Role(payload.get("role") or Role.EMPLOYEE.value))
    except (jwt.InvalidTokenError, ValueError, TypeError) as e:
        security_logger.info("rejected access token: %s", e)
        return None


def _principal_from_session() -> Optional[Principal]:
    if "employee_id" not in session:
        return None
    try:
        return Principal(employee_id=int(session["employee_id"]), role=Role(session.get("role") or Role.EMPLOYEE.value))
    except (TypeError, ValueError):
        return None


def install_principal_loader(app: Flask) -> None:
    """Attach ``g.principal`` from a Bearer access token, falling back to the session."""

    @app.before_request
    def _load_principal():
        g.principal = None
        auth_header = request.headers.get("Authorization") or ""
        if auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1].strip()
            if token:
                g.principal = decode_access_token(token, app.secret_key)
            return
        g.principal = _principal_from_session()


def current_principal() -> Principal:
    return g.principal


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if getattr(g, "principal", None) is None:
            return error_response(AuthenticationError("Authentication required"))
        return view(*args, **kwargs)

    return wrapper


def privileged_required(view):
    """Allow only admin/hr principals."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            return error_response(AuthenticationError("Authentication required"))
        if not principal.is_privileged:
            security_logger.info(
                "forbidden: employee %s (%s) on %s %s",
                principal.employee_id, principal.role.value, request.method, request.path,
            )
            return error_response(AuthorizationError("Access denied"))
        return view(*args, **kwargs)

    return wrapper
