from __future__ import annotations

import hashlib
import hmac
import io
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import qrcode

from ..core.constants import QR_SECRET_CONTEXT, QR_TOKEN_TTL_SECONDS, QR_TOKEN_TYPE
from ..core.enums import QRAction
from ..core.exceptions import ExpiredTokenError, InvalidActionError, MalformedTokenError, ValidationError
from .model import IssuedQRToken, QRTokenClaims

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("attendance_ledger.security")

_ALGORITHM = "HS256"


def derive_qr_secret(primary_secret: str, explicit_secret: Optional[str] = None) -> str:
    """Return the key used to sign QR action tokens.

    An explicitly configured secret wins. Otherwise the key is an HMAC of a fixed
    context string under the primary auth secret, so neither key reveals the other.
    """

    if explicit_secret:
        return explicit_secret
    if not primary_secret:
        raise ValueError("a primary secret is required to derive the QR secret")
    return hmac.new(primary_secret.encode("utf-8"), QR_SECRET_CONTEXT, hashlib.sha256).hexdigest()


def _parse_action(value: object, message: str) -> QRAction:
    try:
        return QRAction.parse(value)
    except ValueError:
        raise InvalidActionError(message, field="action")


class QRTokenService:
    """Issues and validates short-lived signed tokens binding an employee to one action.

    Validation is purely cryptographic plus an expiry check. There is no
    server-side store, so a token stays usable until it expires; the ledger's
    duplicate check-in/out guards make a replay fail.
    """

    def __init__(self, secret: str, *, default_ttl_seconds: int = QR_TOKEN_TTL_SECONDS):
        if not secret:
            raise ValueError("QR token secret must not be empty")
        self._secret = secret
        self._default_ttl = int(default_ttl_seconds)

    @property
    def default_ttl_seconds(self) -> int:
        return self._default_ttl

    def issue(
        self,
        employee_id: int,
        action: QRAction | str,
        ttl_seconds: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> IssuedQRToken:
        qr_action = _parse_action(action, "Invalid action")
        ttl = self._default_ttl if ttl_seconds is None else int(ttl_seconds)
        if ttl <= 0:
            raise ValidationError("ttl_seconds must be positive", field="ttl_seconds")

        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(int(employee_id)),
            "action": qr_action.value,
            "typ": QR_TOKEN_TYPE,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=ttl),
        }
        token = jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        logger.debug("QR token issued for employee %s (%s, ttl=%ss)", employee_id, qr_action.value, ttl)
        return IssuedQRToken(token=token, action=qr_action, expires_in=ttl)

    def validate(self, token: str) -> QRTokenClaims:
        if not token or not isinstance(token, str):
            raise MalformedTokenError("Token required")

        try:
            payload = jwt.decode(
                token.strip(),
                self._secret,
                algorithms=[_ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            security_logger.info("expired QR token presented")
            raise ExpiredTokenError("QR token expired") from e
        except jwt.InvalidTokenError as e:
            security_logger.warning("malformed QR token presented: %s", e)
            raise MalformedTokenError("QR token invalid") from e

        if payload.get("typ") != QR_TOKEN_TYPE:
            security_logger.warning("token of type %r presented as QR token", payload.get("typ"))
            raise MalformedTokenError("QR token invalid")

        try:
            employee_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise MalformedTokenError("QR token invalid") from e

        action = _parse_action(payload.get("action"), "Invalid token payload")
        return QRTokenClaims(employee_id=employee_id, action=action)

    @staticmethod
    def render_png(token: str) -> bytes:
        """Render a token as a PNG QR code for kiosk scanners."""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=8,
            border=2,
        )
        qr.add_data(token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
