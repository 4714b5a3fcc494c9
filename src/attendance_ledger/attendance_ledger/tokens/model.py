from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import QRAction


@dataclass(frozen=True)
class QRTokenClaims:
    """What a validated QR action token resolves to."""

    employee_id: int
    action: QRAction


@dataclass(frozen=True)
class IssuedQRToken:
    token: str
    action: QRAction
    expires_in: int
