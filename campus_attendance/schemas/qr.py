# campus_attendance/schemas/qr.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class QRFailureReason(str, Enum):
    MALFORMED = "MALFORMED"
    EXPIRED = "EXPIRED"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"


class QRToken(BaseModel):
    """Signed attendance token embedded in the QR image.

    Field names and types are the wire format of printed QR codes and must
    not change: ``timestamp`` and ``expiryTime`` are epoch milliseconds,
    ``hash`` is the hex HMAC-SHA256.
    """

    registrationId: str
    eventId: str
    participantEmail: str
    timestamp: int
    expiryTime: int
    hash: str


class QRVerification(BaseModel):
    """Result of verifying a scanned token."""

    is_valid: bool
    token: Optional[QRToken] = None
    error_code: Optional[QRFailureReason] = None
    error_message: Optional[str] = None


class QRCodeImageResponse(BaseModel):
    qrCodeImage: str  # data:image/png;base64,...
    eventId: str
