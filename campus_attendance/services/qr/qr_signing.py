"""
HMAC-signed attendance tokens embedded in registration QR codes.

Token format (JSON, stable across deploys since codes are printed):

    {registrationId, eventId, participantEmail, timestamp, expiryTime, hash}

``timestamp`` and ``expiryTime`` are epoch milliseconds. ``hash`` is the
hex HMAC-SHA256 of "registrationId:eventId:participantEmail:timestamp"
keyed with ``QR_SECRET``. The expiry is not part of the signed message, so
verification also rejects tokens whose validity window is longer than the
configured TTL.
"""

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from campus_attendance.core.audit import AuditAction, audit_logger
from campus_attendance.core.config import settings
from campus_attendance.schemas.qr import QRFailureReason, QRToken, QRVerification

logger = logging.getLogger(__name__)

# Used only when QR_SECRET is unset. Codes signed with it are forgeable.
FALLBACK_QR_SECRET = "campus-attendance-insecure-fallback-secret"

_REQUIRED_STRING_FIELDS = ("registrationId", "eventId", "participantEmail", "hash")
_REQUIRED_INT_FIELDS = ("timestamp", "expiryTime")

_fallback_warned = False


def get_qr_secret() -> str:
    """Return the signing secret, warning once per process on the fallback."""
    global _fallback_warned

    if settings.QR_SECRET:
        return settings.QR_SECRET

    if not _fallback_warned:
        _fallback_warned = True
        logger.warning(
            "SECURITY WARNING: QR_SECRET is not set; QR codes are signed with "
            "the built-in fallback secret and can be forged. Set QR_SECRET."
        )
        audit_logger.log(
            action=AuditAction.WEAK_QR_SECRET,
            resource_type="qr_secret",
            success=False,
            error="QR_SECRET not configured; using fallback secret",
            details={"env": settings.ENV},
        )
    return FALLBACK_QR_SECRET


def _to_epoch_ms(now: Optional[datetime]) -> int:
    now = now or datetime.now(timezone.utc)
    return int(now.timestamp() * 1000)


def _ttl_ms() -> int:
    return settings.QR_TOKEN_TTL_HOURS * 60 * 60 * 1000


def compute_signature(
    registration_id: str, event_id: str, participant_email: str, timestamp: int
) -> str:
    message = f"{registration_id}:{event_id}:{participant_email}:{timestamp}"
    return hmac.new(
        get_qr_secret().encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def mint_qr_token(
    registration_id: str,
    event_id: str,
    participant_email: str,
    now: Optional[datetime] = None,
) -> QRToken:
    """Create a signed token valid for QR_TOKEN_TTL_HOURS from ``now``."""
    timestamp = _to_epoch_ms(now)
    return QRToken(
        registrationId=registration_id,
        eventId=event_id,
        participantEmail=participant_email,
        timestamp=timestamp,
        expiryTime=timestamp + _ttl_ms(),
        hash=compute_signature(registration_id, event_id, participant_email, timestamp),
    )


def serialize_qr_token(token: Union[QRToken, dict]) -> str:
    """Compact JSON string that goes into the QR image."""
    if isinstance(token, QRToken):
        token = token.model_dump()
    return json.dumps(token, separators=(",", ":"))


def parse_qr_payload(raw: Any) -> Optional[dict]:
    """Decode a scanned payload. Returns None unless it is a JSON object."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def _invalid(reason: QRFailureReason, message: str, token: Optional[QRToken] = None) -> QRVerification:
    return QRVerification(
        is_valid=False, token=token, error_code=reason, error_message=message
    )


def verify_qr_token(payload: Any, now: Optional[datetime] = None) -> QRVerification:
    """
    Verify a decoded token.

    Checks run in a fixed order: shape (MALFORMED), expiry (EXPIRED), then
    signature and validity window (SIGNATURE_MISMATCH).
    """
    if not isinstance(payload, dict):
        return _invalid(QRFailureReason.MALFORMED, "QR payload is not a JSON object")

    for field in _REQUIRED_STRING_FIELDS:
        value = payload.get(field)
        if not isinstance(value, str) or not value:
            return _invalid(
                QRFailureReason.MALFORMED, f"QR payload is missing '{field}'"
            )
    for field in _REQUIRED_INT_FIELDS:
        value = payload.get(field)
        # bool is an int subclass
        if not isinstance(value, int) or isinstance(value, bool):
            return _invalid(
                QRFailureReason.MALFORMED, f"QR payload field '{field}' must be an integer"
            )

    token = QRToken(**{k: payload[k] for k in QRToken.model_fields})

    if _to_epoch_ms(now) > token.expiryTime:
        return _invalid(QRFailureReason.EXPIRED, "QR code has expired", token)

    expected = compute_signature(
        token.registrationId, token.eventId, token.participantEmail, token.timestamp
    )
    if not hmac.compare_digest(expected.encode("utf-8"), token.hash.encode("utf-8")):
        return _invalid(
            QRFailureReason.SIGNATURE_MISMATCH, "QR code signature is invalid", token
        )

    if token.expiryTime - token.timestamp > _ttl_ms():
        return _invalid(
            QRFailureReason.SIGNATURE_MISMATCH,
            "QR code validity window has been altered",
            token,
        )

    return QRVerification(is_valid=True, token=token)
