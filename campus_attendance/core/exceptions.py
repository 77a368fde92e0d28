# campus_attendance/core/exceptions.py
"""
Exception hierarchy for the registration and attendance core.

Every error carries a stable ``error_code`` so the web client can show a
different message per reason (an outsider block reads differently from a
full quota). Endpoints translate these into HTTP responses.
"""

from typing import Optional


class CampusAttendanceError(Exception):
    """Base exception for all registration/attendance errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CAMPUS_ATTENDANCE_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_detail(self) -> dict:
        """Payload used as the ``detail`` of an HTTPException."""
        detail = {"error_code": self.error_code, "message": self.message}
        if self.details:
            detail["details"] = self.details
        return detail


# ===========================================
# Validation
# ===========================================


class PayloadValidationError(CampusAttendanceError):
    """The request body has the wrong shape or is missing required fields."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


# ===========================================
# Not found
# ===========================================


class ResourceNotFoundError(CampusAttendanceError):
    """Base class for missing events/registrations."""


class EventNotFoundError(ResourceNotFoundError):
    def __init__(self, event_id: str):
        super().__init__(
            message="Event not found",
            error_code="EVENT_NOT_FOUND",
            details={"event_id": event_id},
        )
        self.event_id = event_id


class RegistrationNotFoundError(ResourceNotFoundError):
    def __init__(self, registration_id: Optional[str]):
        super().__init__(
            message="Registration not found",
            error_code="REGISTRATION_NOT_FOUND",
            details={"registration_id": registration_id},
        )
        self.registration_id = registration_id


# ===========================================
# Eligibility
# ===========================================


class EligibilityError(CampusAttendanceError):
    """Participant is not allowed to register for this event."""


class OutsiderNotAllowedError(EligibilityError):
    def __init__(self, event_id: str):
        super().__init__(
            message="This event is open to university members only.",
            error_code="OUTSIDER_NOT_ALLOWED",
            details={"event_id": event_id},
        )


class OutsiderQuotaExceededError(EligibilityError):
    def __init__(self, event_id: str, limit: int, current: int, requested: int):
        super().__init__(
            message="The outsider quota for this event has been reached.",
            error_code="QUOTA_EXCEEDED",
            details={
                "event_id": event_id,
                "outsider_max_participants": limit,
                "current_outsider_participants": current,
                "requested_participants": requested,
            },
        )


# ===========================================
# Conflicts
# ===========================================


class DuplicateRegistrationError(CampusAttendanceError):
    def __init__(self, event_id: str, participant_key: Optional[str] = None):
        super().__init__(
            message="This participant is already registered for this event.",
            error_code="DUPLICATE_REGISTRATION",
            details={"event_id": event_id, "participant_key": participant_key},
        )


# ===========================================
# QR integrity (scan time)
# ===========================================


class QRCodeIntegrityError(CampusAttendanceError):
    """A scanned QR payload failed parsing, expiry or signature checks."""

    def __init__(self, reason: str, message: str, registration_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code=reason,
            details={"registration_id": registration_id} if registration_id else None,
        )
        self.reason = reason
        self.registration_id = registration_id


class EventMismatchError(QRCodeIntegrityError):
    """The QR code belongs to a different event than the one being scanned."""

    def __init__(self, expected_event_id: str, token_event_id: str, registration_id: Optional[str]):
        super().__init__(
            reason="EVENT_MISMATCH",
            message="QR code is not valid for this event",
            registration_id=registration_id,
        )
        self.details.update(
            {"event_id": expected_event_id, "token_event_id": token_event_id}
        )
