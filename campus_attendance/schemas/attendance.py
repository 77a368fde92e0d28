# campus_attendance/schemas/attendance.py
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from campus_attendance.schemas.registration import Participant


class AttendanceState(str, Enum):
    absent = "absent"
    attended = "attended"


class ScanResultStatus(str, Enum):
    marked_present = "marked_present"
    already_present = "already_present"


class ScanLogResult(str, Enum):
    success = "success"
    duplicate = "duplicate"
    invalid = "invalid"


# ============================================
# Scan
# ============================================


class ScanRequest(BaseModel):
    """Body posted by the scanner app.

    ``qrCodeData`` is the serialized token read from the QR image; scanners
    that already decoded the JSON may send the object itself. Every field is
    loosely typed so any scan reaches the audit log instead of being rejected
    by request validation. ``scannerInfo`` is opaque device metadata.
    """

    qrCodeData: Any = None
    scannedBy: Optional[str] = None
    scannerInfo: Any = None

    @field_validator("scannedBy", mode="before")
    @classmethod
    def scanner_to_str(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @classmethod
    def from_body(cls, body: Any) -> "ScanRequest":
        # A body that is not a JSON object is treated as the QR payload itself.
        if isinstance(body, dict):
            return cls.model_validate(body)
        return cls(qrCodeData=body)


class ScannedParticipant(BaseModel):
    """What the scanner UI shows for a recognised code."""

    name: str
    email: str
    registrationId: str
    registrationType: str
    teamName: Optional[str] = None
    status: ScanResultStatus
    markedAt: Optional[datetime] = None


class ScanResult(BaseModel):
    message: str
    status: ScanResultStatus
    participant: ScannedParticipant


# ============================================
# Bulk admin marking
# ============================================


class BulkAttendanceRequest(BaseModel):
    # Loosely typed so bad values surface as 400s from the service,
    # matching the rest of the attendance API.
    participantIds: List[str] = []
    status: Optional[str] = None
    markedBy: Optional[str] = None


class BulkAttendanceResponse(BaseModel):
    message: str
    updated_count: int


# ============================================
# Participants & scan logs
# ============================================


class EventParticipant(BaseModel):
    registration_id: str
    event_id: str
    registration_type: str
    team_name: Optional[str] = None
    primary_name: str
    primary_email: str
    primary_identifier: Optional[str] = None
    members: List[Participant]
    organization_class: str
    created_at: Optional[datetime] = None
    attendance_status: AttendanceState
    marked_at: Optional[datetime] = None
    marked_by: Optional[str] = None


class EventSummary(BaseModel):
    id: str
    title: str


class EventParticipantsResponse(BaseModel):
    event: EventSummary
    participants: List[EventParticipant]


class ScanLogEntry(BaseModel):
    id: int
    registration_id: Optional[str] = None
    event_id: str
    scanned_by: str
    scan_result: ScanLogResult
    failure_reason: Optional[str] = None
    scanner_info: Optional[Any] = None
    scanned_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ScanLogListResponse(BaseModel):
    logs: List[ScanLogEntry]
    count: int
