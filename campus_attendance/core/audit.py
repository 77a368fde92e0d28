# campus_attendance/core/audit.py
"""
Structured audit logging for registration and attendance.

Complements the qr_scan_logs table: the table is the forensic record the
organisers can replay, these JSON lines are what the log pipeline and
security alerting see.
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Audit action types."""

    # Registration actions
    REGISTRATION_CREATED = "registration.created"
    REGISTRATION_REJECTED = "registration.rejected"
    REGISTRATION_DELETED = "registration.deleted"

    # Attendance actions
    ATTENDANCE_SCAN = "attendance.scan"
    ATTENDANCE_BULK_MARKED = "attendance.bulk_marked"

    # Background side effects
    COUNTER_UPDATE_FAILED = "counter.update_failed"

    # Security actions
    QR_REJECTED = "security.qr_rejected"
    WEAK_QR_SECRET = "security.weak_qr_secret"


class AuditLogger:
    """
    Structured audit logger.

    All entries are written as a single JSON object per line so security
    tooling can parse them without a custom format.
    """

    def __init__(self, service_name: str = "campus-attendance-service"):
        self.service_name = service_name

    def log(
        self,
        action: AuditAction,
        user_id: Optional[str] = None,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        audit_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
            "action": action.value,
            "user_id": user_id,
            "resource_id": resource_id,
            "resource_type": resource_type,
            "success": success,
            "error": error,
            "details": details or {},
        }

        if success:
            logger.info(json.dumps(audit_entry, default=str))
        else:
            logger.warning(json.dumps(audit_entry, default=str))

    def log_registration_created(
        self,
        registration_id: str,
        event_id: str,
        organization_class: str,
        participant_count: int,
    ) -> None:
        self.log(
            action=AuditAction.REGISTRATION_CREATED,
            resource_id=registration_id,
            resource_type="registration",
            details={
                "event_id": event_id,
                "organization_class": organization_class,
                "participant_count": participant_count,
            },
        )

    def log_registration_rejected(self, event_id: str, error_code: str, reason: str) -> None:
        self.log(
            action=AuditAction.REGISTRATION_REJECTED,
            resource_id=event_id,
            resource_type="event",
            success=False,
            error=reason,
            details={"error_code": error_code},
        )

    def log_scan(
        self,
        event_id: str,
        registration_id: Optional[str],
        scanned_by: str,
        result: str,
    ) -> None:
        self.log(
            action=AuditAction.ATTENDANCE_SCAN,
            user_id=scanned_by,
            resource_id=registration_id,
            resource_type="registration",
            details={"event_id": event_id, "result": result},
        )

    def log_qr_rejected(
        self,
        event_id: str,
        registration_id: Optional[str],
        scanned_by: str,
        reason: str,
        scanner_info: Optional[dict] = None,
    ) -> None:
        """Integrity failures are security-relevant: forged, expired or misrouted codes."""
        self.log(
            action=AuditAction.QR_REJECTED,
            user_id=scanned_by,
            resource_id=registration_id,
            resource_type="registration",
            success=False,
            error=reason,
            details={"event_id": event_id, "scanner_info": scanner_info or {}},
        )


audit_logger = AuditLogger()
