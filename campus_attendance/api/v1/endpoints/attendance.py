# campus_attendance/api/v1/endpoints/attendance.py
"""
Attendance endpoints: QR scanning, admin marking, participant lists and
the scan audit trail.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_attendance.api import deps
from campus_attendance.api.errors import internal_error, to_http_exception
from campus_attendance.core.exceptions import CampusAttendanceError
from campus_attendance.db.session import get_db
from campus_attendance.schemas.attendance import (
    BulkAttendanceRequest,
    BulkAttendanceResponse,
    EventParticipantsResponse,
    ScanLogListResponse,
    ScanRequest,
    ScanResult,
)
from campus_attendance.schemas.token import TokenPayload
from campus_attendance.services.attendance_service import attendance_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attendance"])


@router.post(
    "/events/{event_id}/scan-qr",
    response_model=ScanResult,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": ScanRequest.model_json_schema()}}
        }
    },
)
def scan_qr_code(
    event_id: str,
    body: Any = Depends(deps.get_scan_body),
    db: Session = Depends(get_db),
    current_user: Optional[TokenPayload] = Depends(deps.get_current_user_optional),
):
    """
    Mark a participant present from a scanned QR code.

    A second scan of the same code is answered with ``already_present``,
    not an error.
    """
    scan_in = ScanRequest.from_body(body)
    scanned_by = scan_in.scannedBy or (current_user.sub if current_user else None)
    try:
        return attendance_service.scan(
            db,
            event_id,
            scan_in.qrCodeData,
            scanned_by=scanned_by,
            scanner_info=scan_in.scannerInfo,
        )
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception(f"Unexpected error scanning QR code for event {event_id}")
        raise internal_error("Failed to process QR code")


@router.post("/events/{event_id}/attendance", response_model=BulkAttendanceResponse)
def mark_attendance(
    event_id: str,
    attendance_in: BulkAttendanceRequest,
    db: Session = Depends(get_db),
    current_user: Optional[TokenPayload] = Depends(deps.get_current_user_optional),
):
    marked_by = attendance_in.markedBy or (current_user.sub if current_user else None)
    try:
        updated = attendance_service.mark_bulk(
            db,
            event_id,
            attendance_in.participantIds,
            attendance_in.status,
            marked_by=marked_by,
        )
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception(f"Unexpected error marking attendance for event {event_id}")
        raise internal_error("Failed to update attendance")

    return {
        "message": f"Successfully updated attendance for {updated} participants",
        "updated_count": updated,
    }


@router.get("/events/{event_id}/participants", response_model=EventParticipantsResponse)
def get_event_participants(event_id: str, db: Session = Depends(get_db)):
    try:
        return attendance_service.get_participants(db, event_id)
    except CampusAttendanceError as e:
        raise to_http_exception(e)


@router.get("/events/{event_id}/scan-logs", response_model=ScanLogListResponse)
def get_scan_logs(
    event_id: str,
    result: Optional[str] = Query(None, description="success | duplicate | invalid"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Scan audit trail for an event, newest first."""
    try:
        logs = attendance_service.get_scan_logs(
            db, event_id, result=result, skip=skip, limit=limit
        )
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    return {"logs": logs, "count": len(logs)}
