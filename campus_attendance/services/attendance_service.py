# campus_attendance/services/attendance_service.py
"""
QR scan reconciliation and admin attendance marking.

Every scan attempt leaves exactly one row in qr_scan_logs, whatever the
outcome. Attendance only ever moves absent -> attended through a scan; the
transition is a single conditional upsert, so concurrent scans of the same
code produce one 'success' and the rest 'duplicate'.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from campus_attendance import crud
from campus_attendance.core.audit import AuditAction, audit_logger
from campus_attendance.core.exceptions import (
    EventMismatchError,
    EventNotFoundError,
    PayloadValidationError,
    QRCodeIntegrityError,
    RegistrationNotFoundError,
)
from campus_attendance.models.registration import Registration
from campus_attendance.schemas.attendance import (
    AttendanceState,
    ScanLogResult,
    ScannedParticipant,
    ScanResult,
    ScanResultStatus,
)
from campus_attendance.schemas.qr import QRFailureReason
from campus_attendance.services.qr.qr_signing import parse_qr_payload, verify_qr_token

logger = logging.getLogger(__name__)

DEFAULT_SCANNER = "qr_scanner"
DEFAULT_MARKER = "admin"


def _scanner_info_record(scanner_info: Any) -> Optional[Dict[str, Any]]:
    # scanner_info is opaque; non-object values are kept under "raw".
    if scanner_info is None or isinstance(scanner_info, dict):
        return scanner_info
    return {"raw": scanner_info}


class AttendanceService:
    def scan(
        self,
        db: Session,
        event_id: str,
        raw_payload: Any,
        scanned_by: Optional[str] = None,
        scanner_info: Any = None,
        now: Optional[datetime] = None,
    ) -> ScanResult:
        """
        Verify a scanned QR payload and mark the registration present.

        Raises QRCodeIntegrityError (incl. EventMismatchError) or
        RegistrationNotFoundError after logging the attempt as 'invalid'.
        A repeat scan is not an error: it returns ``already_present``.
        """
        scanned_by = scanned_by or DEFAULT_SCANNER
        scanner_info = _scanner_info_record(scanner_info)

        payload = parse_qr_payload(raw_payload)
        if payload is None:
            self._reject(
                db,
                event_id,
                None,
                scanned_by,
                scanner_info,
                QRCodeIntegrityError(
                    QRFailureReason.MALFORMED.value, "QR code data could not be parsed"
                ),
            )

        verification = verify_qr_token(payload, now=now)
        if not verification.is_valid:
            claimed_id = payload.get("registrationId")
            self._reject(
                db,
                event_id,
                claimed_id if isinstance(claimed_id, str) else None,
                scanned_by,
                scanner_info,
                QRCodeIntegrityError(
                    verification.error_code.value,
                    verification.error_message,
                    registration_id=claimed_id if isinstance(claimed_id, str) else None,
                ),
            )

        token = verification.token
        if token.eventId != event_id:
            self._reject(
                db,
                event_id,
                token.registrationId,
                scanned_by,
                scanner_info,
                EventMismatchError(event_id, token.eventId, token.registrationId),
            )

        registration = crud.registration.get(db, id=token.registrationId)
        if not registration or registration.event_id != event_id:
            self._reject(
                db,
                event_id,
                token.registrationId,
                scanned_by,
                scanner_info,
                RegistrationNotFoundError(token.registrationId),
            )

        marked_at = now or datetime.now(timezone.utc)
        try:
            marked = crud.attendance.mark_attended_if_absent(
                db,
                registration_id=registration.id,
                event_id=event_id,
                marked_by=scanned_by,
                marked_at=marked_at,
            )
            crud.scan_log.add(
                db,
                registration_id=registration.id,
                event_id=event_id,
                scanned_by=scanned_by,
                scan_result=(ScanLogResult.success if marked else ScanLogResult.duplicate).value,
                scanner_info=scanner_info,
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Attendance update failed for registration {registration.id}")
            self._log_internal_failure(db, event_id, registration.id, scanned_by, scanner_info)
            raise

        if marked:
            status = ScanResultStatus.marked_present
            message = "Attendance marked successfully"
        else:
            status = ScanResultStatus.already_present
            message = "Participant already marked present"
            record = crud.attendance.get(db, registration.id)
            marked_at = record.marked_at if record else None

        audit_logger.log_scan(event_id, registration.id, scanned_by, status.value)

        return ScanResult(
            message=message,
            status=status,
            participant=self._participant_info(registration, status, marked_at),
        )

    def _reject(
        self,
        db: Session,
        event_id: str,
        registration_id: Optional[str],
        scanned_by: str,
        scanner_info: Optional[Dict[str, Any]],
        error: Exception,
    ) -> None:
        """Log an invalid scan, then raise ``error``."""
        reason = error.error_code
        crud.scan_log.add(
            db,
            registration_id=registration_id,
            event_id=event_id,
            scanned_by=scanned_by,
            scan_result=ScanLogResult.invalid.value,
            failure_reason=reason,
            scanner_info=scanner_info,
        )
        db.commit()

        logger.warning(
            f"Rejected QR scan for event {event_id} by {scanned_by}: {reason}"
        )
        audit_logger.log_qr_rejected(
            event_id, registration_id, scanned_by, reason, scanner_info
        )
        raise error

    def _log_internal_failure(
        self,
        db: Session,
        event_id: str,
        registration_id: str,
        scanned_by: str,
        scanner_info: Optional[Dict[str, Any]],
    ) -> None:
        try:
            crud.scan_log.add(
                db,
                registration_id=registration_id,
                event_id=event_id,
                scanned_by=scanned_by,
                scan_result=ScanLogResult.invalid.value,
                failure_reason="INTERNAL_ERROR",
                scanner_info=scanner_info,
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Could not record failed scan for registration {registration_id}: {e}")

    @staticmethod
    def _participant_info(
        registration: Registration, status: ScanResultStatus, marked_at: Optional[datetime]
    ) -> ScannedParticipant:
        return ScannedParticipant(
            name=registration.primary_name,
            email=registration.primary_email,
            registrationId=registration.id,
            registrationType=registration.registration_type,
            teamName=registration.team_name,
            status=status,
            markedAt=marked_at,
        )

    def mark_bulk(
        self,
        db: Session,
        event_id: str,
        registration_ids: List[str],
        status: Optional[str],
        marked_by: Optional[str] = None,
    ) -> int:
        """
        Set attendance for many registrations at once. Unlike scans this may
        revert 'attended' to 'absent'. Unknown ids and per-row failures are
        logged and skipped; returns the number of rows written.
        """
        if not registration_ids:
            raise PayloadValidationError("participantIds must be a non-empty list")
        valid_states = [s.value for s in AttendanceState]
        if status not in valid_states:
            raise PayloadValidationError(
                f"status must be one of: {', '.join(valid_states)}",
                details={"status": status},
            )

        event = crud.event.get(db, id=event_id)
        if not event:
            raise EventNotFoundError(event_id)

        marked_by = marked_by or DEFAULT_MARKER
        unique_ids = list(dict.fromkeys(registration_ids))
        known_ids = crud.registration.get_ids_for_event(
            db, event_id=event_id, registration_ids=unique_ids
        )

        updated = 0
        for registration_id in unique_ids:
            if registration_id not in known_ids:
                logger.warning(
                    f"Bulk attendance: registration {registration_id} not found for event {event_id}"
                )
                continue
            try:
                crud.attendance.set_status(
                    db,
                    registration_id=registration_id,
                    event_id=event_id,
                    status=status,
                    marked_by=marked_by,
                )
                db.commit()
                updated += 1
            except Exception as e:
                db.rollback()
                logger.warning(f"Bulk attendance failed for {registration_id}: {e}")
                continue

        audit_logger.log(
            action=AuditAction.ATTENDANCE_BULK_MARKED,
            user_id=marked_by,
            resource_id=event_id,
            resource_type="event",
            details={
                "status": status,
                "requested": len(unique_ids),
                "updated": updated,
            },
        )
        return updated

    def get_participants(self, db: Session, event_id: str) -> dict:
        event = crud.event.get(db, id=event_id)
        if not event:
            raise EventNotFoundError(event_id)

        participants = []
        for registration, record in crud.attendance.get_participants_with_status(
            db, event_id=event_id
        ):
            participants.append(
                {
                    "registration_id": registration.id,
                    "event_id": registration.event_id,
                    "registration_type": registration.registration_type,
                    "team_name": registration.team_name,
                    "primary_name": registration.primary_name,
                    "primary_email": registration.primary_email,
                    "primary_identifier": registration.primary_identifier,
                    "members": registration.members,
                    "organization_class": registration.organization_class,
                    "created_at": registration.created_at,
                    "attendance_status": record.status if record else AttendanceState.absent.value,
                    "marked_at": record.marked_at if record else None,
                    "marked_by": record.marked_by if record else None,
                }
            )

        return {"event": {"id": event.id, "title": event.title}, "participants": participants}

    def get_scan_logs(
        self,
        db: Session,
        event_id: str,
        result: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list:
        valid_results = [r.value for r in ScanLogResult]
        if result is not None and result not in valid_results:
            raise PayloadValidationError(
                f"result must be one of: {', '.join(valid_results)}"
            )
        if not crud.event.get(db, id=event_id):
            raise EventNotFoundError(event_id)
        return crud.scan_log.get_multi_by_event(
            db, event_id=event_id, scan_result=result, skip=skip, limit=limit
        )


attendance_service = AttendanceService()
