# campus_attendance/crud/crud_scan_log.py
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from campus_attendance.models.scan_log import QRScanLog


class CRUDScanLog:
    """Append-only access to the scan audit log."""

    def add(
        self,
        db: Session,
        *,
        event_id: str,
        scanned_by: str,
        scan_result: str,
        registration_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
        scanner_info: Optional[Dict[str, Any]] = None,
    ) -> QRScanLog:
        """Stages a log row. The caller commits."""
        entry = QRScanLog(
            registration_id=registration_id,
            event_id=event_id,
            scanned_by=scanned_by,
            scan_result=scan_result,
            failure_reason=failure_reason,
            scanner_info=scanner_info,
        )
        db.add(entry)
        return entry

    def get_multi_by_event(
        self,
        db: Session,
        *,
        event_id: str,
        scan_result: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[QRScanLog]:
        query = db.query(QRScanLog).filter(QRScanLog.event_id == event_id)
        if scan_result:
            query = query.filter(QRScanLog.scan_result == scan_result)
        return (
            query.order_by(QRScanLog.scanned_at.desc(), QRScanLog.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

scan_log = CRUDScanLog()
