# campus_attendance/models/scan_log.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from campus_attendance.db.base_class import Base


class QRScanLog(Base):
    """Append-only record of every scan attempt. Rows are never updated."""

    __tablename__ = "qr_scan_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # No FK: invalid payloads may carry no id, or one that does not exist
    registration_id = Column(String, nullable=True, index=True)
    event_id = Column(String, nullable=False, index=True)
    scanned_by = Column(String, nullable=False)

    # 'success' | 'duplicate' | 'invalid'
    scan_result = Column(String(20), nullable=False)
    failure_reason = Column(String(50), nullable=True)
    scanner_info = Column(JSON, nullable=True)

    scanned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
