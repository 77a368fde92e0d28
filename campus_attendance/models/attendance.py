# campus_attendance/models/attendance.py
from sqlalchemy import Column, String, DateTime, ForeignKey, text
from sqlalchemy.orm import relationship
from campus_attendance.db.base_class import Base


class AttendanceStatus(Base):
    """One row per registration, created lazily on first scan or admin mark.

    No row means the participant is absent.
    """

    __tablename__ = "attendance_status"

    # Primary key doubles as the conflict target of the attendance upsert.
    registration_id = Column(
        String,
        ForeignKey("registrations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    event_id = Column(String, nullable=False, index=True)

    # 'absent' | 'attended'
    status = Column(String(20), nullable=False, server_default=text("'absent'"))
    marked_at = Column(DateTime(timezone=True), nullable=True)
    marked_by = Column(String, nullable=True)  # scanner identity or "admin"

    registration = relationship("Registration", back_populates="attendance")
