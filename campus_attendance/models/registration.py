# campus_attendance/models/registration.py
import uuid
from sqlalchemy import (
    Column,
    String,
    ForeignKey,
    Integer,
    JSON,
    DateTime,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from campus_attendance.db.base_class import Base


UNIQUE_PARTICIPANT_CONSTRAINT = "uq_registrations_event_participant"


def generate_registration_id() -> str:
    """Opaque registration id; it is embedded in the signed QR token."""
    return uuid.uuid4().hex


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        # A retried request for the same participant must not double-register.
        UniqueConstraint("event_id", "participant_key", name=UNIQUE_PARTICIPANT_CONSTRAINT),
    )

    id = Column(String, primary_key=True, default=generate_registration_id)
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)

    # 'individual' | 'team'
    registration_type = Column(String(20), nullable=False)
    team_name = Column(String, nullable=True)

    # Primary contact (the individual, or the team leader)
    primary_name = Column(String, nullable=False)
    primary_email = Column(String, nullable=False, index=True)
    primary_identifier = Column(String, nullable=True, index=True)  # register number or visitor id

    # Natural key: upper-cased identifier, or lower-cased email if none
    participant_key = Column(String, nullable=False)

    # Ordered [{name, email, registerNumber}], team leader first
    members = Column(JSON, nullable=False)
    participant_count = Column(Integer, nullable=False, default=1)

    # 'member' | 'outsider', frozen at registration time
    organization_class = Column(String(20), nullable=False, index=True)

    # Signed QR token, generated once
    qr_code_data = Column(JSON, nullable=False)
    qr_code_generated_at = Column(DateTime(timezone=True), nullable=False)

    custom_field_responses = Column(JSON, nullable=True)
    user_email = Column(String, nullable=True)  # legacy account email

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    event = relationship("Event", back_populates="registrations")
    attendance = relationship(
        "AttendanceStatus",
        back_populates="registration",
        uselist=False,
        cascade="all, delete-orphan",
    )
