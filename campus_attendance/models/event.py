# campus_attendance/models/event.py
from sqlalchemy import Column, Integer, String, DateTime, Boolean, func, text
from sqlalchemy.orm import relationship
from campus_attendance.db.base_class import Base
import uuid


class Event(Base):
    """Event row owned by the events service; this core reads the outsider
    policy and bumps the advisory participant counter."""

    __tablename__ = "events"

    id = Column(
        String, primary_key=True, default=lambda: f"evt_{uuid.uuid4().hex[:12]}"
    )
    title = Column(String, nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=True)

    # Outsider policy
    outsider_allowed = Column(Boolean, nullable=False, server_default=text("false"))
    outsider_max_participants = Column(Integer, nullable=True)  # None = unlimited

    # Advisory aggregate: concurrent registrations may race on it, so quota
    # checks never read it.
    total_participants = Column(Integer, nullable=False, server_default=text("0"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    registrations = relationship("Registration", back_populates="event")
