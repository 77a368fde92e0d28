# campus_attendance/crud/crud_event.py
from sqlalchemy import case, update
from sqlalchemy.orm import Session

from campus_attendance.models.event import Event
from .base import CRUDBase


class CRUDEvent(CRUDBase[Event, None, None]):
    """Events are owned elsewhere; this core only reads policy and keeps the
    advisory participant counter."""

    def increment_participants(self, db: Session, *, event_id: str, by: int) -> None:
        db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(total_participants=Event.total_participants + by)
        )
        db.commit()

    def decrement_participants(self, db: Session, *, event_id: str, by: int) -> None:
        """Decrement the counter, never below zero."""
        db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(
                total_participants=case(
                    (Event.total_participants - by < 0, 0),
                    else_=Event.total_participants - by,
                )
            )
        )
        db.commit()


event = CRUDEvent(Event)
