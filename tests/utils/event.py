import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from campus_attendance.models.event import Event


def create_random_event(
    db: Session,
    outsider_allowed: bool = False,
    outsider_max_participants: Optional[int] = None,
    title: str = "Test Event",
) -> Event:
    """
    Creates a dummy event for testing purposes.
    """
    event = Event(
        id=f"evt_{uuid.uuid4().hex[:12]}",
        title=title,
        event_date=datetime.now(timezone.utc) + timedelta(days=10),
        outsider_allowed=outsider_allowed,
        outsider_max_participants=outsider_max_participants,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def individual_payload(event_id: str, register_number: Optional[str] = "2341101", email: str = "asha@christuniversity.in", name: str = "Asha") -> dict:
    """New-style body for a single participant."""
    return {
        "eventId": event_id,
        "teamName": None,
        "teammates": [{"name": name, "email": email, "registerNumber": register_number}],
    }


def team_payload(event_id: str, members: list, team_name: str = "Byte Me") -> dict:
    return {"eventId": event_id, "teamName": team_name, "teammates": members}
