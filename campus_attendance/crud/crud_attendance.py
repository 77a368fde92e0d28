# campus_attendance/crud/crud_attendance.py
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from campus_attendance.models.attendance import AttendanceStatus
from campus_attendance.models.registration import Registration


def _dialect_insert(db: Session):
    """Returns the dialect's insert() so ON CONFLICT is available."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Attendance upsert is not supported on {dialect}")
    return insert


class CRUDAttendance:
    """CRUD operations for per-registration attendance rows."""

    def get(self, db: Session, registration_id: str) -> Optional[AttendanceStatus]:
        return (
            db.query(AttendanceStatus)
            .filter(AttendanceStatus.registration_id == registration_id)
            .first()
        )

    def mark_attended_if_absent(
        self,
        db: Session,
        *,
        registration_id: str,
        event_id: str,
        marked_by: str,
        marked_at: Optional[datetime] = None,
    ) -> bool:
        """
        Atomically move a registration to 'attended'.

        Inserts the row, or updates it only while it is not yet attended.
        Returns True when this call made the transition and False when the
        registration was already attended. Does not commit, so the caller
        can write its scan log in the same transaction.
        """
        insert = _dialect_insert(db)
        now = marked_at or datetime.now(timezone.utc)
        stmt = insert(AttendanceStatus).values(
            registration_id=registration_id,
            event_id=event_id,
            status="attended",
            marked_at=now,
            marked_by=marked_by,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AttendanceStatus.registration_id],
            set_={"status": "attended", "marked_at": now, "marked_by": marked_by},
            where=AttendanceStatus.status != "attended",
        ).returning(AttendanceStatus.registration_id)

        return db.execute(stmt).scalar_one_or_none() is not None

    def set_status(
        self,
        db: Session,
        *,
        registration_id: str,
        event_id: str,
        status: str,
        marked_by: str,
        marked_at: Optional[datetime] = None,
    ) -> None:
        """Unconditional upsert used by admin marking. Does not commit."""
        insert = _dialect_insert(db)
        now = marked_at or datetime.now(timezone.utc)
        stmt = insert(AttendanceStatus).values(
            registration_id=registration_id,
            event_id=event_id,
            status=status,
            marked_at=now,
            marked_by=marked_by,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AttendanceStatus.registration_id],
            set_={"status": status, "marked_at": now, "marked_by": marked_by},
        )
        db.execute(stmt)

    def get_participants_with_status(
        self, db: Session, *, event_id: str
    ) -> List[Tuple[Registration, Optional[AttendanceStatus]]]:
        """Every registration of the event with its attendance row, if any."""
        return (
            db.query(Registration, AttendanceStatus)
            .outerjoin(
                AttendanceStatus,
                AttendanceStatus.registration_id == Registration.id,
            )
            .filter(Registration.event_id == event_id)
            .order_by(Registration.created_at.asc())
            .all()
        )


attendance = CRUDAttendance()
