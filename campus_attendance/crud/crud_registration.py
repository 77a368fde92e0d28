# campus_attendance/crud/crud_registration.py
from typing import List, Optional, Set

from sqlalchemy import String, and_, cast, func, or_
from sqlalchemy.orm import Session, joinedload

from campus_attendance.models.registration import Registration
from .base import CRUDBase


class CRUDRegistration(CRUDBase[Registration, None, None]):
    def get_by_participant_key(
        self, db: Session, *, event_id: str, participant_key: str
    ) -> Optional[Registration]:
        return (
            db.query(self.model)
            .filter(
                and_(
                    self.model.event_id == event_id,
                    self.model.participant_key == participant_key,
                )
            )
            .first()
        )

    def get_multi_by_event(
        self, db: Session, *, event_id: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Registration]:
        query = db.query(self.model)
        if event_id:
            query = query.filter(self.model.event_id == event_id)
        return (
            query.order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_ids_for_event(
        self, db: Session, *, event_id: str, registration_ids: List[str]
    ) -> Set[str]:
        """The subset of registration_ids that belong to the event."""
        if not registration_ids:
            return set()
        rows = (
            db.query(self.model.id)
            .filter(
                self.model.event_id == event_id,
                self.model.id.in_(registration_ids),
            )
            .all()
        )
        return {row[0] for row in rows}

    def count_outsider_participants(self, db: Session, *, event_id: str) -> int:
        """
        Sums participant_count over the event's outsider registrations.
        Quota checks use this instead of the event's advisory counter.
        """
        total = (
            db.query(func.coalesce(func.sum(self.model.participant_count), 0))
            .filter(
                self.model.event_id == event_id,
                self.model.organization_class == "outsider",
            )
            .scalar()
        )
        return int(total or 0)

    def get_for_identifier(self, db: Session, *, identifier: str) -> List[Registration]:
        """
        Registrations where the identifier is the primary contact's or any
        member's register number. Matching is case-insensitive.
        """
        needle = identifier.strip().upper()
        candidates = (
            db.query(self.model)
            .options(joinedload(self.model.event))
            .filter(
                or_(
                    func.upper(self.model.primary_identifier) == needle,
                    func.upper(cast(self.model.members, String)).like(f"%{needle}%"),
                )
            )
            .order_by(self.model.created_at.desc())
            .all()
        )
        # The JSON text match is only a prefilter.
        return [
            reg
            for reg in candidates
            if (reg.primary_identifier or "").upper() == needle
            or any(
                str(m.get("registerNumber") or "").upper() == needle
                for m in (reg.members or [])
            )
        ]


registration = CRUDRegistration(Registration)
