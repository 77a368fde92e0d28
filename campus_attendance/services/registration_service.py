# campus_attendance/services/registration_service.py
"""
Registration workflow: normalize the request body, check eligibility,
mint the attendance QR token and persist the registration.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_attendance import crud
from campus_attendance.core.audit import AuditAction, audit_logger
from campus_attendance.core.email import send_registration_confirmation
from campus_attendance.core.exceptions import (
    DuplicateRegistrationError,
    EligibilityError,
    EventNotFoundError,
    PayloadValidationError,
    RegistrationNotFoundError,
)
from campus_attendance.models.registration import (
    UNIQUE_PARTICIPANT_CONSTRAINT,
    Registration,
    generate_registration_id,
)
from campus_attendance.schemas.registration import (
    CanonicalRegistration,
    LegacyRegistration,
    NewStyleRegistration,
    OrganizationClass,
    Participant,
    RegistrationType,
)
from campus_attendance.services import eligibility
from campus_attendance.services.qr.qr_image import render_qr_png
from campus_attendance.services.qr.qr_signing import mint_qr_token
from campus_attendance.utils.user_service import get_user_by_email

logger = logging.getLogger(__name__)

RegistrationPayload = Union[NewStyleRegistration, LegacyRegistration]


def _validation_details(exc: ValidationError) -> Dict[str, Any]:
    return {
        "errors": [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in exc.errors()
        ]
    }


def parse_registration_payload(payload: Any) -> RegistrationPayload:
    """
    Pick the body shape. The current client always sends both ``eventId``
    and ``teammates``; anything else is treated as the legacy shape.
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError("Request body must be a JSON object")

    try:
        if "eventId" in payload and "teammates" in payload:
            return NewStyleRegistration.model_validate(payload)
        return LegacyRegistration.model_validate(payload)
    except ValidationError as e:
        raise PayloadValidationError(
            "Invalid registration payload", details=_validation_details(e)
        )


def _build_participant(name: Optional[str], email: Optional[str], register_number: Optional[str], role: str) -> Participant:
    if not email or not email.strip():
        raise PayloadValidationError(f"{role} email is required")
    if not name or not name.strip():
        raise PayloadValidationError(f"{role} name is required")
    try:
        return Participant(name=name, email=email, registerNumber=register_number)
    except ValidationError as e:
        raise PayloadValidationError(
            f"Invalid {role.lower()} details", details=_validation_details(e)
        )


def normalize_registration(body: RegistrationPayload) -> CanonicalRegistration:
    """Collapse either body shape into one CanonicalRegistration."""
    if isinstance(body, NewStyleRegistration):
        team_name = (body.teamName or "").strip() or None
        kind = RegistrationType.team if team_name else RegistrationType.individual
        if kind == RegistrationType.individual and len(body.teammates) > 1:
            raise PayloadValidationError(
                "A team name is required when registering more than one participant"
            )
        return CanonicalRegistration(
            event_id=body.eventId,
            kind=kind,
            team_name=team_name,
            primary_contact=body.teammates[0],
            members=list(body.teammates),
            custom_field_responses=body.custom_field_responses,
        )

    if body.registration_type == RegistrationType.team:
        team_name = (body.team_name or "").strip() or None
        if not team_name:
            raise PayloadValidationError("team_name is required for team registrations")
        leader = _build_participant(
            body.team_leader_name,
            body.team_leader_email,
            body.team_leader_register_number,
            "Team leader",
        )
        return CanonicalRegistration(
            event_id=body.event_id,
            kind=RegistrationType.team,
            team_name=team_name,
            primary_contact=leader,
            members=[leader, *body.teammates],
            custom_field_responses=body.custom_field_responses,
            user_email=body.user_email,
        )

    individual = _build_participant(
        body.individual_name,
        body.individual_email or body.user_email,
        body.individual_register_number,
        "Participant",
    )
    return CanonicalRegistration(
        event_id=body.event_id,
        kind=RegistrationType.individual,
        primary_contact=individual,
        members=[individual],
        custom_field_responses=body.custom_field_responses,
        user_email=body.user_email,
    )


def _payload_event_id(body: RegistrationPayload) -> str:
    return body.eventId if isinstance(body, NewStyleRegistration) else body.event_id


def _is_duplicate_participant(exc: IntegrityError) -> bool:
    """True when the insert hit the (event_id, participant_key) unique constraint."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == UNIQUE_PARTICIPANT_CONSTRAINT
    # SQLite names the columns instead of the constraint.
    message = str(exc.orig)
    return (
        UNIQUE_PARTICIPANT_CONSTRAINT in message
        or "registrations.participant_key" in message
    )


class RegistrationService:
    """Creates and deletes registrations.

    ``user_lookup`` resolves an email to a user record; it is only called
    for participants who registered without an identifier.
    """

    def __init__(self, user_lookup: Callable[[str], Optional[dict]] = get_user_by_email):
        self.user_lookup = user_lookup

    def register(self, db: Session, payload: Any) -> Registration:
        body = parse_registration_payload(payload)
        event_id = _payload_event_id(body)

        event = crud.event.get(db, id=event_id)
        if not event:
            raise EventNotFoundError(event_id)

        canonical = normalize_registration(body)
        primary = canonical.primary_contact

        organization_class = eligibility.classify_participant(
            primary.registerNumber, lambda: self.user_lookup(primary.email)
        )

        try:
            if organization_class == OrganizationClass.outsider:
                current = crud.registration.count_outsider_participants(db, event_id=event.id)
                eligibility.authorize_participants(
                    event, organization_class, current, canonical.participant_count
                )

            if crud.registration.get_by_participant_key(
                db, event_id=event.id, participant_key=canonical.participant_key
            ):
                raise DuplicateRegistrationError(event.id, canonical.participant_key)
        except (EligibilityError, DuplicateRegistrationError) as e:
            audit_logger.log_registration_rejected(event.id, e.error_code, e.message)
            raise

        registration_id = generate_registration_id()
        now = datetime.now(timezone.utc)
        token = mint_qr_token(registration_id, event.id, primary.email, now=now)

        try:
            registration = crud.registration.create(
                db,
                obj_in={
                    "id": registration_id,
                    "event_id": event.id,
                    "registration_type": canonical.kind.value,
                    "team_name": canonical.team_name,
                    "primary_name": primary.name,
                    "primary_email": primary.email,
                    "primary_identifier": primary.registerNumber,
                    "participant_key": canonical.participant_key,
                    "members": [m.model_dump() for m in canonical.members],
                    "participant_count": canonical.participant_count,
                    "organization_class": organization_class.value,
                    "qr_code_data": token.model_dump(),
                    "qr_code_generated_at": now,
                    "custom_field_responses": canonical.custom_field_responses,
                    "user_email": canonical.user_email,
                },
            )
        except IntegrityError as e:
            db.rollback()
            if not _is_duplicate_participant(e):
                logger.error(f"Registration insert failed for event {event.id}: {e.orig}")
                raise
            # A concurrent request for the same participant won the insert.
            audit_logger.log_registration_rejected(
                event.id, "DUPLICATE_REGISTRATION", "unique constraint violation"
            )
            raise DuplicateRegistrationError(event.id, canonical.participant_key)

        self._bump_participant_counter(db, event.id, canonical.participant_count)

        audit_logger.log_registration_created(
            registration.id,
            event.id,
            organization_class.value,
            canonical.participant_count,
        )
        logger.info(
            f"Registered {canonical.participant_count} participant(s) for event {event.id} "
            f"as {organization_class.value} (registration {registration.id})"
        )
        return registration

    def _bump_participant_counter(self, db: Session, event_id: str, delta: int) -> None:
        """The counter is advisory; a failure here must not fail the registration."""
        try:
            if delta >= 0:
                crud.event.increment_participants(db, event_id=event_id, by=delta)
            else:
                crud.event.decrement_participants(db, event_id=event_id, by=-delta)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to update participant counter for event {event_id}: {e}")
            audit_logger.log(
                action=AuditAction.COUNTER_UPDATE_FAILED,
                resource_id=event_id,
                resource_type="event",
                success=False,
                error=str(e),
                details={"delta": delta},
            )

    def get_registration(self, db: Session, registration_id: str) -> Registration:
        registration = crud.registration.get(db, id=registration_id)
        if not registration:
            raise RegistrationNotFoundError(registration_id)
        return registration

    def list_registrations(self, db: Session, event_id: str, skip: int = 0, limit: int = 100) -> List[Registration]:
        return crud.registration.get_multi_by_event(
            db, event_id=event_id, skip=skip, limit=limit
        )

    def get_events_for_identifier(self, db: Session, identifier: str) -> List[dict]:
        return [
            {
                "id": reg.event_id,
                "event_id": reg.event_id,
                "name": reg.event.title if reg.event else reg.event_id,
                "date": reg.event.event_date if reg.event else None,
                "registration_id": reg.id,
            }
            for reg in crud.registration.get_for_identifier(db, identifier=identifier)
        ]

    def delete_registration(self, db: Session, registration_id: str) -> None:
        """Delete a registration and its attendance row. Scan logs are kept."""
        registration = self.get_registration(db, registration_id)
        event_id = registration.event_id
        participant_count = registration.participant_count

        crud.registration.remove(db, id=registration_id)

        self._bump_participant_counter(db, event_id, -participant_count)

        audit_logger.log(
            action=AuditAction.REGISTRATION_DELETED,
            resource_id=registration_id,
            resource_type="registration",
            details={"event_id": event_id, "participant_count": participant_count},
        )
        logger.info(f"Deleted registration {registration_id} for event {event_id}")


def deliver_registration_confirmation(
    to_email: str,
    recipient_name: str,
    event_name: str,
    registration_id: str,
    qr_token: dict,
    event_date: Optional[str] = None,
    team_name: Optional[str] = None,
) -> None:
    """Background job: render the QR code and email it to the primary contact."""
    try:
        qr_png = render_qr_png(qr_token)
    except Exception as e:
        logger.error(f"Failed to render QR code for registration {registration_id}: {e}")
        qr_png = None

    result = send_registration_confirmation(
        to_email=to_email,
        recipient_name=recipient_name,
        event_name=event_name,
        registration_id=registration_id,
        event_date=event_date,
        team_name=team_name,
        qr_code_png=qr_png,
    )
    if not result.get("success"):
        logger.info(
            f"Confirmation email not sent for registration {registration_id}: {result.get('error')}"
        )


registration_service = RegistrationService()
