# campus_attendance/api/v1/endpoints/registrations.py
"""
Registration endpoints.

POST /register accepts both the current client's body and the legacy
discrete-field body; the service normalizes them.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from campus_attendance.api.errors import internal_error, to_http_exception
from campus_attendance.core.exceptions import CampusAttendanceError
from campus_attendance.db.session import get_db
from campus_attendance.schemas.qr import QRCodeImageResponse
from campus_attendance.schemas.registration import (
    MessageResponse,
    RegistrationCreatedResponse,
    RegistrationDetailResponse,
    RegistrationListResponse,
    UserRegisteredEventsResponse,
)
from campus_attendance.services.qr.qr_image import render_qr_data_url
from campus_attendance.services.registration_service import (
    deliver_registration_confirmation,
    registration_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Registrations"])


@router.post(
    "/register",
    response_model=RegistrationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    background_tasks: BackgroundTasks,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
):
    """
    Register an individual or a team for an event.

    The confirmation email (with the QR code attached) is sent after the
    response; its failure never fails the registration.
    """
    try:
        registration = registration_service.register(db, payload)
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception("Unexpected error while registering")
        raise internal_error("Registration failed")

    event = registration.event
    background_tasks.add_task(
        deliver_registration_confirmation,
        to_email=registration.primary_email,
        recipient_name=registration.primary_name,
        event_name=event.title if event else registration.event_id,
        registration_id=registration.id,
        qr_token=registration.qr_code_data,
        event_date=event.event_date.isoformat() if event and event.event_date else None,
        team_name=registration.team_name,
    )

    return {"message": "Registration successful", "registration": registration}


@router.get("/registrations", response_model=RegistrationListResponse)
def list_registrations(
    event_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    if not event_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error_code": "VALIDATION_ERROR", "message": "event_id is required"},
        )
    registrations = registration_service.list_registrations(
        db, event_id, skip=skip, limit=limit
    )
    return {"registrations": registrations, "count": len(registrations)}


@router.get(
    "/registrations/user/{register_id}/events",
    response_model=UserRegisteredEventsResponse,
)
def get_user_registered_events(register_id: str, db: Session = Depends(get_db)):
    """Events a register number or visitor id is registered for."""
    events = registration_service.get_events_for_identifier(db, register_id)
    return {"events": events, "count": len(events)}


@router.get(
    "/registrations/{registration_id}", response_model=RegistrationDetailResponse
)
def get_registration(registration_id: str, db: Session = Depends(get_db)):
    try:
        registration = registration_service.get_registration(db, registration_id)
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    return {"registration": registration}


@router.get(
    "/registrations/{registration_id}/qr-code", response_model=QRCodeImageResponse
)
def get_registration_qr_code(registration_id: str, db: Session = Depends(get_db)):
    """The stored token rendered as a PNG data URL."""
    try:
        registration = registration_service.get_registration(db, registration_id)
    except CampusAttendanceError as e:
        raise to_http_exception(e)

    try:
        image = render_qr_data_url(registration.qr_code_data)
    except Exception:
        logger.exception(f"Failed to render QR code for registration {registration_id}")
        raise internal_error("Failed to generate QR code image")

    return {"qrCodeImage": image, "eventId": registration.event_id}


@router.delete("/registrations/{registration_id}", response_model=MessageResponse)
def delete_registration(registration_id: str, db: Session = Depends(get_db)):
    try:
        registration_service.delete_registration(db, registration_id)
    except CampusAttendanceError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception(f"Unexpected error deleting registration {registration_id}")
        raise internal_error("Failed to delete registration")
    return {"message": "Registration deleted successfully"}
