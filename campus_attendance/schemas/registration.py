# campus_attendance/schemas/registration.py
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from campus_attendance.schemas.qr import QRToken


class RegistrationType(str, Enum):
    individual = "individual"
    team = "team"


class OrganizationClass(str, Enum):
    member = "member"
    outsider = "outsider"


def _identifier_to_str(value):
    # Legacy clients send register numbers as integers.
    if value is None or value == "":
        return None
    return str(value).strip() or None


Identifier = Annotated[Optional[str], BeforeValidator(_identifier_to_str)]


class Participant(BaseModel):
    """One person on a registration: the individual, a team leader or a teammate."""

    name: str = Field(..., min_length=1, json_schema_extra={"example": "Asha"})
    email: str = Field(
        ..., min_length=3, json_schema_extra={"example": "a@christuniversity.in"}
    )
    registerNumber: Identifier = Field(
        None, json_schema_extra={"example": "1234567"}
    )

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


# ============================================
# Request bodies (two accepted shapes)
# ============================================


class NewStyleRegistration(BaseModel):
    """Body sent by the current web client."""

    eventId: str = Field(..., min_length=1)
    teamName: Optional[str] = None
    teammates: List[Participant] = Field(..., min_length=1)
    custom_field_responses: Optional[Dict[str, Any]] = None


class LegacyRegistration(BaseModel):
    """Discrete-field body kept for older clients."""

    event_id: str = Field(..., min_length=1)
    registration_type: RegistrationType = RegistrationType.individual
    user_email: Optional[str] = None

    individual_name: Optional[str] = None
    individual_email: Optional[str] = None
    individual_register_number: Identifier = None

    team_name: Optional[str] = None
    team_leader_name: Optional[str] = None
    team_leader_email: Optional[str] = None
    team_leader_register_number: Identifier = None
    teammates: List[Participant] = Field(default_factory=list)

    custom_field_responses: Optional[Dict[str, Any]] = None


class CanonicalRegistration(BaseModel):
    """Single internal shape both request bodies are normalized into."""

    event_id: str
    kind: RegistrationType
    team_name: Optional[str] = None
    primary_contact: Participant
    members: List[Participant]
    custom_field_responses: Optional[Dict[str, Any]] = None
    user_email: Optional[str] = None

    @property
    def participant_count(self) -> int:
        return len(self.members)

    @property
    def participant_key(self) -> str:
        if self.primary_contact.registerNumber:
            return self.primary_contact.registerNumber.upper()
        return self.primary_contact.email.lower()


# ============================================
# Responses
# ============================================


class Registration(BaseModel):
    id: str
    event_id: str
    registration_type: RegistrationType
    team_name: Optional[str] = None
    primary_name: str
    primary_email: str
    primary_identifier: Optional[str] = None
    members: List[Participant]
    participant_count: int
    organization_class: OrganizationClass
    qr_code_data: QRToken
    qr_code_generated_at: datetime
    custom_field_responses: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegistrationCreatedResponse(BaseModel):
    message: str
    registration: Registration


class RegistrationListResponse(BaseModel):
    registrations: List[Registration]
    count: int


class RegistrationDetailResponse(BaseModel):
    registration: Registration


class MessageResponse(BaseModel):
    message: str


class UserRegisteredEvent(BaseModel):
    id: str
    event_id: str
    name: str
    date: Optional[datetime] = None
    registration_id: str


class UserRegisteredEventsResponse(BaseModel):
    events: List[UserRegisteredEvent]
    count: int
