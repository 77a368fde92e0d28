# campus_attendance/services/eligibility.py
"""
Outsider/member classification and outsider quota enforcement.

A participant is an outsider when their identifier carries the visitor
prefix. Only when the registration has no identifier at all is the user
service consulted; the identifier always wins over stored account state.
"""
import logging
from typing import Callable, Optional

from campus_attendance.core.config import settings
from campus_attendance.core.exceptions import (
    OutsiderNotAllowedError,
    OutsiderQuotaExceededError,
)
from campus_attendance.models.event import Event
from campus_attendance.schemas.registration import OrganizationClass

logger = logging.getLogger(__name__)

UserLookup = Callable[[], Optional[dict]]


def is_visitor_id(identifier: Optional[str]) -> bool:
    if not identifier:
        return False
    return identifier.strip().upper().startswith(settings.VISITOR_ID_PREFIX.upper())


def classify_participant(
    identifier: Optional[str], user_lookup: Optional[UserLookup] = None
) -> OrganizationClass:
    if is_visitor_id(identifier):
        return OrganizationClass.outsider

    if not identifier and user_lookup is not None:
        user = user_lookup()
        if user and user.get("organization_type") == OrganizationClass.outsider.value:
            return OrganizationClass.outsider

    return OrganizationClass.member


def authorize_participants(
    event: Event,
    organization_class: OrganizationClass,
    current_outsider_count: int,
    incoming_participants: int = 1,
) -> None:
    """
    Raise if the participants may not register for the event.

    ``current_outsider_count`` is the number of outsider participants (not
    registrations) already registered.
    """
    if organization_class != OrganizationClass.outsider:
        return

    if not event.outsider_allowed:
        raise OutsiderNotAllowedError(event.id)

    limit = event.outsider_max_participants
    if limit is not None and current_outsider_count + incoming_participants > limit:
        logger.info(
            f"Outsider quota reached for event {event.id}: "
            f"{current_outsider_count} + {incoming_participants} > {limit}"
        )
        raise OutsiderQuotaExceededError(
            event.id, limit, current_outsider_count, incoming_participants
        )
