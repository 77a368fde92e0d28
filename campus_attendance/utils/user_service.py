# campus_attendance/utils/user_service.py
"""
User service client for eligibility lookups.

Registration only needs one fact about a participant it cannot derive from
the payload: whether the account is flagged as an outsider. The lookup is a
direct HTTP call to the user service's internal API.
"""
import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from campus_attendance.core.config import settings

logger = logging.getLogger(__name__)


def get_user_by_email(email: str) -> Optional[Dict]:
    """
    Fetch a user record by email.

    Args:
        email: The participant's email address

    Returns:
        Dict with at least ``organization_type`` and ``visitor_id`` keys, or
        None when the user is unknown or the service is unavailable.
    """
    user_service_url = settings.USER_SERVICE_URL
    if not user_service_url:
        logger.debug("USER_SERVICE_URL not configured; skipping lookup for %s", email)
        return None

    user_service_url = user_service_url.rstrip("/")
    headers = {}
    if settings.INTERNAL_API_KEY:
        headers["x-api-key"] = settings.INTERNAL_API_KEY

    try:
        with httpx.Client(timeout=settings.USER_SERVICE_TIMEOUT_SECONDS) as client:
            response = client.get(
                f"{user_service_url}/internal/users/by-email/{quote(email, safe='')}",
                headers=headers,
            )

        if response.status_code == 200:
            user_data = response.json()
            return {
                "email": user_data.get("email", email),
                "name": user_data.get("name"),
                "organization_type": user_data.get("organization_type"),
                "visitor_id": user_data.get("visitor_id"),
            }
        elif response.status_code == 404:
            logger.info(f"User {email} not found in user service")
            return None
        else:
            logger.error(
                f"Failed to fetch user {email}: HTTP {response.status_code}"
            )
            return None

    except httpx.TimeoutException:
        logger.error(f"Timeout fetching user info for {email}")
        return None
    except httpx.HTTPError as e:
        logger.error(f"Error fetching user info for {email}: {e}")
        return None
    except ValueError as e:
        logger.error(f"User service returned invalid JSON for {email}: {e}")
        return None
