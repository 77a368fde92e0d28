from jose import jwt

from campus_attendance.core.config import settings
from campus_attendance.schemas.token import TokenPayload


def get_user_authentication_headers(user_id: str = "scanner_test") -> dict[str, str]:
    """
    Generates a valid JWT token and authentication headers for a test user.
    """
    payload = TokenPayload(sub=user_id, exp=9999999999)  # High expiration for tests
    token = jwt.encode(payload.model_dump(), settings.JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
