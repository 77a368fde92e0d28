# campus_attendance/api/errors.py
from fastapi import HTTPException, status

from campus_attendance.core.exceptions import (
    CampusAttendanceError,
    DuplicateRegistrationError,
    EligibilityError,
    PayloadValidationError,
    QRCodeIntegrityError,
    ResourceNotFoundError,
)

# Checked in order; the first matching base class wins.
_STATUS_BY_ERROR = (
    (PayloadValidationError, status.HTTP_400_BAD_REQUEST),
    (QRCodeIntegrityError, status.HTTP_400_BAD_REQUEST),
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (EligibilityError, status.HTTP_403_FORBIDDEN),
    (DuplicateRegistrationError, status.HTTP_409_CONFLICT),
)


def to_http_exception(exc: CampusAttendanceError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.to_detail())
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.to_detail()
    )


def internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error_code": "INTERNAL_ERROR", "message": message},
    )
