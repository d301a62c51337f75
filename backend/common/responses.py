"""
Response envelope shared by the REST views.

Success: {"success": true, "data": ..., "message": "..."}
Failure: {"success": false, "error": "<code>", "message": "..."}
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from services.ride_management.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RideManagementError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def success_response(data=None, message="", status_code=status.HTTP_200_OK, **extra):
    body = {"success": True, "data": data, "message": message}
    body.update(extra)
    return Response(body, status=status_code)


def error_response(error_code, message, status_code):
    return Response(
        {"success": False, "error": error_code, "message": message},
        status=status_code,
    )


def service_error_response(exc: RideManagementError):
    """Translate a ride service exception into its HTTP response."""
    for error_class, status_code in ERROR_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    logger.debug("Service error %s (%s): %s", exc.error_code, status_code, exc.message)
    return error_response(exc.error_code, exc.message, status_code)
