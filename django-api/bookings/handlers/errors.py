"""Map domain errors to HTTP responses.

Installed as REST_FRAMEWORK["EXCEPTION_HANDLER"]; anything that is not a
DomainError goes through DRF's default handler.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from bookings.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.GAME_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVOICE_LINE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SCHOOL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PACKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.YEAR_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_CREATION_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.STEP_NOT_REACHABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BOOKING_LOCKED: status.HTTP_409_CONFLICT,
    ErrorCode.MISSING_PACKET_ASSIGNMENT: status.HTTP_409_CONFLICT,
    ErrorCode.PACKET_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.STALE_ASSIGNMENT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
}


def error_body(error: DomainError) -> dict:
    return {"code": error.code.value, "message": error.message, "errors": list(error.errors)}


def domain_exception_handler(exc, context):
    """Render DomainError as {"code", "message", "errors"} with its mapped status."""
    if isinstance(exc, DomainError):
        response_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
        view = context.get("view")
        logger.debug(
            "%s in %s", exc.code.value, view.__class__.__name__ if view else "unknown view"
        )
        return Response(error_body(exc), status=response_status)

    return exception_handler(exc, context)
