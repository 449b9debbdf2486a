"""
Error kinds raised by the service layer and the DRF exception handler that
turns them (and persistence errors) into user-safe responses.

- ValidationError      400  malformed input, field-level messages
- AuthenticationError  401  no or invalid principal
- AuthorizationError   403  valid principal, action not allowed
- NotFoundError        404  target id absent
- ConflictError        409  uniqueness violation
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationError(exceptions.ValidationError):
    default_detail = "Invalid input."


class AuthenticationError(exceptions.AuthenticationFailed):
    default_detail = "Authentication credentials were not provided or are invalid."


class AuthorizationError(exceptions.PermissionDenied):
    default_detail = "You do not have permission to perform this action."


class NotFoundError(exceptions.NotFound):
    default_detail = "Not found."


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A record with these values already exists."
    default_code = "conflict"


class ServiceUnavailable(exceptions.APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable, please try again later."
    default_code = "service_unavailable"


def _translate(exc):
    """Map Django/database exceptions onto the API error kinds."""
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            return ValidationError(exc.message_dict)
        return ValidationError(exc.messages)
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error surfaced as conflict: %s", exc)
        return ConflictError()
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling request", exc_info=exc)
        return ServiceUnavailable()
    return exc


def api_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"].
    Raw persistence errors never reach the response body.
    """
    exc = _translate(exc)
    response = exception_handler(exc, context)
    if response is not None and response.status_code >= 500:
        view = context.get("view")
        logger.error(
            "%s returned %s", view.__class__.__name__ if view else "view", response.status_code
        )
    return response
