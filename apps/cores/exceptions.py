"""
Error taxonomy shared by every service.

Services raise only these classes. They are DRF ``APIException`` subclasses
so views can let them propagate and DRF renders ``{"detail": ...}`` with
the matching status code.
"""
import logging
from contextlib import contextmanager

from django.db import DatabaseError
from rest_framework import exceptions, status

logger = logging.getLogger(__name__)


class ValidationError(exceptions.ValidationError):
    default_detail = "Invalid input."


class Forbidden(exceptions.PermissionDenied):
    default_detail = "You are not allowed to perform this action."


class NotFound(exceptions.NotFound):
    default_detail = "Not found."


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting request."
    default_code = "conflict"


class InvalidState(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_state"


class Internal(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal"


@contextmanager
def storage_guard(operation):
    """
    Translate storage failures into ``Internal``.

    Works as a context manager or a decorator. Anything raised by the
    database layer is logged with its traceback and replaced, so callers
    never see driver details.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Storage failure during %s", operation)
        raise Internal() from exc
