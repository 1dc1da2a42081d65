import logging

from django.db import DatabaseError
from rest_framework.views import exception_handler

from .exceptions import Internal

logger = logging.getLogger(__name__)


def service_exception_handler(exc, context):
    """
    DRF exception handler.

    Storage errors that escaped a service are logged and answered as a
    plain 500 without internals; every other 5xx is logged too.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown view"

    if isinstance(exc, DatabaseError):
        logger.exception("Unhandled storage error in %s", view_name)
        exc = Internal()

    response = exception_handler(exc, context)

    if response is not None and response.status_code >= 500:
        logger.error("%s answered %s: %s", view_name, response.status_code, exc)

    return response
