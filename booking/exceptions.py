"""
booking/exceptions.py

Domain errors raised by the service layer and the persistence gateway, plus
the DRF exception handler that turns them (and every other API error) into
``{"error": ...}`` JSON bodies.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class FloorPlanError(Exception):
    """Base class for booking domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ReservationConflict(FloorPlanError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Time slot not available"


class GatewayError(FloorPlanError):
    """A table update could not be persisted (validation or storage failure)."""

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class TableNotFound(GatewayError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Table not found"


def api_exception_handler(exc, context):
    if isinstance(exc, FloorPlanError):
        body = {"error": exc.message}
        if getattr(exc, "errors", None):
            body["fields"] = exc.errors
        return Response(body, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        logger.error(f"Unhandled API error in {context.get('view')}: {exc}", exc_info=exc)
        return None

    data = response.data
    if isinstance(data, dict) and "detail" in data:
        response.data = {"error": data["detail"]}
    else:
        response.data = {"error": "Invalid data", "fields": data}
    return response
