# core/api.py

"""
API ERROR NORMALIZATION

Canonical error envelope for every endpoint:

    {"error": {"code": "...", "message": "...", "details": ...}}

- Lifecycle errors map to their own code/status.
- DRF errors (serializer validation, auth, 404) keep DRF's status and are
  wrapped into the same envelope.
- Internal details (exception type) are only exposed when DEBUG is on.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from core.exceptions import LifecycleError

logger = logging.getLogger(__name__)


def error_response(*, code: str, message: str, http_status: int, details=None):
    payload = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return Response({"error": payload}, status=http_status)


def _drf_code(exc) -> str:
    if isinstance(exc, Http404):
        return "NOT_FOUND"
    default_code = getattr(exc, "default_code", None) or "error"
    return str(default_code).upper()


def api_exception_handler(exc, context):
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, LifecycleError):
        if exc.http_status >= 500:
            logger.error(
                "Lifecycle dependency failure",
                extra={"view": view_name, "code": exc.code},
            )
        response = error_response(
            code=exc.code,
            message=exc.message,
            http_status=exc.http_status,
            details=exc.details,
        )
        if settings.DEBUG:
            response.data["error"]["debug"] = {"type": exc.__class__.__name__}
        return response

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled API error", extra={"view": view_name})
        response = error_response(
            code="INTERNAL_ERROR",
            message="Internal server error",
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        if settings.DEBUG:
            response.data["error"]["debug"] = {
                "type": exc.__class__.__name__,
                "message": str(exc),
            }
        return response

    data = response.data
    details = None
    if isinstance(data, dict) and set(data) == {"detail"}:
        message = str(data["detail"])
    elif response.status_code == status.HTTP_400_BAD_REQUEST:
        message = "Validation failed"
        details = data
    else:
        message = "Request failed"
        details = data

    response.data = {
        "error": {"code": _drf_code(exc), "message": message}
    }
    if details is not None:
        response.data["error"]["details"] = details
    return response
