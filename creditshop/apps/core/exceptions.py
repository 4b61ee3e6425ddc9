from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import ServiceError

logger = logging.getLogger(__name__)


def service_exception_handler(exc, context):
    """Render ServiceError subclasses as ``{code, message}`` with their HTTP status."""
    if isinstance(exc, ServiceError):
        view = context.get("view")
        logger.info(
            "service error",
            extra={
                "code": exc.code,
                "view": type(view).__name__ if view is not None else None,
                "error": exc.message,
            },
        )
        return Response(exc.as_payload(), status=exc.http_status)
    return exception_handler(exc, context)
