"""
One access line per API call on the ``request`` logger.

Server errors are logged at WARNING so they reach the error log alongside the
service-level failures that caused them.
"""
from __future__ import annotations

import logging
import time

logger = logging.getLogger("request")


def _account_id(request):
    # DRF authenticates inside the view, so this only works after get_response
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return str(user.pk)
    return None


class RequestLogMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.perf_counter()
        try:
            response = self.get_response(request)
        except Exception:
            self._log(request, 500, started, exc_info=True)
            raise
        self._log(request, response.status_code, started)
        return response

    def _log(self, request, status_code: int, started: float, exc_info: bool = False) -> None:
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        level = logging.WARNING if status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s %s %.1fms",
            request.method,
            request.path,
            status_code,
            duration_ms,
            exc_info=exc_info,
            extra={
                "method": request.method,
                "path": request.path,
                "userId": _account_id(request),
                "status": status_code,
                "durationMs": duration_ms,
            },
        )
