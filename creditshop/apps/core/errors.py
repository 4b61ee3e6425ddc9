from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for domain errors surfaced to API callers.

    ``code`` is a stable machine-readable kind, ``message`` the human-readable
    text shown to the user or administrator.
    """

    code = "SERVICE_ERROR"
    http_status = 400
    default_message = "Request could not be processed"
    retryable = False

    def __init__(self, message: Optional[str] = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.retryable:
            payload["retryable"] = True
        return payload
