"""
Service-layer errors.

Each carries the HTTP status it maps to; the app's exception handler turns
them into `{"message": ..., **extra}` responses.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for request-level failures."""
    status_code = 400

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class BadRequestError(ServiceError):
    """Malformed input or a rule violation."""
    status_code = 400


class UnauthorizedError(ServiceError):
    """Missing or bad credentials."""
    status_code = 401


class ForbiddenError(ServiceError):
    """Authenticated, but not allowed to do this."""
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409
