from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Error that maps directly onto a JSON error response."""

    status_code = 500
    error = "InternalError"

    def __init__(self, message: str, *, details: Any = None, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if error:
            self.error = error

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ApiError):
    status_code = 400
    error = "ValidationError"


class Unauthorized(ApiError):
    status_code = 401
    error = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    error = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    error = "NotFound"


class Conflict(ApiError):
    status_code = 409
    error = "ConflictError"


class TooManyRequests(ApiError):
    status_code = 429
    error = "TooManyRequests"
