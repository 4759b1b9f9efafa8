"""
Application error taxonomy.

Every error carries the HTTP status it maps to; a single exception handler in
``main.create_app`` renders them as JSON.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.message
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": self.code}


class InvalidCredentials(AppError):
    status_code = 401
    code = "invalid_credentials"
    message = "Invalid credentials"


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class ValidationError(AppError):
    """Rejected write. ``errors`` mirrors FastAPI's 422 ``detail`` items."""
    status_code = 422
    code = "validation_error"
    message = "Validation failed"

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, msg: str, type_: str = "value_error") -> "ValidationError":
        return cls([{"loc": ["body", field], "msg": msg, "type": type_}])

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.errors, "error": self.code}


class UpstreamUnavailable(AppError):
    """AI or mail collaborator failure. Caught at the adapter boundary."""
    status_code = 502
    code = "upstream_unavailable"
    message = "Upstream service unavailable"
