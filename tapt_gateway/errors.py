"""
Gateway Errors
==============

Typed failures raised by services and converted to JSON responses by the
exception handlers in tapt_gateway.main.

Every error carries a client-safe message. Storage errors never expose the
underlying database code or text: they go through sanitize_error(), which
maps a fixed set of codes to friendly messages.
"""

from typing import Any, Dict, List, Optional


GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# Known PostgREST / auth error codes -> client-safe messages
ERROR_MESSAGES = {
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/wrong-password": "Invalid login credentials.",
    "23505": "A record with this information already exists.",
    "22P02": "Invalid input format.",
    "23503": "Related record not found.",
    "23514": "Input does not meet requirements.",
}


class GatewayError(Exception):
    """Base class for every failure with a client-facing message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class BadRequest(GatewayError):
    """Malformed body or missing top-level fields."""


class ValidationError(GatewayError):
    """One or more fields failed validation; all of them are reported."""

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class PeriodClosed(GatewayError):
    """Submission arrived outside the active period's window."""


class Unauthenticated(GatewayError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(GatewayError):
    status_code = 403

    def __init__(self, message: str = "Unauthorized - Admin access required"):
        super().__init__(message)


class NotFound(GatewayError):
    status_code = 404


class DuplicateSubmission(GatewayError):
    status_code = 409


class AlreadyRolledOver(GatewayError):
    status_code = 409

    def __init__(self, year: int, message: Optional[str] = None):
        super().__init__(message or f"A rollover for year {year} has already been performed")
        self.year = year


class LastAdminProtected(GatewayError):
    status_code = 409

    def __init__(self, message: str = "Cannot delete the last admin user"):
        super().__init__(message)


class RateLimited(GatewayError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Please try again later.",
                 retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class StorageError(GatewayError):
    """
    Failure reported by the row store, identity service or object storage.

    `code` is the backend's own code (e.g. "23505") and stays server-side;
    the client only ever sees the sanitized message.
    """

    def __init__(self, detail: str, code: Optional[str] = None):
        super().__init__(sanitize_error(code=code, detail=detail))
        self.code = code
        self.detail = detail

    def __str__(self):
        return f"{self.code or 'storage'}: {self.detail}"


def sanitize_error(error: Any = None, code: Optional[str] = None, detail: Optional[str] = None) -> str:
    """
    Map a backend failure to a client-safe message.

    Accepts either an exception/object carrying `code`/`message` attributes or
    explicit `code`/`detail` values. Unknown codes become the generic message.
    """
    if error is not None:
        code = code or getattr(error, "code", None)
        detail = detail or getattr(error, "message", None)

    if code and str(code) in ERROR_MESSAGES:
        return ERROR_MESSAGES[str(code)]
    if detail and detail in ERROR_MESSAGES:
        return ERROR_MESSAGES[detail]

    return GENERIC_ERROR_MESSAGE
