"""
Client-side error taxonomy derived from HTTP status codes
"""
from typing import Optional


class ApiError(Exception):
    """Base class for every non-2xx answer from the API"""

    def __init__(self, status_code: int, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.detail = detail


class Unauthorized(ApiError):
    """Missing, invalid or expired token; the user must log in again"""


class Forbidden(ApiError):
    """Valid session without permission for the resource"""


class NotFound(ApiError):
    """Resource or row does not exist (recoverable "no data")"""


class BadRequest(ApiError):
    """Validation failure; detail carries the server's explanation"""


class ServerError(ApiError):
    pass


class Unexpected(ApiError):
    pass


def error_for_status(status_code: int, detail: Optional[str] = None) -> ApiError:
    """Map a status code and best-effort body detail to the matching error"""
    detail = (detail or "").strip()
    if status_code == 400:
        return BadRequest(status_code, f"Bad request (400). {detail}".strip(), detail)
    if status_code == 401:
        return Unauthorized(status_code, "Unauthorized access. Check your credentials or the token.", detail)
    if status_code == 403:
        return Forbidden(status_code, "Access denied. You do not have sufficient permissions.", detail)
    if status_code == 404:
        return NotFound(status_code, "Resource not found on the server.", detail)
    if status_code == 500:
        return ServerError(status_code, "Internal server error.", detail)
    return Unexpected(status_code, f"Unexpected error ({status_code}). {detail}".strip(), detail)
