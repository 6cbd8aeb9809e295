"""
Domain exceptions raised by controllers.

Each carries the HTTP status it maps to; the handlers registered in main.py
turn them into the standard ``{"success": false, "error": ...}`` envelope.
"""

from typing import Optional


class FestError(Exception):
    """Base exception for all registration backend errors"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ValidationError(FestError):
    """Malformed or out-of-policy input"""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(FestError):
    """Missing user, event or order"""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(FestError):
    """Duplicate transaction, duplicate registration or an illegal status transition.

    Answered with 400 by default, which is what clients of this API already
    expect for these cases.
    """

    status_code = 400
    code = "CONFLICT"


class AuthenticationError(FestError):
    """Missing or invalid identity"""

    status_code = 401
    code = "AUTH_FAILED"


class AuthorizationError(FestError):
    """Identity resolved but not allowed to do this"""

    status_code = 403
    code = "NOT_AUTHORIZED"
