"""
FinSight Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for each error scenario.
Why:   Targeted error handling with the right HTTP status code and a
       user-facing message that never leaks internals.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    FinSightError (base)
    ├── ValidationError     → 400 Bad Request (missing or malformed fields)
    ├── AuthError           → 401 Unauthorized (bad credentials, no/expired token)
    ├── ConflictError       → 409 Conflict (email already registered)
    ├── UpstreamError       → 500 (LLM API unreachable, timed out, empty)
    ├── ParseFailure        → 500 (model output held no recoverable JSON)
    └── DatabaseError       → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class FinSightError(Exception):
    """
    Base exception for all FinSight application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FinSightError):
    """
    Raised when client input fails validation.

    When:    Missing required fields on /login, /signin or /analyze.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "All fields are required.",
            "details": {"fields": ["duration"]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, context=ctx)
        self.fields = list(fields or [])


class AuthError(FinSightError):
    """
    Raised when a caller cannot be authenticated.

    Two flavours share this class, told apart by `code`:
        - "invalid_credentials":      /login with unknown email or wrong password
        - "authentication_required":  protected route without a valid token

    HTTP:    401 Unauthorized

    The message is identical for "unknown email" and "wrong password" so the
    endpoint cannot be used to probe which emails are registered.
    """

    def __init__(
        self,
        message: str = "Please login first",
        code: str = "authentication_required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.code = code


class ConflictError(FinSightError):
    """
    Raised when signup hits an email that is already registered.

    Covers both the up-front existence check and the unique-index violation
    raised by the store when two signups for the same email race.

    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "User already exists with this email",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamError(FinSightError):
    """
    Raised when the external completion API fails.

    When:    Connection refused, timeout, non-2xx status, or a response with
             no completion content (reason="empty").
    HTTP:    500 with a generic, endpoint-specific message. The raw upstream
             error stays in `context` and the logs.
    """

    def __init__(
        self,
        message: str = "The AI service request failed",
        reason: str = "request_failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class ParseFailure(FinSightError):
    """
    Raised when the JSON extractor exhausts every strategy.

    HTTP:    500 "Model returned unparsable JSON."
    """

    def __init__(
        self,
        message: str = "Model returned unparsable JSON.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FinSightError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; constraint names
    and SQL are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
