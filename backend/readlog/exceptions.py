"""
Readlog Backend - Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every failure the API can report.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       the JSON envelope with the matching HTTP status code.
Who:   Raised by the gateway, the password hasher, services and middleware.

Exception Hierarchy:
    ReadlogError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── StorageError             → 500 Internal Server Error
    └── HashingError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ReadlogError(Exception):
    """
    Base exception for all Readlog application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ReadlogError):
    """
    Raised when client input fails a business rule.

    When:  Username/password length, empty ISBN or title, progress beyond
           the book's page count, unsupported filter combinations.
    HTTP:  400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(ReadlogError):
    """
    Raised when login credentials do not match.

    The message is identical for an unknown username and a wrong password.
    HTTP:  401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Invalid username or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ReadlogError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; the gateway converts that
    None into this exception.
    HTTP:  404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource.capitalize()} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ReadlogError):
    """
    Raised when a write would violate a uniqueness rule.

    When:  Username already taken; a record for (user, ISBN) already exists;
           a unique constraint fired because a concurrent request won the race.
    HTTP:  409 Conflict
    """

    status_code = 409

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(ReadlogError):
    """
    Raised when a persistence operation fails for any reason other than
    a missing row or a constraint violation.

    When:  Connection lost, pool timeout, deadlock, driver error.
    HTTP:  500 Internal Server Error

    Security Note:
        The raw driver error goes into `context` only. The client always
        sees the generic message.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class HashingError(ReadlogError):
    """
    Raised when bcrypt cannot hash a password or the stored hash is malformed.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Password processing failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ReadlogError):
    """
    Raised when a client exceeds the per-IP request rate limit.
    HTTP:  429 Too Many Requests (with a Retry-After header)
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
