"""
SnipStash Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every failure kind the services
       can surface.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the identity dependency; caught by global handlers.

Exception Hierarchy:
    SnipStashError (base)
    ├── IdentityError               → 401 Unauthorized
    │   ├── UnauthorizedError           (no credential presented)
    │   ├── InvalidCredentialError      (malformed / bad signature / unknown subject)
    │   └── CredentialExpiredError      (token past its exp claim)
    ├── ForbiddenError              → 403 Forbidden
    ├── NotFoundError               → 404 Not Found
    ├── ConflictError               → 409 Conflict
    ├── InvalidArgumentError        → 400 Bad Request
    └── DatabaseError               → 500 Internal Server Error

Ownership Note:
    A snippet or folder that exists but belongs to someone else raises the
    same NotFoundError as one that does not exist at all. Callers can never
    tell the two apart.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class SnipStashError(Exception):
    """
    Base exception for all SnipStash application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# Identity failures
# ══════════════════════════════════════════════════════════════════════════


class IdentityError(SnipStashError):
    """
    Raised when an inbound credential cannot be turned into an identity.

    `kind` is the machine-readable failure code placed in the error body.
    Identity failures are surfaced to the caller and never retried.
    """

    kind = "unauthorized"

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(IdentityError):
    """No credential was presented (missing header, empty token)."""

    kind = "unauthorized"

    def __init__(
        self,
        message: str = "Not authorized, no token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialError(IdentityError):
    """
    The credential is malformed, its signature does not verify, or the user
    it names no longer exists.
    """

    kind = "invalid_credential"

    def __init__(
        self,
        message: str = "Not authorized, invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CredentialExpiredError(IdentityError):
    """The credential verified but its validity window has passed."""

    kind = "credential_expired"

    def __init__(
        self,
        message: str = "Token has expired",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(SnipStashError):
    """
    Raised when a valid identity lacks the capability an operation requires.

    HTTP: 403 Forbidden

    Every identity currently holds the single "standard_user" capability, so
    this only fires through ensure_capability() with a different requirement.
    """

    def __init__(
        self,
        capability: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Access denied"
        ctx = context or {}
        if capability:
            message = f"Access denied: requires capability '{capability}'"
            ctx["capability"] = capability
        super().__init__(message=message, context=ctx)
        self.capability = capability


# ══════════════════════════════════════════════════════════════════════════
# Entity failures
# ══════════════════════════════════════════════════════════════════════════


class NotFoundError(SnipStashError):
    """
    Raised when a requested resource does not exist or is not owned by the
    requesting user.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(SnipStashError):
    """
    Raised when a write collides with a uniqueness constraint.

    HTTP: 409 Conflict

    Two situations produce it:
        - An explicit create of a duplicate (folder name per user, user email):
          surfaced to the end user.
        - A find-or-create race on a tag name: caught inside TagService,
          which re-reads the row the concurrent caller created.
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        resource: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        super().__init__(message=message, context=ctx)
        self.resource = resource


class InvalidArgumentError(SnipStashError):
    """
    Raised when a caller supplies a value no operation can accept:
    non-positive page or page size, unknown sort key, blank filter values.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid argument",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DatabaseError(SnipStashError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic; the original
    exception type travels in `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


@contextmanager
def database_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Wrap unexpected SQLAlchemy failures of `operation` in DatabaseError.

    Application exceptions pass through untouched. Usage:

        with database_errors("search snippets", user_id=str(user_id)):
            result = await db.execute(query)
    """
    try:
        yield
    except SnipStashError:
        raise
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            message=f"Could not {operation}. Please try again.",
            context={**context, "error_type": type(e).__name__},
        ) from e
