"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable error kinds callers can rely on; the translation
to HTTP problem responses lives in ``twitterclone/core/errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name in the message; SQLite reports the
    offending ``table.column`` pair, so callers may pass either form.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name (``uq_users_email``) or column
        reference (``users.email``).
    :returns: ``True`` if the IntegrityError mentions the given name.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    These are *not* HTTP errors; the API layer maps each subclass to a stable
    error code.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when a referenced entity (post, parent post) does not exist.

    :param entity: Entity name (e.g., "Post").
    :param key: Identifier or search key.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


class UserNotFoundError(NotFoundError):
    """Raised when a username (or token subject) does not map to a user."""

    def __init__(self, username: str) -> None:
        super().__init__("User", username)


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class DuplicateIdentityError(ConflictError):
    """Signup conflict: the username or email is already taken."""

    def __init__(self, field: str) -> None:
        super().__init__("User", f"{field} already in use")
        self.field = field


class UnauthenticatedError(ServiceError):
    """Bad credentials. Deliberately opaque: unknown user and wrong password look alike."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class InvalidTokenError(ServiceError):
    """
    Expired, forged, malformed, unknown or already consumed token.

    The optional ``reason`` is for server-side logs only and is never
    rendered to clients.
    """

    def __init__(self, message: str = "Invalid or expired token", *, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class UnavailableError(ServiceError):
    """Transient store failure (timeout, conflict-retry exhaustion). Retryable."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(message)


class ForbiddenError(ServiceError):
    """The acting user is not allowed to act on the resource (e.g. not its author)."""

    def __init__(self, message: str = "You can only delete your own posts") -> None:
        super().__init__(message)


class InvalidPostError(ServiceError):
    """A post whose kind and parent do not agree (a reply needs a parent, a root has none)."""
