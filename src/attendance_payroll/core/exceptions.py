from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is an optional machine-readable reason (e.g. ``CLOCK_IN_TOO_EARLY``).
    """

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when an action collides with existing state (duplicates, double clock-in)."""
