from __future__ import annotations


class AppError(Exception):
    """Base application error; ``detail`` is safe to show to the caller."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class AuthenticationError(AppError):
    """Missing or invalid credential."""


class ForbiddenError(AppError):
    """Caller is not a party of the conversation it addressed."""


class ValidationError(AppError):
    """Malformed send or read request."""


class PersistenceError(AppError):
    """The message store rejected a write."""
