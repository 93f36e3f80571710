"""
Exception types raised by quickauth components.

The engine converts all of these into ``AuthResult`` failures; they only
surface directly from storage adapters and the FastAPI dependencies.
"""


class QuickAuthError(Exception):
    """Base class for quickauth errors."""


class UserNotFoundError(QuickAuthError, LookupError):
    """Raised by a store when an update targets an unknown user id."""

    def __init__(self, user_id: str):
        super().__init__(f"User '{user_id}' not found")
        self.user_id = user_id


class DuplicateEmailError(QuickAuthError, ValueError):
    """Raised by a store when an email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"Email '{email}' is already registered")
        self.email = email


class NotAuthenticatedError(QuickAuthError):
    """Raised by the required-auth dependency; rendered as a 401 response."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message
