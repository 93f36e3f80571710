"""
quickauth: password hashing, token issuance and user storage behind a few
lines of FastAPI setup.
"""

from quickauth.adapters.impl.jwt_strategy import JWTStrategy
from quickauth.adapters.impl.memory_users import InMemoryUserStore
from quickauth.adapters.impl.sqlite_users import SQLiteUserStore
from quickauth.adapters.storage import UserStore
from quickauth.adapters.strategy import AuthStrategy
from quickauth.core.engine import AuthCallbacks, AuthEngine
from quickauth.core.errors import (
    DuplicateEmailError,
    NotAuthenticatedError,
    QuickAuthError,
    UserNotFoundError,
)
from quickauth.core.validation import ValidationConfig, ValidationResult
from quickauth.factory import QuickAuth, create_auth, quick_auth
from quickauth.models.schemas import AuthResult, User, UserRecord

__version__ = "0.1.0"

__all__ = [
    "AuthCallbacks",
    "AuthEngine",
    "AuthResult",
    "AuthStrategy",
    "DuplicateEmailError",
    "InMemoryUserStore",
    "JWTStrategy",
    "NotAuthenticatedError",
    "QuickAuth",
    "QuickAuthError",
    "SQLiteUserStore",
    "User",
    "UserNotFoundError",
    "UserRecord",
    "UserStore",
    "ValidationConfig",
    "ValidationResult",
    "create_auth",
    "quick_auth",
]
