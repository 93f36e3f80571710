"""
Pydantic models for quickauth.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, model_validator


# Names that belong to the fixed user schema and never land in ``attributes``.
RESERVED_USER_FIELDS = frozenset(
    {"id", "email", "password", "password_hash", "created_at", "updated_at"}
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserBase(BaseModel):
    """Fields shared by every user representation."""
    id: str = Field(..., min_length=1)
    email: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class User(UserBase):
    """User as seen outside the engine. Has no password field."""


class UserRecord(UserBase):
    """User as persisted by a store, including the bcrypt hash."""
    password_hash: Optional[str] = None

    def to_public(self) -> User:
        """Drop the password hash."""
        return User(**self.model_dump(exclude={"password_hash"}))


class NewUser(BaseModel):
    """Payload handed to ``UserStore.create_user``."""
    email: str = Field(..., min_length=1)
    password_hash: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    """Login request model."""
    email: str
    password: str


class AuthResult(BaseModel):
    """Uniform outcome of every engine operation."""
    success: bool
    user: Optional[User] = None
    token: Optional[str] = None
    error: Optional[str] = None
    errors: Optional[Dict[str, str]] = None

    @model_validator(mode="after")
    def check_envelope(self) -> "AuthResult":
        if self.success and (self.error is not None or self.errors):
            raise ValueError("successful result cannot carry errors")
        if not self.success and not self.error:
            raise ValueError("failed result requires an error message")
        return self

    @classmethod
    def ok(cls, user: Optional[User] = None, token: Optional[str] = None) -> "AuthResult":
        return cls(success=True, user=user, token=token)

    @classmethod
    def fail(cls, error: str, errors: Optional[Dict[str, str]] = None) -> "AuthResult":
        return cls(success=False, error=error, errors=errors or None)

    def to_response(self) -> Dict[str, Any]:
        """JSON-ready dict without the absent fields."""
        return self.model_dump(mode="json", exclude_none=True)
