"""
Pydantic models for quickauth.
"""

from .schemas import AuthResult, LoginRequest, NewUser, User, UserBase, UserRecord

__all__ = [
    "AuthResult",
    "LoginRequest",
    "NewUser",
    "User",
    "UserBase",
    "UserRecord",
]
