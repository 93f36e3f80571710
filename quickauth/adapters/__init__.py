"""
Adapter interfaces and implementations for quickauth.
"""

from .storage import UserStore
from .strategy import AuthStrategy

__all__ = [
    "AuthStrategy",
    "UserStore",
]
