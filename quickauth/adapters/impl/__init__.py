"""
Default adapter implementations for quickauth.
"""

from .memory_users import InMemoryUserStore
from .sqlite_users import SQLiteUserStore
from .jwt_strategy import JWTStrategy

__all__ = [
    "InMemoryUserStore",
    "SQLiteUserStore",
    "JWTStrategy",
]
