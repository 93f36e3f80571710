"""
Shared fixtures for quickauth tests.
"""

import pytest

from quickauth.adapters.impl.jwt_strategy import JWTStrategy
from quickauth.adapters.impl.memory_users import InMemoryUserStore
from quickauth.core import passwords
from quickauth.core.engine import AuthEngine

TEST_SECRET = "test-secret-key"


@pytest.fixture
def fast_hashing(monkeypatch):
    """Use the minimum bcrypt cost so tests stay fast."""
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def user_store():
    """Create an in-memory user store."""
    return InMemoryUserStore()


@pytest.fixture
def strategy():
    """Create a JWT strategy."""
    return JWTStrategy(TEST_SECRET)


@pytest.fixture
def engine(user_store, strategy, fast_hashing):
    """Create an engine with default validation."""
    return AuthEngine(store=user_store, strategy=strategy)
