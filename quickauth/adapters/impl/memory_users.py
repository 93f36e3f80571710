"""
In-memory user store.
"""

import asyncio
import uuid
from typing import Any, Dict, Mapping, Optional
from quickauth.adapters.storage import UserStore, apply_changes
from quickauth.core.errors import DuplicateEmailError, UserNotFoundError
from quickauth.models.schemas import NewUser, UserRecord, utcnow


class InMemoryUserStore(UserStore):
    """Dict-backed user store with a lowercase email index. Not persistent."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.email_index: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(email: str) -> str:
        return email.lower()

    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        """Find a user by email, ignoring case."""
        user_id = self.email_index.get(self._key(email))
        if user_id is None:
            return None
        return await self.find_user_by_id(user_id)

    async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Find a user by id. Returns a copy."""
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def create_user(self, data: NewUser) -> UserRecord:
        """Store a new user under a fresh UUID."""
        async with self._lock:
            key = self._key(data.email)
            if key in self.email_index:
                raise DuplicateEmailError(data.email)

            now = utcnow()
            user = UserRecord(
                id=str(uuid.uuid4()),
                email=data.email,
                password_hash=data.password_hash,
                attributes=dict(data.attributes),
                created_at=now,
                updated_at=now,
            )
            self.users[user.id] = user
            self.email_index[key] = user.id

        return user.model_copy(deep=True)

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        """Merge changes into a user, re-indexing the email if it changed."""
        async with self._lock:
            current = self.users.get(user_id)
            if current is None:
                raise UserNotFoundError(user_id)

            updated = apply_changes(current, changes)
            old_key, new_key = self._key(current.email), self._key(updated.email)

            if new_key != old_key:
                if new_key in self.email_index:
                    raise DuplicateEmailError(updated.email)
                del self.email_index[old_key]
                self.email_index[new_key] = user_id

            self.users[user_id] = updated

        return updated.model_copy(deep=True)

    async def delete_user(self, user_id: str) -> None:
        """Delete a user if present."""
        async with self._lock:
            user = self.users.pop(user_id, None)
            if user is not None:
                self.email_index.pop(self._key(user.email), None)

    def clear(self) -> None:
        """Clear all users (for testing)."""
        self.users.clear()
        self.email_index.clear()
