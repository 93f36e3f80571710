"""
SQLite user store implementation.
"""

import json
import sqlite3
import uuid
import aiosqlite
from datetime import datetime
from typing import Any, Mapping, Optional
from quickauth.adapters.storage import UserStore, apply_changes
from quickauth.core.errors import DuplicateEmailError, UserNotFoundError
from quickauth.models.schemas import NewUser, UserRecord, utcnow


class SQLiteUserStore(UserStore):
    """
    SQLite-based user store.

    Email uniqueness is enforced by a UNIQUE index on the lowercased email,
    so concurrent registrations for the same address cannot both succeed.
    Attributes are stored as JSON and must be JSON-serializable.
    """

    def __init__(self, db_path: str = "quickauth.db"):
        """
        Initialize the SQLite user store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._initialized = False

    async def _init_db(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    email_key TEXT NOT NULL UNIQUE,
                    password_hash TEXT,
                    attributes TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            await db.commit()

        self._initialized = True

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            attributes=json.loads(row["attributes"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def _fetch_one(self, query: str, params: tuple) -> Optional[UserRecord]:
        await self._init_db()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = sqlite3.Row
            async with db.execute(query, params) as cursor:
                row = await cursor.fetchone()

        return self._row_to_user(row) if row else None

    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        """Find a user by email, ignoring case."""
        return await self._fetch_one(
            "SELECT * FROM users WHERE email_key = ?", (email.lower(),)
        )

    async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Find a user by id."""
        return await self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    async def create_user(self, data: NewUser) -> UserRecord:
        """Insert a new user row."""
        await self._init_db()

        now = utcnow()
        user = UserRecord(
            id=str(uuid.uuid4()),
            email=data.email,
            password_hash=data.password_hash,
            attributes=dict(data.attributes),
            created_at=now,
            updated_at=now,
        )

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO users
                        (id, email, email_key, password_hash, attributes, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user.id,
                        user.email,
                        user.email.lower(),
                        user.password_hash,
                        json.dumps(user.attributes),
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateEmailError(data.email) from e

        return user

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        """Merge changes into a user row."""
        current = await self.find_user_by_id(user_id)
        if current is None:
            raise UserNotFoundError(user_id)

        updated = apply_changes(current, changes)

        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    """
                    UPDATE users
                    SET email = ?, email_key = ?, password_hash = ?, attributes = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        updated.email,
                        updated.email.lower(),
                        updated.password_hash,
                        json.dumps(updated.attributes),
                        updated.updated_at.isoformat(),
                        user_id,
                    ),
                )
                rowcount = cursor.rowcount
                await db.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateEmailError(updated.email) from e

        if rowcount == 0:
            # Deleted between the read and the write
            raise UserNotFoundError(user_id)

        return updated

    async def delete_user(self, user_id: str) -> None:
        """Delete a user row if present."""
        await self._init_db()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM users WHERE id = ?", (user_id,))
            await db.commit()
