"""
User store interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional
from quickauth.models.schemas import NewUser, UserRecord, utcnow


class UserStore(ABC):
    """
    Abstract base class for user persistence backends.

    Implementations must enforce case-insensitive email uniqueness themselves
    (atomically, on both create and update); the engine's duplicate pre-check
    alone does not survive concurrent registrations.
    """

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        """
        Look up a user by email, ignoring case.

        Returns:
            UserRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        """
        Look up a user by exact id.

        Returns:
            UserRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_user(self, data: NewUser) -> UserRecord:
        """
        Persist a new user, assigning its id and timestamps.

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        pass

    @abstractmethod
    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        """
        Merge ``changes`` into an existing user and refresh ``updated_at``.

        ``email`` and ``password_hash`` replace the stored values; ``id`` and
        ``created_at`` are ignored; an ``attributes`` mapping and any other key
        are merged into the user's attributes.

        Raises:
            UserNotFoundError: If the id does not exist
            DuplicateEmailError: If the new email belongs to another user
            ValueError: If a changed field has the wrong type
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """Remove a user. Unknown ids are ignored."""
        pass

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None


def apply_changes(record: UserRecord, changes: Mapping[str, Any]) -> UserRecord:
    """
    Return a copy of ``record`` with ``changes`` merged in per ``UserStore.update_user``.

    Raises:
        pydantic.ValidationError: If a merged field has the wrong type
    """
    updates = {}
    attributes = dict(record.attributes)

    for key, value in changes.items():
        if key in ("id", "created_at", "updated_at"):
            continue
        if key in ("email", "password_hash"):
            updates[key] = value
        elif key == "attributes":
            attributes.update(value or {})
        else:
            attributes[key] = value

    updates["attributes"] = attributes
    updates["updated_at"] = utcnow()
    return UserRecord.model_validate({**record.model_dump(), **updates})
