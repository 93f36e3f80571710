"""
Token strategy interface.
"""

from abc import ABC, abstractmethod
from quickauth.models.schemas import AuthResult, LoginRequest, UserBase


class AuthStrategy(ABC):
    """Abstract base class for credential issuance and verification."""

    name: str = "abstract"

    @abstractmethod
    async def generate_token(self, user: UserBase) -> str:
        """
        Issue a bearer credential for ``user``.

        Implementations must never embed the password hash.
        """
        pass

    @abstractmethod
    async def verify(self, token: str) -> AuthResult:
        """
        Verify a bearer credential.

        Returns:
            AuthResult carrying the identity on success, or the failure cause
        """
        pass

    async def authenticate(self, credentials: LoginRequest) -> AuthResult:
        """
        Authenticate credentials directly, for strategies that can.

        Token-only strategies keep this default.
        """
        return AuthResult.fail(
            f"{self.name} strategy does not support direct authentication"
        )
