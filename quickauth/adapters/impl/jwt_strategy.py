"""
Signed, stateless JWT token strategy.
"""

import re
import time
import jwt
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union
from quickauth.adapters.strategy import AuthStrategy
from quickauth.models.schemas import AuthResult, LoginRequest, User, UserBase

DEFAULT_EXPIRES_IN = "7d"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}

Duration = Union[int, float, timedelta, str]


def parse_duration(value: Duration) -> int:
    """
    Convert a duration to whole seconds.

    Accepts seconds, a timedelta, or a string such as "45s", "15m", "12h", "7d".
    """
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    if isinstance(value, (int, float)):
        return int(value)

    match = _DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


class JWTStrategy(AuthStrategy):
    """HMAC-signed JWT credentials with no server-side state."""

    name = "jwt"

    def __init__(
        self,
        secret: str,
        expires_in: Duration = DEFAULT_EXPIRES_IN,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        algorithm: str = "HS256",
    ):
        """
        Initialize the JWT strategy.

        Args:
            secret: HMAC signing secret
            expires_in: Token lifetime (seconds, timedelta or "7d"-style string)
            issuer: Optional ``iss`` claim, enforced on verification
            audience: Optional ``aud`` claim, enforced on verification
            algorithm: JWT signing algorithm
        """
        if not secret:
            raise ValueError("JWT secret must not be empty")

        self.secret = secret
        self.expires_in = parse_duration(expires_in)
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm

    def _now(self) -> int:
        return int(time.time())

    def build_claims(self, user: UserBase) -> Dict[str, Any]:
        """Claim set for ``user``. Only public fields are read."""
        now = self._now()
        public = user.model_dump(
            mode="json", include={"email", "attributes", "created_at", "updated_at"}
        )

        claims = {
            "sub": user.id,
            **public,
            "iat": now,
            "exp": now + self.expires_in,
        }
        if self.issuer:
            claims["iss"] = self.issuer
        if self.audience:
            claims["aud"] = self.audience
        return claims

    async def generate_token(self, user: UserBase) -> str:
        """Sign a new token for ``user``."""
        return jwt.encode(self.build_claims(user), self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            jwt.ExpiredSignatureError: If the token has expired
            jwt.InvalidTokenError: For any other signature or claim failure
        """
        return jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            audience=self.audience,
            options={
                "require": ["exp", "iat"],
                "verify_aud": self.audience is not None,
            },
        )

    async def verify(self, token: str) -> AuthResult:
        """Verify a token and rebuild the user it was issued for."""
        try:
            payload = self.decode(token)
        except jwt.ExpiredSignatureError:
            return AuthResult.fail("Token expired")
        except jwt.InvalidTokenError:
            return AuthResult.fail("Invalid token")
        except Exception:
            return AuthResult.fail("Token verification failed")

        subject = payload.get("sub")
        if not subject:
            return AuthResult.fail("Invalid token payload")

        issued_at = datetime.fromtimestamp(payload["iat"], timezone.utc)
        try:
            user = User(
                id=subject,
                email=payload.get("email", ""),
                attributes=payload.get("attributes") or {},
                created_at=payload.get("created_at") or issued_at,
                updated_at=payload.get("updated_at") or issued_at,
            )
        except ValueError:
            return AuthResult.fail("Invalid token payload")

        return AuthResult.ok(user=user)

    async def authenticate(self, credentials: LoginRequest) -> AuthResult:
        """Tokens are only issued through the engine's login flow."""
        return AuthResult.fail(
            "JWT strategy does not support direct authentication. Use login flow instead."
        )
