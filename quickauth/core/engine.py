"""
Authentication engine.

Orchestrates registration and login on top of a ``UserStore`` and an
``AuthStrategy``. Every public operation that can fail for client reasons
returns an ``AuthResult``; nothing secret-bearing leaves through it.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union
from quickauth.adapters.storage import UserStore
from quickauth.adapters.strategy import AuthStrategy
from quickauth.core import passwords
from quickauth.core.errors import DuplicateEmailError
from quickauth.core.validation import (
    LOGIN_RULES,
    ValidationConfig,
    ValidationResult,
    validate,
)
from quickauth.models.schemas import (
    RESERVED_USER_FIELDS,
    AuthResult,
    NewUser,
    User,
    UserBase,
    UserRecord,
)
from quickauth.observability.logging import AuditLogger, get_logger
from quickauth.observability.metrics import get_metrics_collector

logger = get_logger(__name__)

Callback = Callable[[UserBase], Union[None, Awaitable[None]]]

INVALID_CREDENTIALS_ERROR = "Invalid credentials"
INVALID_CREDENTIALS_DETAIL = "Invalid email or password"
USER_EXISTS_ERROR = "User already exists"
EMAIL_TAKEN_DETAIL = "This email is already registered"


@dataclass
class AuthCallbacks:
    """Optional lifecycle hooks. Each may be a plain function or a coroutine."""
    on_register: Optional[Callback] = None
    on_login: Optional[Callback] = None
    on_logout: Optional[Callback] = None


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _validation_failure(result: ValidationResult) -> AuthResult:
    return AuthResult.fail(result.first_error or "Validation failed", result.errors)


def _invalid_credentials() -> AuthResult:
    return AuthResult.fail(
        INVALID_CREDENTIALS_ERROR, {"general": INVALID_CREDENTIALS_DETAIL}
    )


def _user_exists() -> AuthResult:
    return AuthResult.fail(USER_EXISTS_ERROR, {"email": EMAIL_TAKEN_DETAIL})


def sanitize(user: UserRecord) -> User:
    """Strip the password hash before a user leaves the engine."""
    return user.to_public()


class AuthEngine:
    """Registration, login and token verification."""

    def __init__(
        self,
        store: UserStore,
        strategy: AuthStrategy,
        validation: Optional[ValidationConfig] = None,
        callbacks: Optional[AuthCallbacks] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: User persistence backend
            strategy: Token issuance/verification mechanism
            validation: Registration rule overrides and custom validator
            callbacks: Lifecycle hooks
        """
        self.store = store
        self.strategy = strategy
        self.validation = validation or ValidationConfig()
        self.callbacks = callbacks or AuthCallbacks()
        self.audit = AuditLogger()
        self.metrics = get_metrics_collector()

    async def register(self, data: Mapping[str, Any]) -> AuthResult:
        """
        Register a new user and issue a token.

        A configured custom validator runs first and short-circuits rule
        validation when it fails.
        """
        email = str(data.get("email", ""))
        try:
            if self.validation.custom_validator:
                custom = await _maybe_await(self.validation.custom_validator(data))
                if not custom.success:
                    self._record_registration(email, False, reason="custom_validation")
                    return AuthResult.fail("Validation failed", custom.errors)

            validated = validate(data, self.validation.registration_rules())
            if not validated.success:
                self._record_registration(email, False, reason="validation")
                return _validation_failure(validated)

            email = validated.data["email"]
            if await self.store.find_user_by_email(email):
                self._record_registration(email, False, reason="duplicate_email")
                return _user_exists()

            with self.metrics.time_password_hash("hash"):
                password_hash = await passwords.hash_password_async(validated.data["password"])

            attributes = {
                key: value for key, value in validated.data.items()
                if key not in RESERVED_USER_FIELDS
            }
            try:
                user = await self.store.create_user(NewUser(
                    email=email,
                    password_hash=password_hash,
                    attributes=attributes,
                ))
            except DuplicateEmailError:
                # Lost a race with a concurrent registration
                self._record_registration(email, False, reason="duplicate_email")
                return _user_exists()

            if self.callbacks.on_register:
                await _maybe_await(self.callbacks.on_register(user))

            token = await self.strategy.generate_token(user)
        except Exception as e:
            logger.exception("Registration failed")
            self._record_registration(email, False, reason="error")
            return AuthResult.fail(f"Registration failed: {e}")

        self._record_registration(email, True, user_id=user.id)
        return AuthResult.ok(user=sanitize(user), token=token)

    async def login(self, credentials: Mapping[str, Any]) -> AuthResult:
        """
        Check email and password and issue a token.

        Unknown email, password-less account and wrong password all produce
        the same result.
        """
        email = str(credentials.get("email", ""))
        try:
            validated = validate(credentials, LOGIN_RULES)
            if not validated.success:
                self._record_login(email, False, reason="validation")
                return _validation_failure(validated)

            user = await self.store.find_user_by_email(validated.data["email"])
            if user is None:
                self._record_login(email, False, reason="unknown_email")
                return _invalid_credentials()
            if not user.password_hash:
                self._record_login(email, False, user_id=user.id, reason="no_password_hash")
                return _invalid_credentials()

            with self.metrics.time_password_hash("verify"):
                matched = await passwords.verify_password_async(
                    validated.data["password"], user.password_hash
                )
            if not matched:
                self._record_login(email, False, user_id=user.id, reason="bad_password")
                return _invalid_credentials()

            if self.callbacks.on_login:
                await _maybe_await(self.callbacks.on_login(user))

            token = await self.strategy.generate_token(user)
        except Exception as e:
            logger.exception("Login failed")
            self._record_login(email, False, reason="error")
            return AuthResult.fail(f"Login failed: {e}")

        self._record_login(email, True, user_id=user.id)
        return AuthResult.ok(user=sanitize(user), token=token)

    async def verify_token(self, token: str) -> AuthResult:
        """Delegate to the strategy."""
        result = await self.strategy.verify(token)
        self.metrics.record_token_verification(result.success)
        self.audit.log_token_verification(result.success, reason=result.error)
        return result

    async def get_user(self, user_id: str) -> Optional[User]:
        user = await self.store.find_user_by_id(user_id)
        return sanitize(user) if user else None

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> User:
        """
        Update a user through the store.

        A changed ``email`` must pass the registration email rule. A plaintext
        ``password`` is hashed before it reaches the store.

        Raises:
            ValueError: If the new email is rejected
            UserNotFoundError: If the id does not exist
            DuplicateEmailError: If the new email belongs to another user
        """
        changes: Dict[str, Any] = dict(changes)
        if "email" in changes:
            email_rule = self.validation.registration_rules()["email"]
            changes["email"] = email_rule(changes["email"])
        if "password" in changes:
            changes["password_hash"] = await passwords.hash_password_async(
                changes.pop("password")
            )
        user = await self.store.update_user(user_id, changes)
        return sanitize(user)

    async def delete_user(self, user_id: str) -> None:
        await self.store.delete_user(user_id)

    async def logout(self, user: UserBase) -> None:
        """Run the logout hook. Issued tokens stay valid until they expire."""
        if self.callbacks.on_logout:
            await _maybe_await(self.callbacks.on_logout(user))
        self.audit.log_logout(user.id)

    def _record_registration(self, email: str, success: bool, **details):
        self.metrics.record_auth_attempt("register", success)
        self.audit.log_registration(email, success, **details)

    def _record_login(self, email: str, success: bool, **details):
        self.metrics.record_auth_attempt("login", success)
        self.audit.log_login_attempt(email, success, **details)
