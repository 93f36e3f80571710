"""
Tests for the authentication engine.
"""

import pytest
from typing import Annotated
from pydantic import Field

from quickauth.core.engine import AuthCallbacks, AuthEngine
from quickauth.core.errors import DuplicateEmailError, UserNotFoundError
from quickauth.core.validation import (
    ValidationConfig,
    ValidationResult,
    from_type,
    min_length,
    min_value,
    optional,
)
from quickauth.models.schemas import NewUser


INVALID_CREDENTIALS = {
    "success": False,
    "error": "Invalid credentials",
    "errors": {"general": "Invalid email or password"},
}


class TestRegister:
    """Test registration."""

    @pytest.mark.asyncio
    async def test_register_success(self, engine):
        """Test registering a new user."""
        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        assert result.success is True
        assert result.user.email == "a@b.com"
        assert result.token
        assert result.error is None
        assert result.errors is None
        assert "password" not in result.user.model_dump()
        assert "password_hash" not in result.user.model_dump()

    @pytest.mark.asyncio
    async def test_register_token_verifies_to_same_user(self, engine):
        """Test the issued token resolves back to the registered id."""
        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        verified = await engine.verify_token(result.token)

        assert verified.success is True
        assert verified.user.id == result.user.id
        assert verified.user.email == "a@b.com"

    @pytest.mark.asyncio
    async def test_register_stores_hash_not_plaintext(self, engine, user_store):
        """Test the stored password is a bcrypt hash."""
        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        record = await user_store.find_user_by_id(result.user.id)
        assert record.password_hash != "secret1"
        assert record.password_hash.startswith("$2b$")
        assert "password" not in record.attributes

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, engine, user_store):
        """Test registering an existing email fails without creating a user."""
        await engine.register({"email": "a@b.com", "password": "secret1"})

        result = await engine.register({"email": "A@B.com", "password": "another1"})

        assert result.success is False
        assert result.error == "User already exists"
        assert result.errors == {"email": "This email is already registered"}
        assert len(user_store.users) == 1

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, engine, user_store):
        """Test registering with a malformed email."""
        result = await engine.register({"email": "not-an-email", "password": "secret1"})

        assert result.success is False
        assert result.error == "Invalid email format"
        assert result.errors == {"email": "Invalid email format"}
        assert user_store.users == {}

    @pytest.mark.asyncio
    async def test_register_short_password(self, engine):
        """Test the default minimum password length."""
        result = await engine.register({"email": "a@b.com", "password": "12345"})

        assert result.success is False
        assert result.errors == {"password": "Password must be at least 6 characters"}

    @pytest.mark.asyncio
    async def test_register_collects_all_field_errors(self, engine):
        """Test every failing field is reported and error is one of them."""
        result = await engine.register({"email": "bad", "password": "1"})

        assert set(result.errors) == {"email", "password"}
        assert result.error in result.errors.values()

    @pytest.mark.asyncio
    async def test_register_missing_fields(self, engine):
        """Test missing email and password are required."""
        result = await engine.register({})

        assert result.success is False
        assert result.errors == {"email": "Required", "password": "Required"}

    @pytest.mark.asyncio
    async def test_register_passes_unknown_fields_through(self, engine, user_store):
        """Test undeclared fields are stored as attributes."""
        result = await engine.register({
            "email": "a@b.com",
            "password": "secret1",
            "nickname": "ab",
        })

        assert result.user.attributes == {"nickname": "ab"}

    @pytest.mark.asyncio
    async def test_register_ignores_reserved_fields(self, engine, user_store):
        """Test input cannot inject a hash, id or timestamps."""
        result = await engine.register({
            "email": "a@b.com",
            "password": "secret1",
            "password_hash": "$2b$04$injected",
            "id": "chosen-id",
        })

        assert result.user.id != "chosen-id"
        record = await user_store.find_user_by_id(result.user.id)
        assert record.password_hash != "$2b$04$injected"
        assert record.attributes == {}

    @pytest.mark.asyncio
    async def test_register_storage_failure(self, engine, user_store, monkeypatch):
        """Test unexpected storage errors are reported generically."""
        async def broken_create(data):
            raise RuntimeError("disk full")

        monkeypatch.setattr(user_store, "create_user", broken_create)

        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        assert result.success is False
        assert result.error == "Registration failed: disk full"
        assert result.errors is None

    @pytest.mark.asyncio
    async def test_register_lost_race_reports_duplicate(self, engine, user_store, monkeypatch):
        """Test a store-level duplicate maps to the duplicate result."""
        async def racing_create(data):
            raise DuplicateEmailError(data.email)

        monkeypatch.setattr(user_store, "create_user", racing_create)

        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        assert result.success is False
        assert result.errors == {"email": "This email is already registered"}


class TestCustomValidation:
    """Test caller-supplied validation rules."""

    @pytest.mark.asyncio
    async def test_extra_field_below_minimum(self, user_store, strategy, fast_hashing):
        """Test an extra field rule rejects registration without creating a user."""
        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(fields={
                "age": min_value(13, "You must be at least 13 years old"),
            }),
        )

        result = await engine.register({"email": "a@b.com", "password": "secret1", "age": 10})

        assert result.success is False
        assert result.errors == {"age": "You must be at least 13 years old"}
        assert user_store.users == {}

    @pytest.mark.asyncio
    async def test_extra_field_accepted(self, user_store, strategy, fast_hashing):
        """Test validated extra fields end up on the user and in the token."""
        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(fields={
                "age": from_type(Annotated[int, Field(ge=13)]),
                "name": optional(min_length(2)),
            }),
        )

        result = await engine.register({"email": "a@b.com", "password": "secret1", "age": "21"})

        assert result.success is True
        assert result.user.attributes == {"age": 21}

        verified = await engine.verify_token(result.token)
        assert verified.user.attributes == {"age": 21}

    @pytest.mark.asyncio
    async def test_password_override_replaces_default(self, user_store, strategy, fast_hashing):
        """Test a password override replaces the default rule entirely."""
        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(
                password=min_length(10, "Password must be at least 10 characters"),
            ),
        )

        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        assert result.errors == {"password": "Password must be at least 10 characters"}

    @pytest.mark.asyncio
    async def test_custom_validator_short_circuits(self, user_store, strategy, fast_hashing):
        """Test a failing custom validator skips rule validation."""
        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(
                custom_validator=lambda data: ValidationResult.failed(
                    {"name": "Name can only contain letters and spaces"}
                ),
            ),
        )

        # The email is also invalid, but only the custom error is reported
        result = await engine.register({"email": "bad", "password": "secret1", "name": "x1"})

        assert result.success is False
        assert result.error == "Validation failed"
        assert result.errors == {"name": "Name can only contain letters and spaces"}

    @pytest.mark.asyncio
    async def test_async_custom_validator_passes(self, user_store, strategy, fast_hashing):
        """Test an async custom validator that accepts the input."""
        async def validator(data):
            return ValidationResult.passed()

        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(custom_validator=validator),
        )

        result = await engine.register({"email": "a@b.com", "password": "secret1"})
        assert result.success is True


class TestLogin:
    """Test login."""

    @pytest.mark.asyncio
    async def test_login_success(self, engine):
        """Test logging in with the registered password."""
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        result = await engine.login({"email": "a@b.com", "password": "secret1"})

        assert result.success is True
        assert result.user.id == registered.user.id
        assert "password_hash" not in result.user.model_dump()

        verified = await engine.verify_token(result.token)
        assert verified.user.id == registered.user.id

    @pytest.mark.asyncio
    async def test_login_is_case_insensitive_on_email(self, engine):
        await engine.register({"email": "a@b.com", "password": "secret1"})

        result = await engine.login({"email": "A@B.COM", "password": "secret1"})

        assert result.success is True

    @pytest.mark.asyncio
    async def test_login_wrong_password_and_unknown_email_match(self, engine):
        """Test both failure causes produce identical responses."""
        await engine.register({"email": "a@b.com", "password": "secret1"})

        wrong_password = await engine.login({"email": "a@b.com", "password": "wrong"})
        unknown_email = await engine.login({"email": "nobody@b.com", "password": "secret1"})

        assert wrong_password.to_response() == INVALID_CREDENTIALS
        assert unknown_email.to_response() == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_login_account_without_password(self, engine, user_store):
        """Test externally provisioned accounts cannot log in with a password."""
        await user_store.create_user(NewUser(email="sso@b.com"))

        result = await engine.login({"email": "sso@b.com", "password": "anything"})

        assert result.to_response() == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_login_validation(self, engine):
        """Test the fixed login schema."""
        result = await engine.login({"email": "bad", "password": ""})

        assert result.success is False
        assert result.errors == {
            "email": "Invalid email format",
            "password": "Password is required",
        }

    @pytest.mark.asyncio
    async def test_login_ignores_registration_overrides(self, user_store, strategy, fast_hashing):
        """Test a stricter registration password rule does not affect login."""
        engine = AuthEngine(store=user_store, strategy=strategy)
        await engine.register({"email": "a@b.com", "password": "secret1"})

        strict = AuthEngine(
            store=user_store,
            strategy=strategy,
            validation=ValidationConfig(password=min_length(20)),
        )
        result = await strict.login({"email": "a@b.com", "password": "secret1"})

        assert result.success is True

    @pytest.mark.asyncio
    async def test_login_storage_failure(self, engine, user_store, monkeypatch):
        async def broken_find(email):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(user_store, "find_user_by_email", broken_find)

        result = await engine.login({"email": "a@b.com", "password": "secret1"})

        assert result.success is False
        assert result.error == "Login failed: connection lost"


class TestCallbacks:
    """Test lifecycle callbacks."""

    @pytest.mark.asyncio
    async def test_callbacks_receive_unsanitized_user(self, user_store, strategy, fast_hashing):
        """Test register/login hooks get the stored record."""
        seen = []

        async def on_register(user):
            seen.append(("register", user.password_hash))

        def on_login(user):
            seen.append(("login", user.password_hash))

        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            callbacks=AuthCallbacks(on_register=on_register, on_login=on_login),
        )

        await engine.register({"email": "a@b.com", "password": "secret1"})
        await engine.login({"email": "a@b.com", "password": "secret1"})

        assert [event for event, _ in seen] == ["register", "login"]
        assert all(password_hash.startswith("$2b$") for _, password_hash in seen)

    @pytest.mark.asyncio
    async def test_failing_register_callback_fails_registration(self, user_store, strategy, fast_hashing):
        async def on_register(user):
            raise RuntimeError("welcome email failed")

        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            callbacks=AuthCallbacks(on_register=on_register),
        )

        result = await engine.register({"email": "a@b.com", "password": "secret1"})

        assert result.success is False
        assert result.error == "Registration failed: welcome email failed"

    @pytest.mark.asyncio
    async def test_logout_invokes_callback(self, user_store, strategy, fast_hashing):
        logged_out = []
        engine = AuthEngine(
            store=user_store,
            strategy=strategy,
            callbacks=AuthCallbacks(on_logout=lambda user: logged_out.append(user.id)),
        )
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        await engine.logout(registered.user)

        assert logged_out == [registered.user.id]

    @pytest.mark.asyncio
    async def test_logout_without_callback(self, engine):
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})
        await engine.logout(registered.user)


class TestUserManagement:
    """Test get/update/delete pass-through."""

    @pytest.mark.asyncio
    async def test_get_user(self, engine):
        """Test repeated lookups return equal sanitized users."""
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        first = await engine.get_user(registered.user.id)
        second = await engine.get_user(registered.user.id)

        assert first == second
        assert first.id == registered.user.id
        assert not hasattr(first, "password_hash")

    @pytest.mark.asyncio
    async def test_get_missing_user(self, engine):
        assert await engine.get_user("missing") is None

    @pytest.mark.asyncio
    async def test_update_user(self, engine):
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        updated = await engine.update_user(registered.user.id, {"name": "Ada"})

        assert updated.attributes == {"name": "Ada"}
        assert updated.updated_at >= registered.user.updated_at
        assert not hasattr(updated, "password_hash")

    @pytest.mark.asyncio
    async def test_update_password_is_hashed(self, engine, user_store):
        """Test a password change goes through bcrypt."""
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        await engine.update_user(registered.user.id, {"password": "newsecret"})

        record = await user_store.find_user_by_id(registered.user.id)
        assert record.password_hash.startswith("$2b$")
        assert "password" not in record.attributes
        assert (await engine.login({"email": "a@b.com", "password": "secret1"})).success is False
        assert (await engine.login({"email": "a@b.com", "password": "newsecret"})).success is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, message", [
        (None, "Required"),
        (42, "Expected string"),
        ("not-an-email", "Invalid email format"),
    ])
    async def test_update_rejects_invalid_email(self, engine, email, message):
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        with pytest.raises(ValueError, match=message):
            await engine.update_user(registered.user.id, {"email": email})

        assert (await engine.get_user(registered.user.id)).email == "a@b.com"

    @pytest.mark.asyncio
    async def test_update_email(self, engine):
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        updated = await engine.update_user(registered.user.id, {"email": "c@d.com"})

        assert updated.email == "c@d.com"
        assert (await engine.login({"email": "c@d.com", "password": "secret1"})).success is True

    @pytest.mark.asyncio
    async def test_update_missing_user(self, engine):
        with pytest.raises(UserNotFoundError):
            await engine.update_user("missing", {"name": "Ada"})

    @pytest.mark.asyncio
    async def test_delete_user(self, engine):
        registered = await engine.register({"email": "a@b.com", "password": "secret1"})

        await engine.delete_user(registered.user.id)

        assert await engine.get_user(registered.user.id) is None
        assert (await engine.login({"email": "a@b.com", "password": "secret1"})).success is False

    @pytest.mark.asyncio
    async def test_delete_missing_user_is_noop(self, engine):
        await engine.delete_user("missing")
