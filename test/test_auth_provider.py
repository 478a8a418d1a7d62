"""
Tests for DatabaseAuthProvider

Password checks, throttling, activation and reset codes on the users,
groups and throttle tables.
"""

from datetime import timedelta

import pytest

from app.auth import decode_access_token
from app.config import settings
from app.database import utcnow
from app.services.auth_provider import (
    DatabaseAuthProvider,
    GroupNotFoundError,
    LoginRequiredError,
    PasswordRequiredError,
    UserAlreadyActivatedError,
    UserBannedError,
    UserExistsError,
    UserNotActivatedError,
    UserNotFoundError,
    UserSuspendedError,
    WrongPasswordError,
)


@pytest.fixture
def provider(test_db):
    return DatabaseAuthProvider(test_db)


class TestCreateUser:
    async def test_create_user_hashes_password(self, provider):
        user = await provider.create_user({"email": "new@example.com", "password": "secret123"})

        assert user.id is not None
        assert user.hashed_password != "secret123"
        assert user.activated is False
        assert user.throttle is not None

    async def test_login_required(self, provider):
        with pytest.raises(LoginRequiredError):
            await provider.create_user({"password": "secret123"})

    async def test_password_required(self, provider):
        with pytest.raises(PasswordRequiredError):
            await provider.create_user({"email": "new@example.com", "password": ""})

    async def test_duplicate_login(self, provider, test_user):
        with pytest.raises(UserExistsError):
            await provider.create_user({"email": test_user.email, "password": "secret123"})

    async def test_register_inactive_issues_activation_code(self, provider):
        user = await provider.register({"email": "new@example.com", "password": "secret123"})

        assert user.activated is False
        assert user.activation_code


class TestLookups:
    async def test_find_user_by_login(self, provider, test_user):
        assert (await provider.find_user_by_login("user@example.com")).id == test_user.id

    async def test_unknown_user(self, provider):
        with pytest.raises(UserNotFoundError):
            await provider.find_user_by_id(999)
        with pytest.raises(UserNotFoundError):
            await provider.find_user_by_login("nobody@example.com")

    async def test_unknown_group(self, provider):
        with pytest.raises(GroupNotFoundError):
            await provider.find_group_by_id(999)

    async def test_update_user_to_taken_login(self, provider, test_user, test_admin):
        with pytest.raises(UserExistsError):
            await provider.update_user(test_user, {"email": test_admin.email})


class TestAuthenticate:
    async def test_success_returns_token_with_persist_code(self, provider, test_user):
        session = await provider.authenticate({"email": test_user.email, "password": "userpassword"})

        claims = decode_access_token(session.access_token)
        assert claims["sub"] == str(test_user.id)
        assert claims["pc"] == test_user.persist_code
        assert session.user.last_login is not None

    async def test_remember_extends_expiry(self, provider, test_user):
        short = await provider.authenticate({"email": test_user.email, "password": "userpassword"})
        long = await provider.authenticate({"email": test_user.email, "password": "userpassword"}, remember=True)

        assert short.expires_in == settings.access_token_expire_minutes * 60
        assert long.expires_in == settings.remember_token_expire_days * 86400

    async def test_wrong_password_counts_attempt(self, provider, test_user):
        with pytest.raises(WrongPasswordError):
            await provider.authenticate({"email": test_user.email, "password": "nope"})

        assert test_user.throttle.attempts == 1

    async def test_not_activated(self, provider, user_factory):
        user = await user_factory("inactive@example.com", "password1", activated=False)
        with pytest.raises(UserNotActivatedError):
            await provider.authenticate({"email": user.email, "password": "password1"})

    async def test_suspended_after_attempt_limit(self, provider, test_user, monkeypatch):
        monkeypatch.setattr(settings, "throttle_attempt_limit", 2)
        for _ in range(2):
            with pytest.raises(WrongPasswordError):
                await provider.authenticate({"email": test_user.email, "password": "nope"})

        with pytest.raises(UserSuspendedError) as exc_info:
            await provider.authenticate({"email": test_user.email, "password": "userpassword"})

        assert exc_info.value.minutes == settings.throttle_suspension_minutes

    async def test_expired_suspension_is_lifted(self, provider, test_user, test_db):
        test_user.throttle.suspended = True
        test_user.throttle.attempts = 5
        test_user.throttle.suspended_at = utcnow() - timedelta(minutes=settings.throttle_suspension_minutes + 1)
        await test_db.commit()

        session = await provider.authenticate({"email": test_user.email, "password": "userpassword"})

        assert session.user.throttle.suspended is False
        assert session.user.throttle.attempts == 0

    async def test_banned_user(self, provider, test_user):
        await provider.ban(test_user)

        with pytest.raises(UserBannedError):
            await provider.authenticate({"email": test_user.email, "password": "userpassword"})

        await provider.unban(test_user)
        assert (await provider.authenticate({"email": test_user.email, "password": "userpassword"})).user

    async def test_logout_rotates_persist_code(self, provider, test_user):
        before = test_user.persist_code

        await provider.logout(test_user)

        assert test_user.persist_code != before


class TestCodes:
    async def test_activation(self, provider):
        user = await provider.register({"email": "new@example.com", "password": "secret123"})

        assert await provider.attempt_activation(user, "wrong") is False
        assert await provider.attempt_activation(user, user.activation_code) is True
        assert user.activated is True
        with pytest.raises(UserAlreadyActivatedError):
            await provider.attempt_activation(user, "anything")

    async def test_reset_password(self, provider, test_user):
        code = await provider.get_reset_password_code(test_user)

        assert provider.check_reset_password_code(test_user, code) is True
        assert provider.check_reset_password_code(test_user, "wrong") is False
        assert await provider.attempt_reset_password(test_user, code, "newpassword") is True
        assert test_user.reset_password_code is None

        session = await provider.authenticate({"email": test_user.email, "password": "newpassword"})
        assert session.user.id == test_user.id
