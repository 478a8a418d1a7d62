"""
Tests for UserService

Provider failures must come back as typed results carrying the right
AuthErrorKind and message; nothing from the provider leaks as an exception.
"""

import pytest

from app.config import settings
from app.database import utcnow
from app.exceptions import AuthErrorKind, AuthFailure
from app.services.auth_provider import DatabaseAuthProvider
from app.services.user_service import UserResult, UserService, UserStatus

USERS_GROUP_ID = 1
ADMIN_GROUP_ID = 2


@pytest.fixture
def service(test_db, mock_smtp):
    return UserService(DatabaseAuthProvider(test_db))


class TestUserResult:
    def test_success(self):
        result = UserResult.success(42)

        assert result.ok
        assert result.unwrap() == 42

    def test_failure_uses_default_message(self):
        result = UserResult.failure(AuthErrorKind.USER_BANNED)

        assert not result.ok
        assert result.error.message == "User is banned."

    def test_unwrap_raises_auth_failure(self):
        result = UserResult.failure(AuthErrorKind.WRONG_PASSWORD)

        with pytest.raises(AuthFailure) as exc_info:
            result.unwrap()

        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "AUTH_WRONG_PASSWORD"


class TestAuthenticate:
    async def test_success(self, service, test_user):
        result = await service.authenticate({"email": test_user.email, "password": "userpassword"})

        assert result.ok
        assert result.value.user.id == test_user.id

    @pytest.mark.parametrize(
        "credentials, kind, message",
        [
            ({"password": "x"}, AuthErrorKind.LOGIN_REQUIRED, "Login field is required."),
            ({"email": "user@example.com"}, AuthErrorKind.PASSWORD_REQUIRED, "Password field is required."),
            ({"email": "nobody@example.com", "password": "x"}, AuthErrorKind.USER_NOT_FOUND, "User not found."),
            ({"email": "user@example.com", "password": "bad"}, AuthErrorKind.WRONG_PASSWORD, "Wrong password, try again."),
        ],
    )
    async def test_failures(self, service, test_user, credentials, kind, message):
        result = await service.authenticate(credentials)

        assert result.error.kind == kind
        assert result.error.message == message

    async def test_not_activated(self, service, user_factory):
        await user_factory("pending@example.com", "password1", activated=False)

        result = await service.authenticate({"email": "pending@example.com", "password": "password1"})

        assert result.error.kind == AuthErrorKind.USER_NOT_ACTIVATED
        assert result.error.message == "User not activated."

    async def test_suspension_message_has_real_duration(self, service, test_user, monkeypatch):
        monkeypatch.setattr(settings, "throttle_attempt_limit", 1)
        monkeypatch.setattr(settings, "throttle_suspension_minutes", 7)
        await service.authenticate({"email": test_user.email, "password": "bad"})

        result = await service.authenticate({"email": test_user.email, "password": "userpassword"})

        assert result.error.kind == AuthErrorKind.USER_SUSPENDED
        assert result.error.message == "User is suspended for 7 minutes."

    async def test_banned(self, service, test_user):
        await service.ban(test_user.id)

        result = await service.authenticate({"email": test_user.email, "password": "userpassword"})

        assert result.error.kind == AuthErrorKind.USER_BANNED
        assert result.error.message == "User is banned."


class TestQueries:
    async def test_by_id_unknown(self, service):
        result = await service.by_id(999)

        assert result.error.kind == AuthErrorKind.USER_NOT_FOUND
        assert result.error.message == "User not found."

    async def test_find_user_by_login(self, service, test_user):
        assert (await service.find_user_by_login(test_user.email)).value.id == test_user.id

    async def test_get_groups_without_user(self, service):
        assert await service.get_groups() == {"Users": USERS_GROUP_ID, "Admin": ADMIN_GROUP_ID}

    async def test_get_groups_for_user(self, service, test_admin):
        assert await service.get_groups(test_admin) == {USERS_GROUP_ID: False, ADMIN_GROUP_ID: True}

    async def test_get_all_statuses(self, service, test_user, test_admin, user_factory, test_db):
        pending = await user_factory("pending@example.com", "password1", activated=False)
        suspended = await user_factory("suspended@example.com", "password1")
        suspended.throttle.suspended = True
        suspended.throttle.suspended_at = utcnow()
        # a ban outranks the suspension
        test_admin.throttle.suspended = True
        test_admin.throttle.suspended_at = suspended.throttle.suspended_at
        test_admin.throttle.banned = True
        await test_db.commit()

        statuses = {listing.user.email: listing.status for listing in await service.get_all()}

        assert statuses == {
            test_user.email: UserStatus.ACTIVE,
            test_admin.email: UserStatus.BANNED,
            pending.email: UserStatus.NOT_ACTIVE,
            suspended.email: UserStatus.SUSPENDED,
        }

    def test_get_id(self, service, test_user):
        assert service.get_id(test_user) == test_user.id


class TestWrites:
    async def test_create_with_groups(self, service):
        result = await service.create(
            {
                "email": "editor@example.com",
                "password": "secret123",
                "password_confirmation": "secret123",
                "_token": "csrf",
                "groups": {ADMIN_GROUP_ID: True, USERS_GROUP_ID: False},
            }
        )

        assert result.ok
        assert result.value.group_names == ["Admin"]

    async def test_create_existing_login(self, service, test_user):
        result = await service.create({"email": test_user.email, "password": "secret123"})

        assert result.error.kind == AuthErrorKind.USER_EXISTS
        assert result.error.message == "User with this login already exists."

    async def test_create_with_unknown_group(self, service):
        result = await service.create({"email": "x@example.com", "password": "secret123", "groups": {999: True}})

        assert result.error.kind == AuthErrorKind.GROUP_NOT_FOUND

    async def test_create_without_password(self, service):
        result = await service.create({"email": "x@example.com"})

        assert result.error.kind == AuthErrorKind.PASSWORD_REQUIRED

    async def test_update_keeps_password_when_empty(self, service, test_user):
        result = await service.update({"id": test_user.id, "first_name": "Renamed", "password": ""})

        assert result.value.first_name == "Renamed"
        login = await service.authenticate({"email": test_user.email, "password": "userpassword"})
        assert login.ok

    async def test_update_syncs_groups(self, service, test_user):
        result = await service.update({"id": test_user.id, "groups": {ADMIN_GROUP_ID: True}})

        assert result.value.group_names == ["Admin"]

    async def test_update_unknown_user(self, service):
        result = await service.update({"id": 999, "first_name": "Ghost"})

        assert result.error.kind == AuthErrorKind.USER_NOT_FOUND

    async def test_destroy(self, service, test_user):
        assert await service.destroy(test_user.id) is True
        assert await service.destroy(test_user.id) is False


class TestRegistration:
    async def test_register_sends_activation_email(self, service, mock_smtp):
        result = await service.register({"email": "new@example.com", "password": "secret123", "first_name": "Ann"})

        assert result.ok
        assert result.value.activated is False
        mock_smtp.send_message.assert_called_once()
        sent = mock_smtp.send_message.call_args[0][0]
        assert sent["To"] == "new@example.com"

    async def test_register_without_confirmation_joins_default_group(self, service, mock_smtp):
        result = await service.register({"email": "new@example.com", "password": "secret123"}, no_confirmation=True)

        assert result.value.activated is True
        assert result.value.group_names == ["Users"]
        mock_smtp.send_message.assert_not_called()

    async def test_register_existing_login(self, service, test_user):
        result = await service.register({"email": test_user.email, "password": "secret123"})

        assert result.error.kind == AuthErrorKind.USER_EXISTS

    async def test_activate(self, service):
        user = (await service.register({"email": "new@example.com", "password": "secret123"})).value

        result = await service.activate(user.id, user.activation_code)

        assert result.ok
        assert result.value.group_names == ["Users"]

    async def test_activate_twice(self, service, test_user):
        result = await service.activate(test_user.id, "code")

        assert result.error.kind == AuthErrorKind.USER_ALREADY_ACTIVATED
        assert result.error.message == "You have already activated this account."

    async def test_activate_wrong_code(self, service):
        user = (await service.register({"email": "new@example.com", "password": "secret123"})).value

        result = await service.activate(user.id, "wrong")

        assert result.error.kind == AuthErrorKind.ACTIVATION_FAILED
        assert result.error.message == "There was a problem activating this account."

    async def test_activate_unknown_user(self, service):
        result = await service.activate(999, "code")

        assert result.error.kind == AuthErrorKind.USER_NOT_FOUND
        assert result.error.message == "User does not exist."

    async def test_send_reset_password_link(self, service, test_user, mock_smtp):
        result = await service.send_reset_password_link(test_user.email)

        assert result.ok
        assert test_user.reset_password_code
        html = mock_smtp.send_message.call_args[0][0].get_payload()[0].get_payload(decode=True).decode()
        assert f"/auth/password/reset/{test_user.id}/{test_user.reset_password_code}" in html
