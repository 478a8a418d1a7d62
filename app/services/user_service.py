"""
User Service

Repository adapter around the auth provider. Provider exceptions never
leave this module: every operation that can fail returns a ``UserResult``
holding either a value or an ``AuthError`` (kind + human-readable
message), so callers branch on ``AuthErrorKind`` instead of message text.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import AuthErrorKind, AuthFailure
from app.models.user import Group, User
from app.services.auth_provider import (
    AuthProvider,
    AuthSession,
    DatabaseAuthProvider,
    GroupNotFoundError,
    LoginRequiredError,
    PasswordRequiredError,
    ProviderError,
    UserAlreadyActivatedError,
    UserBannedError,
    UserExistsError,
    UserNotActivatedError,
    UserNotFoundError,
    UserSuspendedError,
    WrongPasswordError,
)
from app.services.email_service import EmailService, email_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Keys posted by the admin forms that are not user attributes
FORM_ONLY_KEYS = frozenset({"_method", "_token", "exit", "groups", "password_confirmation"})

DEFAULT_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.LOGIN_REQUIRED: "Login field is required.",
    AuthErrorKind.PASSWORD_REQUIRED: "Password field is required.",
    AuthErrorKind.USER_EXISTS: "User with this login already exists.",
    AuthErrorKind.USER_NOT_FOUND: "User not found.",
    AuthErrorKind.USER_ALREADY_ACTIVATED: "You have already activated this account.",
    AuthErrorKind.GROUP_NOT_FOUND: "Group not found.",
    AuthErrorKind.WRONG_PASSWORD: "Wrong password, try again.",
    AuthErrorKind.USER_NOT_ACTIVATED: "User not activated.",
    AuthErrorKind.USER_SUSPENDED: "User is suspended for {minutes} minutes.",
    AuthErrorKind.USER_BANNED: "User is banned.",
    AuthErrorKind.ACTIVATION_FAILED: "There was a problem activating this account.",
}

PROVIDER_ERROR_KINDS: dict[type[ProviderError], AuthErrorKind] = {
    LoginRequiredError: AuthErrorKind.LOGIN_REQUIRED,
    PasswordRequiredError: AuthErrorKind.PASSWORD_REQUIRED,
    UserExistsError: AuthErrorKind.USER_EXISTS,
    UserNotFoundError: AuthErrorKind.USER_NOT_FOUND,
    UserAlreadyActivatedError: AuthErrorKind.USER_ALREADY_ACTIVATED,
    GroupNotFoundError: AuthErrorKind.GROUP_NOT_FOUND,
    WrongPasswordError: AuthErrorKind.WRONG_PASSWORD,
    UserNotActivatedError: AuthErrorKind.USER_NOT_ACTIVATED,
    UserSuspendedError: AuthErrorKind.USER_SUSPENDED,
    UserBannedError: AuthErrorKind.USER_BANNED,
}


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str


@dataclass(frozen=True)
class UserResult(Generic[T]):
    """Outcome of a user-repository operation"""

    value: T | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> UserResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: AuthErrorKind, message: str | None = None) -> UserResult[T]:
        return cls(error=AuthError(kind=kind, message=message or DEFAULT_MESSAGES[kind]))

    def unwrap(self) -> T:
        """Return the value, or raise AuthFailure for a failed result."""
        if self.error is not None:
            raise AuthFailure(self.error.kind, self.error.message)
        return self.value


def failure_from(exc: ProviderError, messages: dict[AuthErrorKind, str] | None = None) -> UserResult:
    """Translate a provider exception into a failed result.

    ``messages`` overrides the default message of individual kinds.
    """
    kind = PROVIDER_ERROR_KINDS[type(exc)]
    message = (messages or {}).get(kind, DEFAULT_MESSAGES[kind])
    if isinstance(exc, UserSuspendedError):
        message = message.format(minutes=exc.minutes)
    logger.info("User operation failed: %s (%s)", kind.value, exc)
    return UserResult.failure(kind, message)


class UserStatus(str, enum.Enum):
    ACTIVE = "Active"
    NOT_ACTIVE = "Not Active"
    SUSPENDED = "Suspended"
    BANNED = "Banned"


@dataclass
class UserListing:
    user: User
    status: UserStatus


class UserService:
    """User repository backed by an AuthProvider"""

    def __init__(self, provider: AuthProvider, mailer: EmailService = email_service):
        self.provider = provider
        self.mailer = mailer

    # ── Queries ─────────────────────────────────────────────────────────────

    async def get_all(self) -> list[UserListing]:
        """All users with their status; a ban outranks a suspension."""
        listings = []
        for user in await self.provider.find_all_users():
            status = UserStatus.ACTIVE if user.activated else UserStatus.NOT_ACTIVE

            throttle = await self.provider.get_throttle(user)
            if throttle.suspended:
                status = UserStatus.SUSPENDED
            if throttle.banned:
                status = UserStatus.BANNED

            listings.append(UserListing(user=user, status=status))
        return listings

    async def by_id(self, user_id: int) -> UserResult[User]:
        try:
            return UserResult.success(await self.provider.find_user_by_id(user_id))
        except UserNotFoundError as e:
            return failure_from(e)

    async def find_user_by_login(self, login: str) -> UserResult[User]:
        try:
            return UserResult.success(await self.provider.find_user_by_login(login))
        except UserNotFoundError as e:
            return failure_from(e)

    async def get_groups(self, user: User | None = None) -> dict:
        """
        Groups for the user forms.

        Returns:
            without ``user``: ``{group_name: group_id}``
            with ``user``: ``{group_id: True if the user is a member}``
        """
        groups = await self.provider.find_all_groups()
        if user is None:
            return {group.name: group.id for group in groups}

        member_of = {group.id for group in user.groups}
        return {group.id: group.id in member_of for group in groups}

    def get_id(self, user: User) -> int:
        return user.id

    # ── Password reset ──────────────────────────────────────────────────────

    async def get_reset_password_code(self, user: User) -> str:
        return await self.provider.get_reset_password_code(user)

    def check_reset_password_code(self, user: User, reset_code: str) -> bool:
        return self.provider.check_reset_password_code(user, reset_code)

    async def attempt_reset_password(self, user: User, reset_code: str, password: str) -> bool:
        return await self.provider.attempt_reset_password(user, reset_code, password)

    async def send_reset_password_link(self, login: str) -> UserResult[User]:
        """Issue a reset code for ``login`` and email the reset link."""
        result = await self.find_user_by_login(login)
        if not result.ok:
            return result

        user = result.value
        code = await self.get_reset_password_code(user)
        await asyncio.to_thread(self.mailer.send_password_reset_email, user.email, user.id, code)
        return result

    # ── Writes ──────────────────────────────────────────────────────────────

    async def _resolve_groups(self, selection: dict[int, bool]) -> tuple[list[Group], list[Group]]:
        """Split all groups into (selected, unselected); unknown selected ids raise GroupNotFoundError."""
        groups = await self.provider.find_all_groups()
        known = {group.id for group in groups}
        for group_id, selected in selection.items():
            if selected and group_id not in known:
                await self.provider.find_group_by_id(group_id)

        chosen = [group for group in groups if selection.get(group.id)]
        others = [group for group in groups if not selection.get(group.id)]
        return chosen, others

    def _apply_groups(self, user: User, chosen: list[Group], others: list[Group]) -> None:
        for group in chosen:
            self.provider.add_group(user, group)
        for group in others:
            self.provider.remove_group(user, group)

    async def create(self, data: dict[str, Any]) -> UserResult[User]:
        """Create a user from admin form data and set its groups."""
        user_data = {key: value for key, value in data.items() if key not in FORM_ONLY_KEYS}
        try:
            chosen, others = await self._resolve_groups(data.get("groups") or {})
            user = await self.provider.create_user(user_data)
        except (LoginRequiredError, PasswordRequiredError, UserExistsError, GroupNotFoundError) as e:
            return failure_from(e)

        self._apply_groups(user, chosen, others)
        await self.provider.save_user(user)
        return UserResult.success(user)

    async def update(self, data: dict[str, Any]) -> UserResult[User]:
        """Update a user from admin form data. An empty password keeps the current one."""
        try:
            user = await self.provider.find_user_by_id(data["id"])
            if "groups" in data:
                chosen, others = await self._resolve_groups(data["groups"] or {})
                self._apply_groups(user, chosen, others)

            fields = {key: value for key, value in data.items() if key not in FORM_ONLY_KEYS and key != "id"}
            if not fields.get("password"):
                fields.pop("password", None)

            user = await self.provider.update_user(user, fields)
        except (UserNotFoundError, GroupNotFoundError, LoginRequiredError, UserExistsError) as e:
            return failure_from(e)

        return UserResult.success(user)

    async def destroy(self, user_id: int) -> bool:
        try:
            user = await self.provider.find_user_by_id(user_id)
        except UserNotFoundError:
            return False
        return await self.provider.delete_user(user)

    # ── Authentication ──────────────────────────────────────────────────────

    async def authenticate(self, credentials: dict[str, Any], remember: bool = False) -> UserResult[AuthSession]:
        try:
            return UserResult.success(await self.provider.authenticate(credentials, remember))
        except ProviderError as e:
            return failure_from(e)

    async def logout(self, user: User) -> None:
        await self.provider.logout(user)

    async def register(self, data: dict[str, Any], no_confirmation: bool = False) -> UserResult[User]:
        """
        Register a new user.

        With ``no_confirmation`` the account is active at once and joins the
        default group. Otherwise a welcome email carries the activation link.
        """
        try:
            user = await self.provider.register(data, activate=no_confirmation)
        except (LoginRequiredError, PasswordRequiredError, UserExistsError) as e:
            return failure_from(e)

        if no_confirmation:
            await self._join_default_group(user)
        else:
            await asyncio.to_thread(
                self.mailer.send_activation_email,
                user.email,
                user.first_name,
                user.last_name,
                user.id,
                user.activation_code,
            )

        return UserResult.success(user)

    async def activate(self, user_id: int, activation_code: str) -> UserResult[User]:
        try:
            user = await self.provider.find_user_by_id(user_id)
            activated = await self.provider.attempt_activation(user, activation_code)
        except UserNotFoundError as e:
            return failure_from(e, {AuthErrorKind.USER_NOT_FOUND: "User does not exist."})
        except UserAlreadyActivatedError as e:
            return failure_from(e)

        if not activated:
            return UserResult.failure(AuthErrorKind.ACTIVATION_FAILED)

        await self._join_default_group(user)
        return UserResult.success(user)

    async def _join_default_group(self, user: User) -> None:
        try:
            group = await self.provider.find_group_by_id(settings.default_group_id)
        except GroupNotFoundError:
            logger.warning("Default group %d is missing, user id=%d has no group", settings.default_group_id, user.id)
            return
        self.provider.add_group(user, group)
        await self.provider.save_user(user)

    # ── Throttling ──────────────────────────────────────────────────────────

    async def ban(self, user_id: int) -> UserResult[User]:
        try:
            user = await self.provider.find_user_by_id(user_id)
        except UserNotFoundError as e:
            return failure_from(e)
        await self.provider.ban(user)
        return UserResult.success(user)

    async def unban(self, user_id: int) -> UserResult[User]:
        try:
            user = await self.provider.find_user_by_id(user_id)
        except UserNotFoundError as e:
            return failure_from(e)
        await self.provider.unban(user)
        return UserResult.success(user)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """FastAPI dependency building the user repository for a request."""
    return UserService(DatabaseAuthProvider(db))
