"""
Auth Provider

The identity collaborator behind the user repository. ``AuthProvider`` is
the interface the rest of the application depends on;
``DatabaseAuthProvider`` implements it on the application's own
users/groups/throttle tables.

Every failure is raised as a ``ProviderError`` subclass. The user
repository (``app.services.user_service``) turns those into typed results.
"""

from __future__ import annotations

import hmac
import logging
import math
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002
from sqlalchemy.future import select

from app.auth import create_access_token, hash_password, session_lifetime, verify_password
from app.config import settings
from app.database import utcnow
from app.models.user import Group, Throttle, User

logger = logging.getLogger(__name__)


# ============================================================================
# Provider Exceptions
# ============================================================================


class ProviderError(Exception):
    """Base class for auth provider failures"""


class LoginRequiredError(ProviderError):
    """The login attribute is missing"""


class PasswordRequiredError(ProviderError):
    """The password is missing"""


class UserExistsError(ProviderError):
    """A user with this login already exists"""


class UserNotFoundError(ProviderError):
    """No user matches the id or login"""


class UserAlreadyActivatedError(ProviderError):
    """Activation attempted on an active account"""


class GroupNotFoundError(ProviderError):
    """No group matches the id"""


class WrongPasswordError(ProviderError):
    """The password does not match"""


class UserNotActivatedError(ProviderError):
    """The account has not been activated yet"""


class UserSuspendedError(ProviderError):
    """Too many failed logins; carries the minutes left on the suspension"""

    def __init__(self, minutes: int):
        self.minutes = minutes
        super().__init__(f"User is suspended for {minutes} minutes")


class UserBannedError(ProviderError):
    """The account has been banned"""


@dataclass
class AuthSession:
    """An authenticated user and the bearer token identifying the session"""

    user: User
    access_token: str
    expires_in: int
    token_type: str = "bearer"


class AuthProvider(Protocol):
    async def authenticate(self, credentials: dict[str, Any], remember: bool = False) -> AuthSession: ...

    async def create_user(self, data: dict[str, Any]) -> User: ...

    async def register(self, data: dict[str, Any], activate: bool = False) -> User: ...

    async def find_user_by_id(self, user_id: int) -> User: ...

    async def find_user_by_login(self, login: str) -> User: ...

    async def find_all_users(self) -> list[User]: ...

    async def find_all_groups(self) -> list[Group]: ...

    async def find_group_by_id(self, group_id: int) -> Group: ...

    def add_group(self, user: User, group: Group) -> None: ...

    def remove_group(self, user: User, group: Group) -> None: ...

    async def update_user(self, user: User, data: dict[str, Any]) -> User: ...

    async def save_user(self, user: User) -> User: ...

    async def delete_user(self, user: User) -> bool: ...

    async def get_activation_code(self, user: User) -> str: ...

    async def attempt_activation(self, user: User, code: str) -> bool: ...

    async def get_reset_password_code(self, user: User) -> str: ...

    def check_reset_password_code(self, user: User, code: str) -> bool: ...

    async def attempt_reset_password(self, user: User, code: str, password: str) -> bool: ...

    async def get_throttle(self, user: User) -> Throttle: ...

    async def ban(self, user: User) -> None: ...

    async def unban(self, user: User) -> None: ...

    async def logout(self, user: User) -> None: ...


def generate_code() -> str:
    """Generate a URL-safe random code for activation, reset and persistence"""
    return secrets.token_urlsafe(24)


class DatabaseAuthProvider:
    """AuthProvider backed by SQLAlchemy models and bcrypt password hashes."""

    login_attribute = "email"
    user_fields = ("email", "first_name", "last_name")

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Users ───────────────────────────────────────────────────────────────

    async def create_user(self, data: dict[str, Any]) -> User:
        """
        Create a user from ``data``.

        Raises:
            LoginRequiredError, PasswordRequiredError, UserExistsError
        """
        login = data.get(self.login_attribute)
        if not login:
            raise LoginRequiredError("A login is required for a user, none given.")
        if not data.get("password"):
            raise PasswordRequiredError("A password is required for user, none given.")

        result = await self.db.execute(select(User).where(User.email == login))
        if result.scalars().first() is not None:
            raise UserExistsError(f"A user with the login [{login}] already exists.")

        user = User(
            **{key: data[key] for key in self.user_fields if key in data},
            hashed_password=hash_password(data["password"]),
            activated=bool(data.get("activated", False)),
            persist_code=generate_code(),
        )
        if user.activated:
            user.activated_at = utcnow()
        user.throttle = Throttle()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User created: id=%d", user.id)
        return user

    async def register(self, data: dict[str, Any], activate: bool = False) -> User:
        """Create a user; inactive users get an activation code."""
        user = await self.create_user({**data, "activated": activate})
        if not activate:
            await self.get_activation_code(user)
        return user

    async def find_user_by_id(self, user_id: int) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalars().first()
        if user is None:
            raise UserNotFoundError(f"A user could not be found with ID [{user_id}].")
        return user

    async def find_user_by_login(self, login: str) -> User:
        result = await self.db.execute(select(User).where(User.email == login))
        user = result.scalars().first()
        if user is None:
            raise UserNotFoundError(f"A user could not be found with a login value of [{login}].")
        return user

    async def find_all_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def update_user(self, user: User, data: dict[str, Any]) -> User:
        """Assign profile fields and, when given, a new password; then save."""
        login = data.get(self.login_attribute)
        if login is not None and login != user.email:
            if not login:
                raise LoginRequiredError("A login is required for a user, none given.")
            result = await self.db.execute(select(User).where(User.email == login, User.id != user.id))
            if result.scalars().first() is not None:
                raise UserExistsError(f"A user with the login [{login}] already exists.")

        for key in self.user_fields:
            if key in data:
                setattr(user, key, data[key])
        if data.get("password"):
            user.hashed_password = hash_password(data["password"])
        if "activated" in data and bool(data["activated"]) != user.activated:
            user.activated = bool(data["activated"])
            user.activated_at = utcnow() if user.activated else None
        return await self.save_user(user)

    async def save_user(self, user: User) -> User:
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete_user(self, user: User) -> bool:
        await self.db.delete(user)
        await self.db.commit()
        logger.info("User deleted: id=%d", user.id)
        return True

    # ── Groups ──────────────────────────────────────────────────────────────

    async def find_all_groups(self) -> list[Group]:
        result = await self.db.execute(select(Group).order_by(Group.id))
        return list(result.scalars().all())

    async def find_group_by_id(self, group_id: int) -> Group:
        result = await self.db.execute(select(Group).where(Group.id == group_id))
        group = result.scalars().first()
        if group is None:
            raise GroupNotFoundError(f"A group could not be found with ID [{group_id}].")
        return group

    def add_group(self, user: User, group: Group) -> None:
        if group not in user.groups:
            user.groups.append(group)

    def remove_group(self, user: User, group: Group) -> None:
        if group in user.groups:
            user.groups.remove(group)

    # ── Activation & password reset ─────────────────────────────────────────

    async def get_activation_code(self, user: User) -> str:
        user.activation_code = generate_code()
        await self.db.commit()
        return user.activation_code

    async def attempt_activation(self, user: User, code: str) -> bool:
        if user.activated:
            raise UserAlreadyActivatedError("Cannot attempt activation on an already activated user.")
        if not user.activation_code or not hmac.compare_digest(user.activation_code, code or ""):
            return False

        user.activated = True
        user.activation_code = None
        user.activated_at = utcnow()
        await self.db.commit()
        logger.info("User activated: id=%d", user.id)
        return True

    async def get_reset_password_code(self, user: User) -> str:
        user.reset_password_code = generate_code()
        await self.db.commit()
        return user.reset_password_code

    def check_reset_password_code(self, user: User, code: str) -> bool:
        if not user.reset_password_code or not code:
            return False
        return hmac.compare_digest(user.reset_password_code, code)

    async def attempt_reset_password(self, user: User, code: str, password: str) -> bool:
        if not self.check_reset_password_code(user, code):
            return False

        user.hashed_password = hash_password(password)
        user.reset_password_code = None
        await self.db.commit()
        logger.info("Password reset for user id=%d", user.id)
        return True

    # ── Throttling ──────────────────────────────────────────────────────────

    async def get_throttle(self, user: User) -> Throttle:
        """Return the user's throttle row, lifting an expired suspension."""
        throttle = user.throttle
        if throttle is None:
            throttle = Throttle(user_id=user.id)
            user.throttle = throttle
            await self.db.flush()

        if throttle.suspended and self._suspension_left(throttle) <= timedelta(0):
            throttle.suspended = False
            throttle.suspended_at = None
            throttle.attempts = 0
            await self.db.commit()
        return throttle

    def _suspension_left(self, throttle: Throttle) -> timedelta:
        ends_at = throttle.suspended_at + timedelta(minutes=settings.throttle_suspension_minutes)
        return ends_at - utcnow()

    async def _add_login_attempt(self, throttle: Throttle) -> None:
        throttle.attempts += 1
        throttle.last_attempt_at = utcnow()
        if throttle.attempts >= settings.throttle_attempt_limit:
            throttle.suspended = True
            throttle.suspended_at = utcnow()
            logger.warning("User id=%d suspended after %d failed logins", throttle.user_id, throttle.attempts)
        await self.db.commit()

    async def ban(self, user: User) -> None:
        throttle = await self.get_throttle(user)
        throttle.banned = True
        await self.db.commit()
        logger.info("User banned: id=%d", user.id)

    async def unban(self, user: User) -> None:
        throttle = await self.get_throttle(user)
        throttle.banned = False
        await self.db.commit()
        logger.info("User unbanned: id=%d", user.id)

    # ── Sessions ────────────────────────────────────────────────────────────

    async def authenticate(self, credentials: dict[str, Any], remember: bool = False) -> AuthSession:
        """
        Check credentials and open a session.

        Raises:
            LoginRequiredError, PasswordRequiredError, UserNotFoundError,
            UserBannedError, UserSuspendedError, WrongPasswordError,
            UserNotActivatedError
        """
        login = credentials.get(self.login_attribute)
        if not login:
            raise LoginRequiredError("The login attribute is required.")
        password = credentials.get("password")
        if not password:
            raise PasswordRequiredError("The password attribute is required.")

        user = await self.find_user_by_login(login)
        throttle = await self.get_throttle(user)
        if throttle.banned:
            raise UserBannedError(f"User [{login}] has been banned.")
        if throttle.suspended:
            raise UserSuspendedError(max(1, math.ceil(self._suspension_left(throttle).total_seconds() / 60)))

        if not verify_password(password, user.hashed_password):
            await self._add_login_attempt(throttle)
            raise WrongPasswordError("A user was found but the password did not match.")
        if not user.activated:
            raise UserNotActivatedError(f"User [{login}] has not been activated.")

        throttle.attempts = 0
        user.last_login = utcnow()
        if not user.persist_code:
            user.persist_code = generate_code()
        await self.db.commit()

        lifetime = session_lifetime(remember)
        token = create_access_token({"sub": str(user.id), "pc": user.persist_code}, lifetime)
        logger.info("User logged in: id=%d remember=%s", user.id, remember)
        return AuthSession(user=user, access_token=token, expires_in=int(lifetime.total_seconds()))

    async def logout(self, user: User) -> None:
        """Rotate the persist code, revoking every outstanding token."""
        user.persist_code = generate_code()
        await self.db.commit()
        logger.info("User logged out: id=%d", user.id)
