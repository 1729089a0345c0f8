from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from services.hashing import hash_password, needs_rehash, verify_password
from services.sessions import SessionService

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
_HAS_LETTER = re.compile(r"[^\W\d_]")
_HAS_DIGIT = re.compile(r"\d")


class UserStatus(str, Enum):
    active = "ACTIVE"
    blocked = "BLOCKED"


class AuthError(RuntimeError):
    """Base class for authentication failures surfaced to the client."""

    code = "AUTH_ERROR"


class EmailTakenError(AuthError):
    code = "EMAIL_TAKEN"


class InvalidCredentialsError(AuthError):
    code = "INVALID_CREDENTIALS"


class UserBlockedError(AuthError):
    code = "USER_BLOCKED"


class WeakPasswordError(AuthError):
    code = "WEAK_PASSWORD"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    status: str


@dataclass(frozen=True)
class AuthResult:
    user: AuthUser
    session_id: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password_strength(password: str) -> None:
    if (
        len(password) < PASSWORD_MIN_LENGTH
        or not _HAS_LETTER.search(password)
        or not _HAS_DIGIT.search(password)
    ):
        raise WeakPasswordError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters "
            "and contain a letter and a digit."
        )


def _to_auth_user(user: User) -> AuthUser:
    return AuthUser(id=user.id, email=user.email, status=user.status)


class AuthService:
    """Register and log in users; each successful login opens a new session."""

    def __init__(self, session: AsyncSession, sessions: SessionService) -> None:
        self._session = session
        self._sessions = sessions

    async def register(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        email = normalize_email(email)
        check_password_strength(password)
        existing = await self._session.scalar(select(User).where(User.email == email))
        if existing is not None:
            raise EmailTakenError("A user with this email already exists.")

        user = User(
            email=email,
            password_hash=hash_password(password),
            status=UserStatus.active.value,
        )
        self._session.add(user)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise EmailTakenError("A user with this email already exists.") from exc

        record = await self._sessions.create_session(user.id, ip_address, user_agent)
        logger.info("User registered user_id=%s", user.id)
        return AuthResult(user=_to_auth_user(user), session_id=record.id)

    async def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        user = await self._session.scalar(select(User).where(User.email == normalize_email(email)))
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt email=%s", normalize_email(email))
            raise InvalidCredentialsError("Invalid credentials.")
        if user.status == UserStatus.blocked.value:
            raise UserBlockedError("Account is blocked.")
        if needs_rehash(user.password_hash):
            # Committed together with the new session below.
            user.password_hash = hash_password(password)

        # Existing sessions stay valid so the user can be signed in on several devices.
        record = await self._sessions.create_session(user.id, ip_address, user_agent)
        logger.info("User logged in user_id=%s", user.id)
        return AuthResult(user=_to_auth_user(user), session_id=record.id)

    async def logout(self, session_id: str) -> None:
        await self._sessions.revoke(session_id)

    async def logout_all(self, user_id: str) -> None:
        await self._sessions.revoke_all_for_user(user_id)

    async def validate_session(self, session_id: str | None) -> AuthUser | None:
        if not session_id:
            return None
        record = await self._sessions.find_active_session(session_id)
        if record is None or record.user.status == UserStatus.blocked.value:
            return None
        user = _to_auth_user(record.user)
        await self._sessions.touch(session_id)
        return user
