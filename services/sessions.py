from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.db.models import UserSession, utcnow
from services.hashing import hash_ip, hash_user_agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionPolicy:
    idle_days: int = 7
    absolute_days: int = 30
    ip_hash_salt: str = "ip_salt"
    ua_hash_salt: str = "ua_salt"


@dataclass(frozen=True)
class SessionStats:
    total: int
    active: int
    expired: int


def _as_utc(value: datetime) -> datetime:
    # Some backends hand back naive datetimes; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionService:
    """Server-side login sessions with a sliding idle window and an absolute cap."""

    def __init__(self, session: AsyncSession, policy: SessionPolicy | None = None) -> None:
        self._session = session
        self._policy = policy or SessionPolicy()

    def _expiry(self, created_at: datetime, now: datetime) -> datetime:
        idle_limit = now + timedelta(days=self._policy.idle_days)
        absolute_limit = _as_utc(created_at) + timedelta(days=self._policy.absolute_days)
        return min(idle_limit, absolute_limit)

    async def create_session(
        self,
        user_id: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserSession:
        now = utcnow()
        record = UserSession(
            user_id=user_id,
            created_at=now,
            last_activity_at=now,
            expires_at=self._expiry(now, now),
            ip_hash=hash_ip(ip_address, self._policy.ip_hash_salt) if ip_address else None,
            ua_hash=hash_user_agent(user_agent, self._policy.ua_hash_salt) if user_agent else None,
        )
        self._session.add(record)
        await self._session.commit()
        logger.info("Session created user_id=%s session_id=%s", user_id, record.id)
        return record

    async def find_active_session(self, session_id: str) -> UserSession | None:
        return await self._session.scalar(
            select(UserSession)
            .options(joinedload(UserSession.user))
            .where(
                UserSession.id == session_id,
                UserSession.revoked_at.is_(None),
                UserSession.expires_at > utcnow(),
            )
        )

    async def touch(self, session_id: str) -> None:
        record = await self._session.get(UserSession, session_id)
        if record is None:
            return
        now = utcnow()
        record.last_activity_at = now
        record.expires_at = self._expiry(record.created_at, now)
        await self._session.commit()

    async def revoke(self, session_id: str) -> None:
        await self._session.execute(
            update(UserSession)
            .where(UserSession.id == session_id, UserSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        await self._session.commit()
        logger.info("Session revoked session_id=%s", session_id)

    async def revoke_all_for_user(self, user_id: str) -> None:
        await self._session.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        await self._session.commit()
        logger.info("All sessions revoked user_id=%s", user_id)

    async def cleanup_expired(self) -> int:
        result = await self._session.execute(
            delete(UserSession).where(
                or_(UserSession.expires_at < utcnow(), UserSession.revoked_at.is_not(None))
            ).execution_options(synchronize_session="fetch")
        )
        await self._session.commit()
        removed = result.rowcount or 0
        logger.info("Cleaned up %s expired or revoked sessions", removed)
        return removed

    async def stats(self) -> SessionStats:
        now = utcnow()
        total = await self._session.scalar(select(func.count()).select_from(UserSession))
        active = await self._session.scalar(
            select(func.count())
            .select_from(UserSession)
            .where(UserSession.revoked_at.is_(None), UserSession.expires_at > now)
        )
        expired = await self._session.scalar(
            select(func.count())
            .select_from(UserSession)
            .where(or_(UserSession.expires_at < now, UserSession.revoked_at.is_not(None)))
        )
        return SessionStats(total=total or 0, active=active or 0, expired=expired or 0)
