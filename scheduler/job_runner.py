from __future__ import annotations

import logging
from dataclasses import dataclass

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.sessions import SessionPolicy, SessionService, SessionStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerConfig:
    cleanup_hour: int = 2
    expired_alert_threshold: int = 1000
    policy: SessionPolicy = SessionPolicy()


class SessionMaintenanceRunner:
    """Purge dead login sessions and keep an eye on how many pile up."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: SchedulerConfig,
    ) -> None:
        self._session_factory = session_factory
        self._config = config

    async def cleanup(self) -> int:
        logger.info("Starting expired session cleanup")
        try:
            async with self._session_factory() as session:
                removed = await SessionService(session, self._config.policy).cleanup_expired()
        except Exception:  # noqa: BLE001 - a failed run is retried on the next schedule
            logger.exception("Expired session cleanup failed")
            return 0
        logger.info("Expired session cleanup completed removed=%s", removed)
        return removed

    async def log_stats(self) -> SessionStats | None:
        try:
            async with self._session_factory() as session:
                stats = await SessionService(session, self._config.policy).stats()
        except Exception:  # noqa: BLE001 - stats are informational only
            logger.exception("Failed to collect session stats")
            return None

        logger.info(
            "Session stats total=%s active=%s expired=%s", stats.total, stats.active, stats.expired
        )
        if stats.expired > self._config.expired_alert_threshold:
            logger.warning(
                "Expired sessions %s exceed threshold %s; running cleanup now",
                stats.expired,
                self._config.expired_alert_threshold,
            )
            await self.cleanup()
        return stats


def start_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    config: SchedulerConfig,
) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    runner = SessionMaintenanceRunner(session_factory, config)
    scheduler.add_job(runner.cleanup, "cron", hour=config.cleanup_hour, minute=0, id="session-cleanup")
    scheduler.add_job(runner.log_stats, "cron", minute=0, id="session-stats")
    scheduler.start()
    return scheduler
