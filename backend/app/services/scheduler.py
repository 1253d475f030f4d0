"""Background scheduler for housekeeping jobs."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import get_settings
from app.core.sessions import SessionStore

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None

PURGE_SESSIONS_JOB_ID = "purge-expired-sessions"


def get_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


def start_scheduler() -> None:
    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    global _scheduler
    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    # An AsyncIOScheduler stays bound to the loop it first ran on
    _scheduler = None


def schedule_session_purge(store: SessionStore) -> None:
    settings = get_settings()
    scheduler = get_scheduler()
    trigger = IntervalTrigger(seconds=settings.session_purge_interval_seconds)
    scheduler.add_job(
        _purge_sessions,
        trigger=trigger,
        id=PURGE_SESSIONS_JOB_ID,
        args=[store],
        replace_existing=True,
    )
    logger.info("Scheduled %s every %s seconds", PURGE_SESSIONS_JOB_ID, trigger.interval.total_seconds())


async def _purge_sessions(store: SessionStore) -> None:
    removed = store.purge_expired()
    logger.debug("Session purge removed %d session(s); %d remain", removed, len(store))
