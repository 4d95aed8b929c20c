"""Background scheduler for housekeeping jobs."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.rate_limit import BruteForceLimiter

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


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


def stop_scheduler() -> None:
    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def schedule_limiter_sweep(limiter: BruteForceLimiter, interval_seconds: int) -> None:
    """Periodically drop login-attempt records whose cool-down has passed."""
    scheduler = get_scheduler()
    trigger = IntervalTrigger(seconds=interval_seconds)
    scheduler.add_job(limiter.sweep, trigger=trigger, id="sweep-login-attempts", replace_existing=True)
    logger.info("Scheduled login attempt sweep every %s seconds", interval_seconds)
