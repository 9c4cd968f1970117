"""APScheduler job definitions and scheduler management.

Runs a periodic sweep that logs out sessions idle for longer than
``SESSION_IDLE_TIMEOUT_MINUTES``; an expired session loses its identity
and its cached profile exactly as on an explicit logout.  Provides
start/shutdown/status helpers for the FastAPI lifespan.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.services.session import SessionRegistry

logger = logging.getLogger(__name__)

# Module-level scheduler instance (singleton).  Jobs run on the event loop
# that owns the session registry.
scheduler = AsyncIOScheduler()


async def expire_idle_sessions(registry: SessionRegistry) -> list[str]:
    """Job body: close sessions past the idle timeout."""
    return registry.expire_idle(settings.SESSION_IDLE_TIMEOUT_MINUTES * 60)


def start_scheduler(registry: SessionRegistry) -> None:
    """Register the idle-session sweep and start the scheduler on the running loop."""
    scheduler.add_job(
        expire_idle_sessions,
        IntervalTrigger(minutes=settings.SESSION_SWEEP_INTERVAL_MINUTES),
        args=[registry],
        id="expire_idle_sessions",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={
            "sweep_interval_minutes": settings.SESSION_SWEEP_INTERVAL_MINUTES,
            "idle_timeout_minutes": settings.SESSION_IDLE_TIMEOUT_MINUTES,
        },
    )


def shutdown_scheduler() -> None:
    """Shutdown the scheduler without waiting for a running sweep."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running() -> bool:
    """Check if the scheduler is currently running."""
    return scheduler.running
