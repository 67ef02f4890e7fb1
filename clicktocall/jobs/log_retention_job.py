"""
Log Retention Background Job - keeps the activity log inside its window.

Runs once at startup and then every ACTIVITY_LOG_FLUSH_INTERVAL_SECONDS,
removing activity log entries older than ACTIVITY_LOG_RETENTION_HOURS.

Design:
- Never fails (resilient): errors are logged and the loop keeps going
- Skips a run if the previous one is still going

Usage:
    import asyncio
    from clicktocall.jobs.log_retention_job import start_log_retention_scheduler

    asyncio.create_task(start_log_retention_scheduler())
"""

import asyncio
from datetime import datetime, timezone

from clicktocall.config import settings
from clicktocall.infrastructure.audit import activity_log as default_activity_log
from clicktocall.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class LogRetentionJob:
    def __init__(self, activity=None):
        self.activity = activity or default_activity_log
        self.is_running = False

    async def run_cleanup(self, now: datetime | None = None) -> dict:
        """
        Run one retention sweep.

        Returns:
            dict: {"success": bool, "removed": int, "error": str | None}
        """
        if self.is_running:
            logger.warning("Log retention job already running, skipping")
            return {"success": False, "removed": 0, "error": "Already running"}

        self.is_running = True
        started = datetime.now(timezone.utc)

        try:
            removed = await self.activity.flush_older_than(now)
            logger.info(
                "Log retention sweep finished",
                removed=removed,
                duration_ms=round((datetime.now(timezone.utc) - started).total_seconds() * 1000, 1),
            )
            return {"success": True, "removed": removed, "error": None}

        except Exception as e:
            logger.error("Log retention sweep failed", error=str(e), error_type=type(e).__name__)
            return {"success": False, "removed": 0, "error": str(e)}

        finally:
            self.is_running = False


log_retention_job = LogRetentionJob()


async def start_log_retention_scheduler(interval_s: int | None = None) -> None:
    """Sweep now, then forever at the configured interval."""
    interval = interval_s or settings.ACTIVITY_LOG_FLUSH_INTERVAL_SECONDS
    logger.info("Log retention scheduler started", interval_seconds=interval)

    while True:
        await log_retention_job.run_cleanup()
        await asyncio.sleep(interval)
