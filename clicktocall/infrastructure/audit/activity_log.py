"""
ActivityLog - the user-visible diagnostic log stream.

Usage:
    from clicktocall.infrastructure.audit import activity_log

    await activity_log.info("Sending login request...")
    await activity_log.error("Login failed", details={"status": 401})

Design Principles:
- Non-error entries are recorded only while debug logging is enabled
- Every entry is also emitted through structured logs
- Never fail the operation being logged if recording fails
- Capped at ACTIVITY_LOG_MAX_ENTRIES, swept to the retention window
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from clicktocall.config import settings
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.session_domain import ActivityLogEntry
from clicktocall.services import redis_store

logger = get_logger(__name__)

ACTIVITY_LOG_KEY = "activity_logs"

_STRUCTLOG_METHODS = {
    "info": "info",
    "success": "info",
    "warning": "warning",
    "error": "error",
}


class ActivityLog:
    """
    Capped, persisted log stream read back by the UI.

    Entries are kept oldest-first in memory and mirrored to the key-value
    store after each write.
    """

    def __init__(
        self,
        store=None,
        max_entries: int | None = None,
        retention: timedelta | None = None,
    ):
        self.store = store or redis_store
        self.max_entries = max_entries or settings.ACTIVITY_LOG_MAX_ENTRIES
        self.retention = retention or timedelta(hours=settings.ACTIVITY_LOG_RETENTION_HOURS)
        self.enabled = False
        self._entries: list[ActivityLogEntry] = []
        self._loaded = False

    async def load(self) -> None:
        """Pick up entries persisted by a previous run."""
        raw_entries = await redis_store.load_json(self.store, ACTIVITY_LOG_KEY, default=[])
        entries = []
        for raw in raw_entries or []:
            try:
                entries.append(ActivityLogEntry.model_validate(raw))
            except ValueError as e:
                logger.warning("Skipping malformed activity log entry", error=str(e))
        self._entries = entries[-self.max_entries :]
        self._loaded = True

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        logger.info("Activity logging toggled", enabled=self.enabled)

    async def log(self, level: str, message: str, details: Any | None = None) -> bool:
        """
        Record one entry.

        Returns:
            bool: True if the entry was recorded and persisted
        """
        if not self.enabled and level != "error":
            return False

        entry = ActivityLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            message=message,
            details=details,
        )

        log_method = getattr(logger, _STRUCTLOG_METHODS.get(level, "info"))
        log_method(message, activity_level=level, details=details)

        try:
            if not self._loaded:
                await self.load()
            self._entries.append(entry)
            if len(self._entries) > self.max_entries:
                self._entries = self._entries[-self.max_entries :]
            return await self._persist()
        except Exception as e:
            # A failed log write must not abort the operation being logged
            logger.error(
                "Failed to record activity log entry",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def info(self, message: str, details: Any | None = None) -> bool:
        return await self.log("info", message, details)

    async def success(self, message: str, details: Any | None = None) -> bool:
        return await self.log("success", message, details)

    async def warning(self, message: str, details: Any | None = None) -> bool:
        return await self.log("warning", message, details)

    async def error(self, message: str, details: Any | None = None) -> bool:
        return await self.log("error", message, details)

    async def entries(self) -> list[ActivityLogEntry]:
        if not self._loaded:
            await self.load()
        return list(self._entries)

    async def clear(self) -> None:
        self._entries = []
        self._loaded = True
        await self._persist()
        await self.info("Logs cleared")

    async def flush_older_than(self, now: datetime | None = None) -> int:
        """
        Drop entries outside the retention window.

        Returns:
            int: Number of entries removed
        """
        if not self._loaded:
            await self.load()

        cutoff = (now or datetime.now(timezone.utc)) - self.retention
        kept = [
            entry for entry in self._entries if datetime.fromisoformat(entry.timestamp) > cutoff
        ]
        removed = len(self._entries) - len(kept)

        if removed > 0:
            self._entries = kept
            await self._persist()
            hours = int(self.retention.total_seconds() // 3600)
            await self.info(f"Flushed {removed} old log entries (keeping last {hours} hours)")

        return removed

    async def _persist(self) -> bool:
        payload = [entry.model_dump(mode="json") for entry in self._entries]
        saved = await redis_store.save_json(self.store, ACTIVITY_LOG_KEY, payload)
        if not saved:
            logger.warning("Activity log not persisted", entries=len(payload))
        return saved


# Global instance
activity_log = ActivityLog()
