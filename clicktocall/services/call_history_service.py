"""
Call History Service - the history collaborator.

Keeps placed calls oldest-first under a single key, capped at
CALL_HISTORY_MAX_ENTRIES. An entry is addressed by (phone_number, timestamp);
timestamps are strictly increasing so that pair is unique.
"""

import csv
import io
import re
from datetime import date, datetime, timedelta, timezone

from clicktocall.config import settings
from clicktocall.infrastructure.audit import activity_log as default_activity_log
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.session_domain import CallHistoryEntry
from clicktocall.services import redis_store

logger = get_logger(__name__)

CALL_HISTORY_KEY = "call_history"
CSV_HEADERS = ["DateTime", "Phone Number", "Note"]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


class CallHistoryError(Exception):
    """Raised when call history cannot be written."""

    pass


def _locate(
    entries: list[CallHistoryEntry], phone_number: str, timestamp: str
) -> CallHistoryEntry | None:
    for entry in entries:
        if entry.phone_number == phone_number and entry.timestamp == timestamp:
            return entry
    return None


class CallHistoryService:
    def __init__(self, store=None, max_entries: int | None = None, activity=None):
        self.store = store or redis_store
        self.max_entries = max_entries or settings.CALL_HISTORY_MAX_ENTRIES
        self.activity = activity or default_activity_log

    async def _load(self) -> list[CallHistoryEntry]:
        raw_entries = await redis_store.load_json(self.store, CALL_HISTORY_KEY, default=[])
        return [CallHistoryEntry.model_validate(raw) for raw in raw_entries or []]

    async def _save(self, entries: list[CallHistoryEntry]) -> None:
        payload = [entry.model_dump(by_alias=True) for entry in entries]
        if not await redis_store.save_json(self.store, CALL_HISTORY_KEY, payload):
            raise CallHistoryError("Failed to save call history")

    def _next_timestamp(self, entries: list[CallHistoryEntry]) -> str:
        now = datetime.now(timezone.utc)
        if entries:
            last = entries[-1].parsed_timestamp()
            if now <= last:
                now = last + timedelta(microseconds=1)
        return now.isoformat()

    async def append(self, phone_number: str, note: str = "") -> CallHistoryEntry:
        """Record a call, evicting the oldest entries beyond the cap."""
        entries = await self._load()
        entry = CallHistoryEntry(
            phone_number=phone_number,
            timestamp=self._next_timestamp(entries),
            note=note,
        )
        entries.append(entry)

        evicted = len(entries) - self.max_entries
        if evicted > 0:
            entries = entries[evicted:]

        await self._save(entries)
        await self.activity.info(f"Added {phone_number} to call history")
        return entry

    async def list_entries(self, newest_first: bool = True) -> list[CallHistoryEntry]:
        entries = await self._load()
        if newest_first:
            entries.reverse()
        return entries

    async def find(self, phone_number: str, timestamp: str) -> CallHistoryEntry | None:
        return _locate(await self._load(), phone_number, timestamp)

    async def update_note(self, phone_number: str, timestamp: str, note: str) -> bool:
        """
        Replace the note of one call.

        Returns:
            bool: False if no call matches (phone_number, timestamp)
        """
        entries = await self._load()
        entry = _locate(entries, phone_number, timestamp)
        if entry is None:
            await self.activity.warning(
                f"Could not find call to {phone_number} at {timestamp} to update note"
            )
            return False

        entry.note = note
        await self._save(entries)
        await self.activity.info(f"Updated note for call to {phone_number} at {timestamp}")
        return True

    async def clear(self) -> None:
        await self._save([])
        await self.activity.info("Call history cleared")

    async def export_csv(
        self, tenant: str | None = None, extension: str | None = None, today: date | None = None
    ) -> tuple[str, str]:
        """
        Render history as CSV for download.

        Returns:
            tuple[str, str]: (filename, csv_content)
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in await self.list_entries():
            writer.writerow(
                [
                    entry.parsed_timestamp().strftime("%Y-%m-%d %H:%M:%S"),
                    entry.phone_number,
                    entry.note or "",
                ]
            )

        safe_tenant = _UNSAFE_FILENAME_CHARS.sub("-", tenant or "vaspian").lower()
        safe_extension = _UNSAFE_FILENAME_CHARS.sub("-", extension or "ext").lower()
        stamp = (today or datetime.now(timezone.utc).date()).isoformat()

        return f"{safe_tenant}-{safe_extension}-{stamp}.csv", buffer.getvalue()


# Global instance
call_history_service = CallHistoryService()
