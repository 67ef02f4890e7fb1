"""
Tests for call history storage, notes and CSV export.
"""

import json
from datetime import date

import pytest

from clicktocall.services.call_history_service import (
    CALL_HISTORY_KEY,
    CallHistoryError,
    CallHistoryService,
)


@pytest.mark.asyncio
async def test_entries_are_listed_newest_first(history):
    await history.append("7169234121")
    await history.append("5855550100")

    entries = await history.list_entries()

    assert [e.phone_number for e in entries] == ["5855550100", "7169234121"]
    assert entries[0].parsed_timestamp() > entries[1].parsed_timestamp()


@pytest.mark.asyncio
async def test_timestamps_are_unique_for_rapid_appends(history):
    for _ in range(20):
        await history.append("7169234121")

    timestamps = [e.timestamp for e in await history.list_entries()]
    assert len(set(timestamps)) == 20


@pytest.mark.asyncio
async def test_append_beyond_cap_evicts_oldest(fake_redis, activity):
    history = CallHistoryService(store=fake_redis, max_entries=500, activity=activity)
    seeded = [
        {"phoneNumber": f"716{i:07d}", "timestamp": f"2025-01-01T00:00:00.{i:06d}+00:00", "note": ""}
        for i in range(500)
    ]
    fake_redis.store[CALL_HISTORY_KEY] = json.dumps(seeded)

    await history.append("5855550100")

    entries = await history.list_entries(newest_first=False)
    assert len(entries) == 500
    assert entries[0].phone_number == "7160000001"
    assert entries[-1].phone_number == "5855550100"


@pytest.mark.asyncio
async def test_stored_entries_use_camel_case_keys(history, fake_redis):
    await history.append("7169234121", note="first")

    [stored] = json.loads(fake_redis.store[CALL_HISTORY_KEY])
    assert set(stored) == {"phoneNumber", "timestamp", "note"}
    assert stored["note"] == "first"


@pytest.mark.asyncio
async def test_update_note_round_trip(history):
    entry = await history.append("7169234121")

    assert await history.update_note("7169234121", entry.timestamp, "Left voicemail") is True

    found = await history.find("7169234121", entry.timestamp)
    assert found.note == "Left voicemail"


@pytest.mark.asyncio
async def test_update_note_on_missing_entry_returns_false(history, activity):
    await history.append("7169234121")

    assert await history.update_note("7169234121", "2000-01-01T00:00:00+00:00", "x") is False

    last = (await activity.entries())[-1]
    assert last.level == "warning"
    assert "Could not find call to 7169234121" in last.message


@pytest.mark.asyncio
async def test_clear_removes_everything(history):
    await history.append("7169234121")
    await history.clear()

    assert await history.list_entries() == []


@pytest.mark.asyncio
async def test_failed_write_raises(activity):
    class ReadOnlyStore:
        async def get(self, key):
            return None

        async def set_with_ttl(self, key, value, ttl_s=None):
            return False

    history = CallHistoryService(store=ReadOnlyStore(), activity=activity)

    with pytest.raises(CallHistoryError):
        await history.append("7169234121")


@pytest.mark.asyncio
async def test_export_csv(history, fake_redis):
    fake_redis.store[CALL_HISTORY_KEY] = json.dumps(
        [
            {"phoneNumber": "7169234121", "timestamp": "2025-03-01T09:15:00+00:00", "note": ""},
            {
                "phoneNumber": "5855550100",
                "timestamp": "2025-03-02T14:30:05+00:00",
                "note": 'Asked for "Bob", call back',
            },
        ]
    )

    filename, content = await history.export_csv("Acme Corp", "1001", today=date(2025, 3, 3))

    assert filename == "acme-corp-1001-2025-03-03.csv"
    assert content.splitlines() == [
        '"DateTime","Phone Number","Note"',
        '"2025-03-02 14:30:05","5855550100","Asked for ""Bob"", call back"',
        '"2025-03-01 09:15:00","7169234121",""',
    ]


@pytest.mark.asyncio
async def test_export_csv_filename_defaults(history):
    filename, content = await history.export_csv(today=date(2025, 3, 3))

    assert filename == "vaspian-ext-2025-03-03.csv"
    assert content == '"DateTime","Phone Number","Note"\n'


@pytest.mark.asyncio
async def test_update_note_addresses_one_call_by_number_and_timestamp(history):
    first = await history.append("7169234121")
    second = await history.append("7169234121")

    assert await history.update_note("7169234121", second.timestamp, "second call") is True

    assert (await history.find("7169234121", first.timestamp)).note == ""
    assert (await history.find("7169234121", second.timestamp)).note == "second call"
