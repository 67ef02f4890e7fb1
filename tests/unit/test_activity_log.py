"""
Tests for the activity log stream.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from clicktocall.infrastructure.audit.activity_log import ACTIVITY_LOG_KEY, ActivityLog


@pytest.mark.asyncio
async def test_non_error_entries_are_gated_by_enabled_flag(fake_redis):
    log = ActivityLog(store=fake_redis)

    assert await log.info("hidden") is False
    assert await log.error("always kept") is True

    log.set_enabled(True)
    assert await log.success("now visible") is True

    assert [(e.level, e.message) for e in await log.entries()] == [
        ("error", "always kept"),
        ("success", "now visible"),
    ]


@pytest.mark.asyncio
async def test_entries_are_capped(fake_redis):
    log = ActivityLog(store=fake_redis, max_entries=3)
    log.set_enabled(True)

    for i in range(5):
        await log.info(f"entry {i}")

    assert [e.message for e in await log.entries()] == ["entry 2", "entry 3", "entry 4"]


@pytest.mark.asyncio
async def test_entries_survive_a_restart(fake_redis):
    log = ActivityLog(store=fake_redis)
    log.set_enabled(True)
    await log.warning("careful", details={"key": "value"})

    restarted = ActivityLog(store=fake_redis)
    await restarted.load()

    [entry] = await restarted.entries()
    assert entry.level == "warning"
    assert entry.details == {"key": "value"}


@pytest.mark.asyncio
async def test_clear_leaves_only_the_clear_notice(activity):
    await activity.info("one")
    await activity.info("two")

    await activity.clear()

    assert [e.message for e in await activity.entries()] == ["Logs cleared"]


@pytest.mark.asyncio
async def test_flush_removes_entries_outside_retention(fake_redis):
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    fake_redis.store[ACTIVITY_LOG_KEY] = json.dumps(
        [
            {"timestamp": (now - timedelta(hours=30)).isoformat(), "level": "info", "message": "old"},
            {"timestamp": (now - timedelta(hours=25)).isoformat(), "level": "error", "message": "old error"},
            {"timestamp": (now - timedelta(hours=1)).isoformat(), "level": "info", "message": "recent"},
        ]
    )
    log = ActivityLog(store=fake_redis, retention=timedelta(hours=24))
    log.set_enabled(True)

    removed = await log.flush_older_than(now)

    assert removed == 2
    messages = [e.message for e in await log.entries()]
    assert messages == ["recent", "Flushed 2 old log entries (keeping last 24 hours)"]


@pytest.mark.asyncio
async def test_flush_with_nothing_to_remove_is_silent(activity):
    await activity.info("fresh")

    assert await activity.flush_older_than() == 0
    assert [e.message for e in await activity.entries()] == ["fresh"]


@pytest.mark.asyncio
async def test_store_failure_does_not_raise():
    class BrokenStore:
        async def get(self, key):
            return None

        async def set_with_ttl(self, key, value, ttl_s=None):
            raise ConnectionError("redis down")

    log = ActivityLog(store=BrokenStore())
    log.set_enabled(True)

    assert await log.info("still fine") is False


@pytest.mark.asyncio
async def test_malformed_stored_entries_are_skipped(fake_redis):
    fake_redis.store[ACTIVITY_LOG_KEY] = json.dumps(
        [{"timestamp": "2025-01-01T00:00:00+00:00", "level": "loud", "message": "bad"}, {"oops": 1}]
    )
    log = ActivityLog(store=fake_redis)

    await log.load()

    assert await log.entries() == []
