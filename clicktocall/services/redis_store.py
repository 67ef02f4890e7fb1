"""
Key-value facade used by the preference, call history and activity stores.

Any object exposing these coroutines (get, set_with_ttl, delete) can stand in
for this module, which is how tests inject an in-memory store.
"""

import json
from typing import Any

from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.services.redis_client import fast_redis

logger = get_logger(__name__)


async def ping() -> bool:
    return await fast_redis.ping()


async def get(key: str) -> str | None:
    return await fast_redis.get(key)


async def set_with_ttl(key: str, value: str, ttl_s: int | None = None) -> bool:
    return await fast_redis.set_with_ttl(key, value, ttl_s)


async def delete(key: str) -> bool:
    return await fast_redis.delete(key)


async def load_json(store, key: str, default: Any = None) -> Any:
    """Read and decode a JSON value, returning `default` when absent or corrupt."""
    raw = await store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Discarding undecodable stored value", key=key, error=str(e))
        return default


async def save_json(store, key: str, value: Any) -> bool:
    """Encode and write a JSON value without expiry."""
    return await store.set_with_ttl(key, json.dumps(value))
