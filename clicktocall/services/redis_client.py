# clicktocall/services/redis_client.py
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from clicktocall.config import settings
from clicktocall.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FastRedisClient:
    """
    Pooled Redis connection behind the key-value facade.

    Only `initialize()` raises. Every data operation logs its failure and
    returns a neutral value (None / False) so a store outage degrades the
    preference, history and activity stores instead of breaking a call.
    """

    def __init__(self, url: str | None = None, max_connections: int | None = None):
        self.url = url or settings.REDIS_URL
        self.max_connections = max_connections or settings.REDIS_MAX_CONNECTIONS
        self.client: redis.Redis | None = None

    @property
    def initialized(self) -> bool:
        return self.client is not None

    async def initialize(self) -> None:
        if self.initialized:
            return

        client = redis.from_url(
            self.url,
            max_connections=self.max_connections,
            retry_on_timeout=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception as e:
            await client.aclose()
            logger.error("Redis unreachable at startup", error=str(e))
            raise RuntimeError("Redis initialization failed") from e

        self.client = client
        logger.info("Redis client ready", max_connections=self.max_connections)

    async def close(self) -> None:
        if self.client is None:
            return
        client, self.client = self.client, None
        try:
            await client.aclose()
            logger.info("Redis client closed")
        except Exception as e:
            logger.error("Error closing Redis client", error=str(e))

    async def _run(
        self,
        op: str,
        key: str | None,
        default: T,
        command: Callable[[redis.Redis], Awaitable[Any]],
    ) -> Any | T:
        try:
            # Lazily connect when used outside the app lifespan (workers, scripts)
            await self.initialize()
            return await command(self.client)
        except Exception as e:
            logger.error("Redis command failed", op=op, key=(key or "")[:30], error=str(e))
            return default

    async def ping(self) -> bool:
        return bool(await self._run("PING", None, False, lambda c: c.ping()))

    async def get(self, key: str) -> str | None:
        value = await self._run("GET", key, None, lambda c: c.get(key))
        return value or None

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        if ttl_s:
            result = await self._run("SETEX", key, False, lambda c: c.setex(key, ttl_s, value))
        else:
            result = await self._run("SET", key, False, lambda c: c.set(key, value))
        return bool(result)

    async def delete(self, key: str) -> bool:
        removed = await self._run("DEL", key, 0, lambda c: c.delete(key))
        return removed > 0


# Global instance
fast_redis = FastRedisClient()
