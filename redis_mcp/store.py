"""
Redis store adapter.

ConnectionManager owns the live client and recreates it on demand;
RedisStore is the thin typed wrapper the tools talk to.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import RedisSettings
from .errors import StoreError


logger = logging.getLogger(__name__)

# Failures that mean the handle is unusable.
CONNECTION_ERRORS = (StoreError, RedisError, OSError)


def create_redis_client(settings: RedisSettings) -> Redis:
    """Construct a Redis client for the configured target."""
    return Redis.from_url(
        settings.url,
        socket_connect_timeout=settings.connect_timeout,
        socket_timeout=settings.socket_timeout,
        decode_responses=True,
        encoding="utf-8",
    )


class RedisStore:
    """Typed key/value operations against one Redis client handle."""

    def __init__(self, client: Redis):
        self.client = client

    async def exists(self, key: str) -> bool:
        return await self.client.exists(key) > 0

    async def type(self, key: str) -> str:
        return await self.client.type(key)

    async def ttl(self, key: str) -> int:
        return await self.client.ttl(key)

    # Typed reads

    async def read_string(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def read_list(self, key: str) -> List[str]:
        return await self.client.lrange(key, 0, -1)

    async def read_set(self, key: str) -> List[str]:
        return sorted(await self.client.smembers(key))

    async def read_sorted_set(self, key: str) -> List[Tuple[str, float]]:
        return [
            (member, score)
            for member, score in await self.client.zrange(key, 0, -1, withscores=True)
        ]

    async def read_hash(self, key: str) -> Dict[str, str]:
        return await self.client.hgetall(key)

    async def size(self, key: str, key_type: str) -> Optional[int]:
        if key_type == "string":
            return await self.client.strlen(key)
        if key_type == "list":
            return await self.client.llen(key)
        if key_type == "set":
            return await self.client.scard(key)
        if key_type == "zset":
            return await self.client.zcard(key)
        if key_type == "hash":
            return await self.client.hlen(key)
        if key_type == "stream":
            return await self.client.xlen(key)
        return None

    # Typed writes. Collections are replaced wholesale inside MULTI/EXEC.

    async def write_string(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        if ttl:
            return await self.client.set(key, value, ex=ttl)
        return await self.client.set(key, value)

    async def replace_list(
        self, key: str, items: Sequence[str], ttl: Optional[int] = None
    ) -> int:
        return await self._replace(key, "rpush", list(items), ttl)

    async def replace_set(
        self, key: str, members: Sequence[str], ttl: Optional[int] = None
    ) -> Optional[int]:
        return await self._replace(key, "sadd", list(members), ttl)

    async def replace_hash(
        self, key: str, mapping: Mapping[str, str], ttl: Optional[int] = None
    ) -> Optional[int]:
        return await self._replace(key, "hset", dict(mapping), ttl)

    async def _replace(self, key: str, command: str, payload: Any, ttl: Optional[int]) -> Any:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if payload:
                if command == "hset":
                    pipe.hset(key, mapping=payload)
                else:
                    getattr(pipe, command)(key, *payload)
                if ttl:
                    pipe.expire(key, ttl)
            replies = await pipe.execute()
        return replies[1] if payload else None

    async def delete(self, key: str) -> int:
        return await self.client.delete(key)

    async def keys(self, pattern: str) -> List[str]:
        return sorted([key async for key in self.client.scan_iter(match=pattern)])

    async def rename(self, old_key: str, new_key: str) -> bool:
        return bool(await self.client.renamenx(old_key, new_key))

    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self.client.expire(key, ttl))

    async def persist(self, key: str) -> bool:
        return bool(await self.client.persist(key))

    # Diagnostics

    async def info(self, section: Optional[str] = None) -> Dict[str, Any]:
        if section is None:
            return await self.client.info()
        return await self.client.info(section)

    async def dbsize(self) -> int:
        return await self.client.dbsize()

    async def ping(self) -> bool:
        return bool(await self.client.ping())


class ConnectionManager:
    """
    Lazily creates the Redis client and hands out store adapters bound to it.

    The handle is replaced when a health check fails; adapters holding the
    old handle fail with StoreError on their next command.
    """

    def __init__(
        self,
        settings: RedisSettings,
        client_factory: Callable[[RedisSettings], Redis] = create_redis_client,
    ):
        self.settings = settings
        self._client_factory = client_factory
        self._client: Optional[Redis] = None
        self._connected = False
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._connected

    async def get_client(self) -> Redis:
        """Return the live client, connecting first if needed."""
        if self.is_connected:
            return self._client

        async with self._lock:
            if self.is_connected:
                return self._client

            client = self._client_factory(self.settings)
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.error(f"Failed to create Redis client: {e}")
                await self._close_quietly(client)
                raise StoreError(f"Redis connection failed: {e}") from e

            logger.info(f"Redis client connected to {self.settings.host}:{self.settings.port}")
            self._client = client
            self._connected = True
            return client

    async def acquire(self) -> RedisStore:
        return RedisStore(await self.get_client())

    async def test_connection(self) -> bool:
        """Ping the server. Never raises."""
        try:
            client = await self.get_client()
            await client.ping()
            return True
        except CONNECTION_ERRORS as e:
            logger.error(f"Redis connection test failed: {e}")
            return False

    async def ensure_healthy(self) -> bool:
        """Ping the connection and drop the handle if it is unhealthy."""
        if await self.test_connection():
            return True
        logger.warning("Redis connection unhealthy, dropping handle for reconnect")
        await self.close()
        return False

    async def close(self) -> None:
        """Close the client if one exists. Never raises."""
        client, self._client = self._client, None
        self._connected = False
        if client is not None:
            await self._close_quietly(client)
            logger.info("Redis connection closed")

    async def _close_quietly(self, client: Redis) -> None:
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.error(f"Failed to close Redis connection: {e}")

    def connection_info(self) -> dict:
        return {
            "host": self.settings.host,
            "port": self.settings.port,
            "hasPassword": bool(self.settings.password),
            "isConnected": self.is_connected,
        }
