"""Tests for redis_mcp.store module."""

import pytest

from redis_mcp.config import RedisSettings
from redis_mcp.errors import StoreError
from redis_mcp.store import ConnectionManager, RedisStore

from tests.fakes import FakeRedis


class CountingFactory:
    """Client factory that remembers every client it built."""

    def __init__(self, fail_ping: bool = False):
        self.fail_ping = fail_ping
        self.clients = []

    def __call__(self, settings):
        client = FakeRedis(fail_ping=self.fail_ping)
        self.clients.append(client)
        return client


class TestConnectionManager:
    @pytest.mark.asyncio
    async def test_lazy_connect(self):
        factory = CountingFactory()
        manager = ConnectionManager(RedisSettings(), client_factory=factory)
        assert manager.is_connected is False
        assert factory.clients == []

        first = await manager.get_client()
        second = await manager.get_client()
        assert first is second
        assert len(factory.clients) == 1
        assert manager.is_connected is True

    @pytest.mark.asyncio
    async def test_connect_failure(self):
        factory = CountingFactory(fail_ping=True)
        manager = ConnectionManager(RedisSettings(), client_factory=factory)

        with pytest.raises(StoreError) as exc_info:
            await manager.acquire()
        assert "Redis connection failed" in str(exc_info.value)
        assert factory.clients[0].closed is True
        assert manager.is_connected is False

    @pytest.mark.asyncio
    async def test_test_connection_never_raises(self):
        manager = ConnectionManager(RedisSettings(), client_factory=CountingFactory(fail_ping=True))
        assert await manager.test_connection() is False

        manager = ConnectionManager(RedisSettings(), client_factory=CountingFactory())
        assert await manager.test_connection() is True

    @pytest.mark.asyncio
    async def test_ensure_healthy_drops_bad_handle(self):
        factory = CountingFactory()
        manager = ConnectionManager(RedisSettings(), client_factory=factory)
        await manager.get_client()
        assert await manager.ensure_healthy() is True

        factory.clients[0].fail_ping = True
        assert await manager.ensure_healthy() is False
        assert manager.is_connected is False
        assert factory.clients[0].closed is True

        # Next use reconnects with a fresh client
        factory.fail_ping = False
        await manager.acquire()
        assert len(factory.clients) == 2

    @pytest.mark.asyncio
    async def test_close_without_client(self):
        manager = ConnectionManager(RedisSettings(), client_factory=CountingFactory())
        await manager.close()
        assert manager.is_connected is False

    def test_connection_info(self):
        manager = ConnectionManager(
            RedisSettings(host="cache", port=6380, password="pw"),
            client_factory=CountingFactory(),
        )
        assert manager.connection_info() == {
            "host": "cache",
            "port": 6380,
            "hasPassword": True,
            "isConnected": False,
        }


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_write_and_read_string(self):
        client = FakeRedis()
        store = RedisStore(client)
        assert await store.write_string("greeting", "hello", ttl=30) is True
        assert await store.read_string("greeting") == "hello"
        assert await store.type("greeting") == "string"
        assert await store.ttl("greeting") == 30

    @pytest.mark.asyncio
    async def test_replace_list_preserves_order(self):
        client = FakeRedis()
        store = RedisStore(client)
        await store.replace_list("queue", ["a", "b"])
        assert await store.replace_list("queue", ["x", "y", "z"]) == 3
        assert await store.read_list("queue") == ["x", "y", "z"]

    @pytest.mark.asyncio
    async def test_replace_set(self):
        store = RedisStore(FakeRedis())
        await store.replace_set("tags", ["b", "a", "b"], ttl=60)
        assert await store.read_set("tags") == ["a", "b"]
        assert await store.ttl("tags") == 60

    @pytest.mark.asyncio
    async def test_replace_hash(self):
        store = RedisStore(FakeRedis())
        await store.replace_hash("user", {"name": "ada", "lang": "en"})
        await store.replace_hash("user", {"name": "grace"})
        assert await store.read_hash("user") == {"name": "grace"}

    @pytest.mark.asyncio
    async def test_replace_with_empty_payload_clears(self):
        store = RedisStore(FakeRedis())
        await store.replace_set("tags", ["a"])
        assert await store.replace_set("tags", []) is None
        assert await store.exists("tags") is False

    @pytest.mark.asyncio
    async def test_keys_sorted(self):
        client = FakeRedis()
        store = RedisStore(client)
        for key in ("user:2", "user:1", "session:9"):
            await store.write_string(key, "x")
        assert await store.keys("user:*") == ["user:1", "user:2"]
        assert await store.keys("*") == ["session:9", "user:1", "user:2"]

    @pytest.mark.asyncio
    async def test_rename_refuses_existing_target(self):
        store = RedisStore(FakeRedis())
        await store.write_string("a", "1")
        await store.write_string("b", "2")
        assert await store.rename("a", "b") is False
        assert await store.rename("a", "c") is True
        assert await store.read_string("c") == "1"

    @pytest.mark.asyncio
    async def test_size_by_type(self):
        client = FakeRedis()
        store = RedisStore(client)
        await store.write_string("s", "four")
        await store.replace_list("l", ["a", "b"])
        client.seed_zset("z", {"m": 1.0})
        assert await store.size("s", "string") == 4
        assert await store.size("l", "list") == 2
        assert await store.size("z", "zset") == 1
        assert await store.size("s", "ReJSON-RL") is None

    @pytest.mark.asyncio
    async def test_expire_and_persist(self):
        store = RedisStore(FakeRedis())
        await store.write_string("k", "v")
        assert await store.expire("k", 10) is True
        assert await store.ttl("k") == 10
        assert await store.persist("k") is True
        assert await store.ttl("k") == -1
        assert await store.persist("k") is False
