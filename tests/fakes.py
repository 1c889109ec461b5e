"""In-memory stand-ins for the Redis client and the process lifecycle."""

import asyncio
import fnmatch
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from redis.exceptions import ConnectionError as RedisConnectionError

from redis_mcp.lifecycle import Lifecycle


@dataclass
class FakeRedis:
    """
    Just enough of redis.asyncio.Redis for the store adapter.

    Values are kept per key as (type, value); TTLs are whole seconds that
    never tick down.
    """
    data: Dict[str, Any] = field(default_factory=dict)
    types: Dict[str, str] = field(default_factory=dict)
    expiry: Dict[str, int] = field(default_factory=dict)
    fail_ping: bool = False
    fail_commands: bool = False
    delay: float = 0.0
    closed: bool = False
    commands: List[str] = field(default_factory=list)
    info_sections: Dict[str, Dict[str, Any]] = field(default_factory=lambda: {
        "server": {
            "redis_version": "7.2.4",
            "redis_mode": "standalone",
            "os": "Linux",
            "arch_bits": 64,
            "uptime_in_seconds": 3600,
        },
        "clients": {"connected_clients": 2},
        "memory": {
            "used_memory": 1048576,
            "used_memory_human": "1.00M",
            "used_memory_rss": 2097152,
            "used_memory_rss_human": "2.00M",
            "used_memory_peak": 3145728,
            "used_memory_peak_human": "3.00M",
            "maxmemory": 0,
            "maxmemory_human": "0B",
            "mem_fragmentation_ratio": 2.0,
        },
        "stats": {
            "total_commands_processed": 42,
            "instantaneous_ops_per_sec": 1,
            "keyspace_hits": 10,
            "keyspace_misses": 3,
        },
        "keyspace": {"db0": {"keys": 0, "expires": 0, "avg_ttl": 0}},
    })

    def _check(self, command: str) -> None:
        self.commands.append(command)
        if self.fail_commands:
            raise RedisConnectionError("Connection refused")

    def _put(self, key: str, key_type: str, value: Any) -> None:
        self.data[key] = value
        self.types[key] = key_type

    def _drop(self, key: str) -> int:
        if key not in self.data:
            return 0
        del self.data[key]
        del self.types[key]
        self.expiry.pop(key, None)
        return 1

    # Connection

    async def ping(self) -> bool:
        self.commands.append("ping")
        if self.fail_ping or self.closed:
            raise RedisConnectionError("Connection refused")
        return True

    async def aclose(self) -> None:
        self.closed = True

    # Keyspace

    async def exists(self, *keys: str) -> int:
        self._check("exists")
        if self.delay:
            await asyncio.sleep(self.delay)
        return sum(1 for key in keys if key in self.data)

    async def type(self, key: str) -> str:
        self._check("type")
        return self.types.get(key, "none")

    async def ttl(self, key: str) -> int:
        self._check("ttl")
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        return sum(self._drop(key) for key in keys)

    async def scan_iter(self, match: Optional[str] = None):
        self._check("scan")
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def renamenx(self, src: str, dst: str) -> bool:
        self._check("renamenx")
        if dst in self.data:
            return False
        self.data[dst] = self.data.pop(src)
        self.types[dst] = self.types.pop(src)
        if src in self.expiry:
            self.expiry[dst] = self.expiry.pop(src)
        return True

    async def expire(self, key: str, seconds: int) -> bool:
        self._check("expire")
        return self._expire(key, seconds)

    def _expire(self, key: str, seconds: int) -> bool:
        if key not in self.data:
            return False
        self.expiry[key] = seconds
        return True

    async def persist(self, key: str) -> bool:
        self._check("persist")
        return self.expiry.pop(key, None) is not None

    # Typed access

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        return self.data.get(key) if self.types.get(key) == "string" else None

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check("set")
        self._drop(key)
        self._put(key, "string", value)
        if ex:
            self.expiry[key] = ex
        return True

    async def strlen(self, key: str) -> int:
        return len(self.data.get(key, ""))

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        self._check("lrange")
        return list(self.data.get(key, []))

    async def llen(self, key: str) -> int:
        return len(self.data.get(key, []))

    async def smembers(self, key: str):
        self._check("smembers")
        return set(self.data.get(key, set()))

    async def scard(self, key: str) -> int:
        return len(self.data.get(key, set()))

    async def zrange(self, key: str, start: int, end: int, withscores: bool = False):
        self._check("zrange")
        members = sorted(self.data.get(key, {}).items(), key=lambda item: (item[1], item[0]))
        return members if withscores else [member for member, _ in members]

    async def zcard(self, key: str) -> int:
        return len(self.data.get(key, {}))

    async def hgetall(self, key: str) -> Dict[str, str]:
        self._check("hgetall")
        return dict(self.data.get(key, {}))

    async def hlen(self, key: str) -> int:
        return len(self.data.get(key, {}))

    async def xlen(self, key: str) -> int:
        return len(self.data.get(key, []))

    def _rpush(self, key: str, *items: str) -> int:
        self.types.setdefault(key, "list")
        self.data.setdefault(key, []).extend(items)
        return len(self.data[key])

    def _sadd(self, key: str, *members: str) -> int:
        self.types.setdefault(key, "set")
        current = self.data.setdefault(key, set())
        added = len(set(members) - current)
        current.update(members)
        return added

    def _hset(self, key: str, mapping: Dict[str, str]) -> int:
        self.types.setdefault(key, "hash")
        current = self.data.setdefault(key, {})
        added = len(set(mapping) - set(current))
        current.update(mapping)
        return added

    def seed_zset(self, key: str, mapping: Dict[str, float]) -> None:
        """Seed a sorted set directly since the server never writes one."""
        self._put(key, "zset", dict(mapping))

    # Server

    async def info(self, section: Optional[str] = None) -> Dict[str, Any]:
        self._check("info")
        if section is not None:
            info = dict(self.info_sections.get(section, {}))
            if section == "keyspace":
                info["db0"] = dict(info.get("db0", {}), keys=len(self.data))
            return info
        merged: Dict[str, Any] = {}
        for name, values in self.info_sections.items():
            if name != "keyspace":
                merged.update(values)
        return merged

    async def dbsize(self) -> int:
        self._check("dbsize")
        return len(self.data)

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)


class FakePipeline:
    """Buffers commands and applies them in order on execute."""

    def __init__(self, client: FakeRedis):
        self.client = client
        self.queued: List[tuple] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.queued = []

    def delete(self, key: str) -> "FakePipeline":
        self.queued.append(("delete", key))
        return self

    def rpush(self, key: str, *items: str) -> "FakePipeline":
        self.queued.append(("rpush", key, items))
        return self

    def sadd(self, key: str, *members: str) -> "FakePipeline":
        self.queued.append(("sadd", key, members))
        return self

    def hset(self, key: str, mapping: Dict[str, str]) -> "FakePipeline":
        self.queued.append(("hset", key, mapping))
        return self

    def expire(self, key: str, seconds: int) -> "FakePipeline":
        self.queued.append(("expire", key, seconds))
        return self

    async def execute(self) -> List[Any]:
        self.client._check("exec")
        replies = []
        for command, key, *args in self.queued:
            if command == "delete":
                replies.append(self.client._drop(key))
            elif command == "rpush":
                replies.append(self.client._rpush(key, *args[0]))
            elif command == "sadd":
                replies.append(self.client._sadd(key, *args[0]))
            elif command == "hset":
                replies.append(self.client._hset(key, args[0]))
            elif command == "expire":
                replies.append(self.client._expire(key, args[0]))
        self.queued = []
        return replies


class RecordingLifecycle(Lifecycle):
    """Records exit codes instead of ending the process."""

    def __init__(self):
        self.exit_codes: List[int] = []

    def exit(self, code: int = 0) -> None:
        self.exit_codes.append(code)
